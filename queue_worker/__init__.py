"""Long-polling, at-least-once SQS message consumer."""
