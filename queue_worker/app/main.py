import signal
import sys
from typing import Any

from loguru import logger
from pydantic import ValidationError

from queue_worker.app.composition import WorkerDependencies, create_worker_dependencies
from queue_worker.app.config.settings import Settings
from queue_worker.app.core import SERVICE_NAME
from queue_worker.app.core.logging import configure_logging
from queue_worker.app.domain.models import ConfigurationError

SHUTDOWN_SIGNALS = ("SIGINT", "SIGTERM", "SIGQUIT")


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def install_signal_handlers(deps: WorkerDependencies) -> None:
    """Map termination signals to the shutdown flag.

    The handler only flips the flag; the loop logs once it observes it.
    """

    def on_signal(signum: int, frame: Any) -> None:
        deps.shutdown.request()

    for name in SHUTDOWN_SIGNALS:
        sig = getattr(signal, name, None)
        if sig is not None:
            signal.signal(sig, on_signal)


def run_worker(deps: WorkerDependencies) -> None:
    _log("worker_starting")
    deps.connect()
    install_signal_handlers(deps)
    deps.engine.log_queue_attributes()
    try:
        deps.engine.run()
    finally:
        deps.close()
        _log("worker_stopped")


def main() -> int:
    try:
        settings = Settings()
        configure_logging(settings.log_level, json=settings.log_json)
        run_worker(create_worker_dependencies(settings))
    except (ConfigurationError, ValidationError) as e:
        logger.bind(service_name=SERVICE_NAME, event="invalid_configuration").error(
            "invalid worker configuration: {}", e
        )
        return 2
    except KeyboardInterrupt:
        _log("worker_interrupted")
    except Exception as e:
        logger.exception("worker failed: {}", e)
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
