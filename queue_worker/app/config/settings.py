from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from queue_worker.app.domain.models import EngineConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Left optional here so a missing URL surfaces as ConfigurationError from EngineConfig.
    queue_url: str = Field("", validation_alias="QUEUE_URL")

    aws_region: str = Field("us-east-1", validation_alias="AWS_REGION")
    aws_endpoint_url: str | None = Field(None, validation_alias="AWS_ENDPOINT_URL")
    aws_access_key_id: str | None = Field(None, validation_alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str | None = Field(None, validation_alias="AWS_SECRET_ACCESS_KEY")
    aws_session_token: str | None = Field(None, validation_alias="AWS_SESSION_TOKEN")

    consumer_backend: str = Field("sqs", validation_alias="CONSUMER_BACKEND")

    max_messages: int = Field(10, validation_alias="MAX_MESSAGES")
    visibility_timeout: int = Field(30, validation_alias="VISIBILITY_TIMEOUT")
    wait_time_seconds: int = Field(20, validation_alias="WAIT_TIME_SECONDS")

    idle_delay_seconds: float = Field(1.0, validation_alias="IDLE_DELAY_SECONDS")
    error_delay_seconds: float = Field(5.0, validation_alias="ERROR_DELAY_SECONDS")
    max_error_delay_seconds: float = Field(60.0, validation_alias="MAX_ERROR_DELAY_SECONDS")
    error_backoff_multiplier: float = Field(1.0, validation_alias="ERROR_BACKOFF_MULTIPLIER")

    message_envelope: str = Field("raw", validation_alias="MESSAGE_ENVELOPE")
    body_preview_length: int = Field(200, validation_alias="BODY_PREVIEW_LENGTH")

    # "package.module:attribute"; empty leaves every message in the queue.
    handler: str = Field("", validation_alias="HANDLER")

    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(False, validation_alias="LOG_JSON")

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            queue_url=self.queue_url.strip(),
            max_messages=self.max_messages,
            visibility_timeout=self.visibility_timeout,
            wait_seconds=self.wait_time_seconds,
            idle_delay_seconds=self.idle_delay_seconds,
            error_delay_seconds=self.error_delay_seconds,
            max_error_delay_seconds=self.max_error_delay_seconds,
            error_backoff_multiplier=self.error_backoff_multiplier,
            envelope=self.message_envelope.strip().lower(),
            body_preview_length=self.body_preview_length,
        )
