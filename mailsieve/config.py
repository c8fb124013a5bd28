"""Mail filter configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_FALLBACK_SENDER = "noreply@localhost"
DEFAULT_UNDISCLOSED_NAME = "Undisclosed Recipients"


class MailFilterConfig(BaseSettings):
    """Settings shared by the ingestion helpers and the logging setup.

    All env vars are prefixed with ``MAILSIEVE_``.
    Example: ``MAILSIEVE_FALLBACK_SENDER=postmaster@example.com``
    """

    model_config = {"env_prefix": "MAILSIEVE_"}

    fallback_sender: str = Field(
        default=DEFAULT_FALLBACK_SENDER,
        description="Address shown by the sender disclosure policy when no sender is known",
    )
    undisclosed_name: str = Field(
        default=DEFAULT_UNDISCLOSED_NAME,
        description="Display name used for the standard undisclosed recipients header",
    )
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )
