"""Daemon configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (ENVIRONMENT, SMTP_*, FROM_EMAIL,
SYNC_BASE_URL) are validated at load time; load_settings() turns a
missing one into a ConfigurationException naming the variable.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notifier.domain.exceptions import ConfigurationException

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Checked in this order; the first missing one is reported.
REQUIRED_VARIABLES: tuple[str, ...] = (
    "environment",
    "smtp_host",
    "smtp_port",
    "smtp_username",
    "smtp_password",
    "from_email",
    "sync_base_url",
)

_MISSING_PREFIX = "missing required setting: "


class Settings(BaseSettings):
    """Daemon settings loaded from environment and .env.

    All settings have defaults so that validate_required can report the
    first missing variable by name instead of a generic pydantic error.
    """

    # Deployment
    environment: str = ""
    debug: bool = False

    # SMTP
    smtp_host: str = ""
    smtp_port: int | None = None
    smtp_username: str = ""
    smtp_password: SecretStr = SecretStr("")
    smtp_use_ssl: bool = True
    smtp_timeout_seconds: float = 30.0
    from_email: str = ""
    from_name: str = "DROPSTACK | CLOUD"

    # Replication
    sync_base_url: str = ""
    replication_batch_size: int = 1000
    replication_retry_seconds: float = 5.0
    replication_timeout_seconds: float = 60.0

    # Reports
    scheduler_tick_ms: int = 250
    admin_account_id: str = "admin"
    test_account_id: str = "go@dropstack.run"

    # Templates: directory holding <name>.tpl.html files
    templates_dir: Path = DEFAULT_TEMPLATES_DIR

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Reject the first required setting that is empty or unset."""
        for name in REQUIRED_VARIABLES:
            value = getattr(self, name)
            if isinstance(value, SecretStr):
                value = value.get_secret_value()
            if value is None or value == "":
                raise ValueError(f"{_MISSING_PREFIX}{name.upper()}")
        if self.scheduler_tick_ms <= 0:
            raise ValueError("SCHEDULER_TICK_MS must be positive")
        if self.replication_batch_size <= 0:
            raise ValueError("REPLICATION_BATCH_SIZE must be positive")
        return self

    @property
    def is_production(self) -> bool:
        """True when ENVIRONMENT is 'production' (case-insensitive)."""
        return self.environment.strip().lower() == "production"

    @property
    def scheduler_tick_seconds(self) -> float:
        return self.scheduler_tick_ms / 1000

    def log_summary(self) -> dict[str, str]:
        """Effective settings for the startup log line; secrets stay masked."""
        return {
            "ENVIRONMENT": self.environment,
            "SMTP_HOST": self.smtp_host,
            "SMTP_PORT": str(self.smtp_port),
            "SMTP_USERNAME": self.smtp_username,
            "SMTP_PASSWORD": str(self.smtp_password),
            "FROM_EMAIL": self.from_email,
            "SYNC_BASE_URL": self.sync_base_url,
        }


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()


def load_settings() -> Settings:
    """Load settings, converting validation failures into ConfigurationException.

    Raises:
        ConfigurationException: A required variable is missing or a value
            is invalid. details['variable'] names the variable.
    """
    try:
        return get_settings()
    except ValidationError as exc:
        raise _to_configuration_exception(exc) from exc


def _to_configuration_exception(exc: ValidationError) -> ConfigurationException:
    error = exc.errors()[0]
    message = str(error.get("msg", ""))
    if _MISSING_PREFIX in message:
        variable = message.split(_MISSING_PREFIX, 1)[1].strip()
        return ConfigurationException(variable)
    loc = error.get("loc") or ()
    variable = str(loc[0]).upper() if loc else "SETTINGS"
    return ConfigurationException(variable, f"Invalid setting {variable}: {message}")
