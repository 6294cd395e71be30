"""Settings for formrequest, loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class FormRequestSettings(BaseSettings):
    """Runtime settings, overridable with ``FORMREQUEST_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FORMREQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "warning"
    log_json: bool = False
    # Let the pytest plugin call setup_logging() at session start
    configure_logging: bool = False

    # Indentation of JSON dumps in assertion messages
    dump_indent: int = 4

    # Synthetic route bound to requests built by make_form_request()
    test_route_method: str = "POST"
    test_route_uri: str = "/test/route"


_settings: Optional[FormRequestSettings] = None


def get_settings() -> FormRequestSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = FormRequestSettings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None


__all__ = [
    "FormRequestSettings",
    "get_settings",
    "reset_settings",
]
