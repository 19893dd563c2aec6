"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_QUOTE_PROVIDERS = {"awesomeapi", "awesome", "mock"}
PROVIDER_ALIASES = {"awesome": "awesomeapi"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


def _get_bool(name: str, default: str) -> bool:
    return _get_env(name, default).strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "fx-quoteboard"
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = _get_env("DATABASE_URL", "sqlite:///fx-quoteboard.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REQUEST_TIMEOUT_SECONDS = int(_get_env("REQUEST_TIMEOUT_SECONDS", "5"))
    FX_QUOTE_PROVIDER = _get_env("FX_QUOTE_PROVIDER", "awesomeapi")
    QUOTES_API_BASE_URL = _get_env(
        "QUOTES_API_BASE_URL", "https://economia.awesomeapi.com.br/json/last"
    )
    QUOTES_API_KEY = _get_env("API_KEY", "")
    # A refresh is a single batched call; retries would spend the provider's rate limit.
    QUOTES_API_MAX_RETRIES = int(_get_env("QUOTES_API_MAX_RETRIES", "1"))
    QUOTES_API_BACKOFF_SECONDS = float(_get_env("QUOTES_API_BACKOFF_SECONDS", "0.5"))
    QUOTES_API_VERIFY_TLS = _get_bool("QUOTES_API_VERIFY_TLS", "true")
    REFRESH_COOLDOWN_SECONDS = int(_get_env("REFRESH_COOLDOWN_SECONDS", "60"))
    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_bool("LOG_JSON_ENABLED", "false")
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If the configured quote provider is not supported.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    _validate_provider(config_cls)
    return config_cls


def _validate_provider(config_cls: type[BaseConfig]) -> None:
    normalized = normalize_provider(config_cls.FX_QUOTE_PROVIDER)
    if normalized not in SUPPORTED_QUOTE_PROVIDERS:
        raise ValueError(
            f"Unsupported FX_QUOTE_PROVIDER '{config_cls.FX_QUOTE_PROVIDER}'. "
            f"Allowed values: {sorted(SUPPORTED_QUOTE_PROVIDERS)}"
        )
    config_cls.FX_QUOTE_PROVIDER = normalized


def normalize_provider(value: str | None) -> str:
    if not value:
        return ""
    normalized = value.strip().lower()
    return PROVIDER_ALIASES.get(normalized, normalized)
