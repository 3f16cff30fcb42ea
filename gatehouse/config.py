import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from gatehouse.domain.auth.model.user import CLAIMABLE_FIELDS


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by GATEHOUSE_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("GATEHOUSE_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class Server(BaseModel):
    """Server configuration (nested in Config, uses env_nested_delimiter)."""

    name: str = "Gatehouse"
    version: str = "0.1.0"
    description: str = "Federated sign-in and session credential issuance"


class DatabaseConfig(BaseModel):
    """Database configuration (nested in Config, uses env_nested_delimiter)."""

    url: str = "sqlite+aiosqlite:///./gatehouse.db"
    echo: bool = False
    auto_migrate: bool = True  # Run Alembic upgrade before serving


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from GATEHOUSE_LOG_FILE env var."""
        return os.environ.get("GATEHOUSE_LOG_FILE")


# =============================================================================
# Authentication Configuration
# =============================================================================


class GithubConfig(BaseModel):
    """GitHub OAuth configuration.

    Endpoint URLs are configurable so GitHub Enterprise hosts can be used.
    """

    client_id: str = ""
    client_secret: str = ""
    authorization_url: str = "https://github.com/login/oauth/authorize"
    token_url: str = "https://github.com/login/oauth/access_token"
    user_profile_url: str = "https://api.github.com/user"
    user_emails_url: str = "https://api.github.com/user/emails"
    scope: list[str] = ["user:email"]


class JwtConfig(BaseModel):
    """JWT configuration."""

    secret: str = ""  # Must be set; startup fails without it
    algorithm: str = "HS256"
    audience: str = "authenticated"
    access_token_expire_minutes: int = 15
    # Deliberately short: clients trade this token for a long-lived session right away
    refresh_token_expire_minutes: int = 2


class AuthConfig(BaseModel):
    """Authentication configuration."""

    github: GithubConfig = GithubConfig()
    jwt: JwtConfig = JwtConfig()
    callback_url: str = "http://localhost:8000/login/callback"
    success_redirect_url: str = "http://localhost:3000/auth/success"
    failure_redirect_url: str = "http://localhost:3000/auth/failure"
    default_role: str = "user"
    user_fields: list[str] = []  # Extra User attributes embedded in access tokens

    @field_validator("user_fields")
    @classmethod
    def validate_user_fields(cls, v: list[str]) -> list[str]:
        unknown = sorted(set(v) - CLAIMABLE_FIELDS)
        if unknown:
            raise ValueError(
                f"Unknown user fields: {', '.join(unknown)}. "
                f"Allowed: {', '.join(sorted(CLAIMABLE_FIELDS))}"
            )
        return v


class Config(BaseSettings):
    # These are BaseModel, so env_nested_delimiter handles their env vars
    server: Server = Server()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    auth: AuthConfig = AuthConfig()

    model_config = {
        "env_prefix": "GATEHOUSE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows GATEHOUSE_AUTH__JWT__SECRET override
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - GATEHOUSE_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup so all loggers pick up
    the configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path)
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
