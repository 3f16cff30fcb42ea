"""Server and database commands."""

import sys

import logfire
import uvicorn
from alembic.util import CommandError
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from gatehouse.cli.console import get_console
from gatehouse.config import Config
from gatehouse.infrastructure.persistence.migrate import run_migrations


def _load_config() -> Config:
    console = get_console()
    try:
        return Config()  # type: ignore[call-arg]
    except ValidationError as e:
        console.error("Invalid configuration", hint=str(e))
        sys.exit(1)


def _migrate(config: Config) -> None:
    console = get_console()
    console.info("Running database migrations...")
    try:
        run_migrations(config.database.url)
    except (CommandError, SQLAlchemyError) as e:
        console.error("Database migration failed", hint=str(e))
        sys.exit(1)
    console.success("Migrations complete")


def serve(host: str = "127.0.0.1", port: int = 8000, reload: bool = False) -> None:
    """Run the Gatehouse server in the foreground.

    Args:
        host: Host to bind to.
        port: Port to listen on.
        reload: Restart on code changes (development only).
    """
    console = get_console()
    config = _load_config()

    if not config.auth.jwt.secret:
        console.error(
            "JWT signing secret is not configured",
            hint="Set GATEHOUSE_AUTH__JWT__SECRET or auth.jwt.secret in the config file",
        )
        sys.exit(1)

    if config.database.auto_migrate:
        _migrate(config)

    # Only exports when a Logfire token is present
    logfire.configure(send_to_logfire="if-token-present", service_name="gatehouse")

    console.success(f"Serving on http://{host}:{port}")
    uvicorn.run(
        "gatehouse.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        access_log=True,
    )


def migrate() -> None:
    """Apply pending database migrations."""
    _migrate(_load_config())
