"""Database engine creation."""

import os
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from gatehouse.config import DatabaseConfig

SQLITE_BUSY_TIMEOUT = 30


def _expand_sqlite_path(url: str) -> str:
    """Expand ~ in SQLite URLs and ensure parent directory exists."""
    if not url.startswith("sqlite") or "///" not in url:
        return url

    # Extract path from URL (sqlite+aiosqlite:///path or sqlite:///path)
    prefix_end = url.index("///") + 3
    prefix = url[:prefix_end]
    path = url[prefix_end:]

    # In-memory databases have no file
    if not path or path == ":memory:":
        return url

    # Expand ~ and make absolute
    abs_path = os.path.abspath(os.path.expanduser(path))

    # Ensure parent directory exists
    Path(abs_path).parent.mkdir(parents=True, exist_ok=True)

    return f"{prefix}{abs_path}"


def _is_sqlite_memory(url: str) -> bool:
    return url.startswith("sqlite") and (url.endswith("://") or ":memory:" in url)


def create_db_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create async database engine.

    Handles SQLite and PostgreSQL with appropriate settings. File-backed
    SQLite gets a regular pool so every transaction owns its connection
    and writers serialise on the database lock.
    """
    url = _expand_sqlite_path(config.url)

    if _is_sqlite_memory(url):
        engine_kwargs: dict[str, Any] = {
            "echo": config.echo,
            # An in-memory database lives only as long as its one connection
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    elif url.startswith("sqlite"):
        engine_kwargs = {
            "echo": config.echo,
            # Seconds a writer waits on a locked database before failing
            "connect_args": {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        }
    else:
        # PostgreSQL settings
        engine_kwargs = {
            "echo": config.echo,
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
        }

    return create_async_engine(url, **engine_kwargs)
