"""Engine, session factory and per-request session scope."""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


@dataclass
class DatabaseConfig:
    """Connection settings; ``DATABASE_URL`` wins over the ``DB_*`` parts."""

    host: str = "localhost"
    port: int = 5432
    database: str = "directory"
    username: str = "postgres"
    password: str = ""
    pool_size: int = 5
    max_overflow: int = 10
    echo: bool = False
    database_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        return cls(
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "directory"),
            username=os.getenv("DB_USER", "postgres"),
            password=os.getenv("DB_PASSWORD", ""),
            pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            echo=os.getenv("DB_ECHO", "false").lower() == "true",
            database_url=os.getenv("DATABASE_URL") or None,
        )

    @property
    def url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_engine``; SQLite gets no pool sizing."""
        options: Dict[str, Any] = {"echo": self.echo}
        if make_url(self.url).get_backend_name() == "sqlite":
            options["connect_args"] = {"check_same_thread": False}
        else:
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_pre_ping=True,
            )
        return options


# Initialized lazily on first use
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def get_engine(config: Optional[DatabaseConfig] = None) -> Engine:
    global _engine

    if _engine is None:
        config = config or DatabaseConfig.from_env()
        _engine = create_engine(config.url, **config.engine_options())
        logger.info("Created %s engine", _engine.dialect.name)

    return _engine


def get_session_factory(config: Optional[DatabaseConfig] = None) -> sessionmaker[Session]:
    global _session_factory

    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(config),
            autoflush=False,
            expire_on_commit=False,
        )

    return _session_factory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One unit of work: commit when the block finishes, roll back when it raises.

    The tenant setting written by ``set_tenant_context`` is transaction-local,
    so it ends with the commit or rollback here.
    """
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    with session_scope() as session:
        yield session


def dispose_engine() -> None:
    """Dispose of the engine and reset module state."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
