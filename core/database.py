"""
Database Connection Management

Owns the SQLAlchemy engine (a bounded connection pool), hands out one
session per request, and creates the schema at startup.

A Database is constructed explicitly by the application and stored on
``app.state``; there is no module-level engine.
"""

from typing import Iterator, Optional, Union

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from core.config import Settings
from core.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class Database:
    """
    Bounded pool of connections to the visit store.

    Args:
        url: SQLAlchemy database URL (ignored when ``engine`` is given)
        pool_size: Connections kept open in the pool
        max_overflow: Extra connections allowed beyond pool_size
        pool_timeout: Seconds to wait for a free connection before failing
        connect_timeout: Connect/read timeout passed to the MySQL driver
        echo: Log every SQL statement
        engine: Pre-built engine (used by tests)
    """

    def __init__(
        self,
        url: Optional[Union[str, URL]] = None,
        *,
        pool_size: int = 10,
        max_overflow: int = 0,
        pool_timeout: int = 60,
        connect_timeout: int = 60,
        echo: bool = False,
        engine: Optional[Engine] = None,
    ):
        if engine is None:
            if url is None:
                raise ValueError("Either url or engine is required")
            engine = self._create_engine(
                make_url(url),
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                connect_timeout=connect_timeout,
                echo=echo,
            )
        self.engine = engine
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            connect_timeout=settings.DB_CONNECT_TIMEOUT,
            echo=settings.DB_ECHO_SQL,
        )

    @staticmethod
    def _create_engine(
        url: URL,
        *,
        pool_size: int,
        max_overflow: int,
        pool_timeout: int,
        connect_timeout: int,
        echo: bool,
    ) -> Engine:
        kwargs = {"echo": echo, "pool_pre_ping": True}
        backend = url.get_backend_name()

        # SQLite picks its own pool class; the sizing arguments only apply to QueuePool
        if backend != "sqlite":
            kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=3600,
            )

        if backend == "mysql":
            kwargs["connect_args"] = {
                "connect_timeout": connect_timeout,
                "read_timeout": connect_timeout,
                "write_timeout": connect_timeout,
            }
        elif backend == "postgresql":
            kwargs["connect_args"] = {"connect_timeout": connect_timeout}

        return create_engine(url, **kwargs)

    @property
    def url(self) -> str:
        """Database URL with the password masked, safe to log."""
        return self.engine.url.render_as_string(hide_password=True)

    def session(self) -> Iterator[Session]:
        """
        Yield a session bound to one pooled connection.

        The session is always closed afterwards, returning the connection
        to the pool.
        """
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def ping(self) -> bool:
        """
        Acquire a connection, run a trivial query and release it.

        Returns:
            bool: True if the database answered
        """
        try:
            with self.engine.connect() as connection:
                return connection.execute(text("SELECT 1")).scalar() == 1
        except SQLAlchemyError as e:
            logger.error(f"Database ping failed: {str(e)}")
            return False

    def create_tables(self) -> bool:
        """
        Create the visits and ip_stats tables (and indexes) if absent.

        Failures are logged, not raised: the API keeps starting.

        Returns:
            bool: True if the schema is in place
        """
        # Register the models on Base.metadata
        import models  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine, checkfirst=True)
        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize database tables: {str(e)}", exc_info=True)
            return False

        logger.info("Database tables initialized")
        return True

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()
        logger.info("Database connection pool closed")


def get_db(request: Request) -> Iterator[Session]:
    """
    FastAPI dependency providing a database session for one request.

    Args:
        request: Incoming request (the Database lives on app.state)

    Yields:
        Session: Database session
    """
    database: Database = request.app.state.database
    yield from database.session()
