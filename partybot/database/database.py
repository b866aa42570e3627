from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from partybot.config import Config
from partybot.database.models import Base
from partybot.utils.logger import setup_logger


def enable_sqlite_foreign_keys(engine):
    """SQLite ignores FOREIGN KEY clauses unless enabled per connection"""
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


class DatabaseBackend:
    """Connection setup for one relational dialect; everything else is shared."""

    name = "generic"

    def url(self):
        raise NotImplementedError

    def engine_options(self) -> dict:
        return {}

    def configure_engine(self, engine):
        """Hook for per-dialect connection setup"""


class SQLiteBackend(DatabaseBackend):
    """Embedded-file backend (aiosqlite)"""

    name = "sqlite"

    def __init__(self, path: str = 'party.db'):
        self.path = path

    def url(self):
        if self.path != ':memory:':
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        return URL.create('sqlite+aiosqlite', database=self.path)

    def configure_engine(self, engine):
        enable_sqlite_foreign_keys(engine)


class PostgresBackend(DatabaseBackend):
    """Networked-relational backend (psycopg 3 async driver)"""

    name = "postgresql"

    def __init__(self, host: str = 'localhost', port: int = 5432, database: str = 'party',
                 user: str = 'postgres', password: str = ''):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password

    def url(self):
        return URL.create(
            'postgresql+psycopg',
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database
        )

    def engine_options(self) -> dict:
        # Long-lived pool: drop dead connections instead of failing the next request
        return {'pool_pre_ping': True, 'pool_recycle': 1800}


class UrlBackend(DatabaseBackend):
    """Backend built from an explicit DATABASE_URL"""

    def __init__(self, database_url: str):
        # Convert sync URLs to their async drivers
        if database_url.startswith('sqlite:///'):
            database_url = database_url.replace('sqlite:///', 'sqlite+aiosqlite:///')
        elif database_url.startswith('postgresql://'):
            database_url = database_url.replace('postgresql://', 'postgresql+psycopg://', 1)
        self.database_url = database_url
        self.name = make_url(database_url).get_backend_name()

    def url(self):
        return make_url(self.database_url)

    def configure_engine(self, engine):
        if self.name == 'sqlite':
            enable_sqlite_foreign_keys(engine)


def backend_from_config() -> DatabaseBackend:
    """Pick the backend adapter named by the configuration"""
    Config.validate_database()
    if Config.DATABASE_URL:
        return UrlBackend(Config.DATABASE_URL)
    if Config.is_embedded_database():
        return SQLiteBackend(Config.SQLITE_PATH)
    return PostgresBackend(
        host=Config.DB_HOST,
        port=Config.DB_PORT,
        database=Config.DB_NAME,
        user=Config.DB_USER,
        password=Config.DB_PASSWORD
    )


class Database:
    def __init__(self, backend: Optional[DatabaseBackend] = None):
        self.logger = setup_logger(__name__)
        self.backend = backend
        self.engine = None
        self.async_session = None

    async def initialize(self):
        """Initialize the database connection and create tables"""
        if self.backend is None:
            self.backend = backend_from_config()
        self.logger.info(f"Initializing {self.backend.name} database...")

        self.engine = create_async_engine(
            self.backend.url(),
            echo=Config.DEBUG,
            **self.backend.engine_options()
        )
        self.backend.configure_engine(self.engine)

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure. Exceptions must be allowed to
        propagate out of the context for rollback to occur.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def autocommit_connection(self):
        """Connection where every statement commits on its own"""
        async with self.engine.connect() as conn:
            conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
            yield conn

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")
