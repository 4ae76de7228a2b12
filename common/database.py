"""SQLAlchemy engine construction for the key-value table."""
from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    pass


def _is_memory_sqlite(database_url: str) -> bool:
    url = make_url(database_url)
    return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"


def create_store_engine(database_url: str, timeout: float) -> Engine:
    """Build an engine whose connections never wait longer than ``timeout`` seconds."""

    if database_url.startswith("sqlite"):
        options = {}
        # in-memory databases use a SingletonThreadPool, which has no checkout queue
        if not _is_memory_sqlite(database_url):
            options["pool_timeout"] = timeout
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": timeout},
            **options,
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=timeout,
        connect_args={"connect_timeout": max(1, int(timeout))},
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
