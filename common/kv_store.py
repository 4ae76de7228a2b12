"""Namespaced key-value storage consumed by the reservation engine.

Records are JSON documents stored under opaque string keys. Entity collections
share one table and are separated by key prefix (``resource:``, ``booking:``).
Every call runs in its own transaction: it is either fully applied or not
applied at all.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from circuitbreaker import CircuitBreaker
from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .database import Base, create_session_factory, create_store_engine
from .errors import StorageError
from .models import KVEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KeyValueStore(ABC):
    @abstractmethod
    def put(self, key: str, value: Any) -> None: ...

    @abstractmethod
    def put_if_absent(self, key: str, value: Any) -> bool:
        """Insert ``value`` only if ``key`` is unused. Returns False when the key exists."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def delete_many(self, keys: Iterable[str]) -> None: ...

    @abstractmethod
    def scan_by_prefix(self, prefix: str) -> List[Any]: ...


class SqlKeyValueStore(KeyValueStore):
    def __init__(
        self,
        engine: Engine,
        failure_threshold: int = 5,
        recovery_timeout: int = 30,
    ) -> None:
        self.engine = engine
        self._sessions = create_session_factory(engine)
        self._breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=StorageError,
            name="kv-store",
        )

    @classmethod
    def from_settings(cls, settings) -> "SqlKeyValueStore":
        engine = create_store_engine(settings.database_url, settings.store_timeout_seconds)
        return cls(
            engine,
            failure_threshold=settings.store_failure_threshold,
            recovery_timeout=settings.store_recovery_timeout,
        )

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_schema(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()

    def _run(self, operation: str, func: Callable[[], T]) -> T:
        def guarded() -> T:
            try:
                return func()
            except SQLAlchemyError as exc:
                logger.error("Store %s failed: %s", operation, exc)
                raise StorageError(f"Store {operation} failed") from exc

        if self._breaker.opened:
            raise StorageError(f"Store unavailable, {operation} rejected while circuit is open")
        return self._breaker.call(guarded)

    def put(self, key: str, value: Any) -> None:
        def op() -> None:
            with self._sessions.begin() as session:
                session.merge(KVEntry(key=key, value=value))

        self._run("put", op)

    def put_if_absent(self, key: str, value: Any) -> bool:
        def op() -> bool:
            try:
                with self._sessions.begin() as session:
                    session.add(KVEntry(key=key, value=value))
            except IntegrityError:
                return False
            return True

        return self._run("put_if_absent", op)

    def get(self, key: str) -> Optional[Any]:
        def op() -> Optional[Any]:
            with self._sessions() as session:
                return session.scalar(select(KVEntry.value).where(KVEntry.key == key))

        return self._run("get", op)

    def delete(self, key: str) -> None:
        self.delete_many([key])

    def delete_many(self, keys: Iterable[str]) -> None:
        key_list = list(keys)
        if not key_list:
            return

        def op() -> None:
            with self._sessions.begin() as session:
                session.execute(delete(KVEntry).where(KVEntry.key.in_(key_list)))

        self._run("delete", op)

    def scan_by_prefix(self, prefix: str) -> List[Any]:
        def op() -> List[Any]:
            with self._sessions() as session:
                rows = session.scalars(
                    select(KVEntry.value)
                    .where(KVEntry.key.startswith(prefix, autoescape=True))
                    .order_by(KVEntry.key)
                )
                return list(rows)

        return self._run("scan", op)
