import os
import tempfile
from typing import Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_reservations.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "reservations-test-logs"))

from common.config import Settings, reset_settings_cache  # noqa: E402

reset_settings_cache()

from services.reservations.app import app  # noqa: E402
from services.reservations.engine import ReservationEngine  # noqa: E402


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(database_url=f"sqlite:///{tmp_path / 'kv.db'}", run_db_migrations=True)


@pytest.fixture()
def engine(settings: Settings) -> Generator[ReservationEngine, None, None]:
    reservation_engine = ReservationEngine.open(settings)
    try:
        yield reservation_engine
    finally:
        reservation_engine.close()


@pytest.fixture()
def store(engine: ReservationEngine):
    return engine.store


@pytest.fixture()
def registry(engine: ReservationEngine):
    return engine.registry


@pytest.fixture()
def scheduler(engine: ReservationEngine):
    return engine.scheduler


@pytest.fixture()
def analyzer(engine: ReservationEngine):
    return engine.analyzer


@pytest.fixture()
def client(engine: ReservationEngine) -> Generator[TestClient, None, None]:
    app.state.engine = engine
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.state.engine = None
