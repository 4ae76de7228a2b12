"""Simple profiling harness for booking creation and utilization analytics."""
import cProfile
import pstats
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from common.config import Settings
from services.reservations.engine import ReservationEngine

BOOKINGS_PER_RESOURCE = 50


def exercise_engine(engine: ReservationEngine) -> None:
    engine.seeder.seed()
    day = datetime(2030, 1, 7, 8, tzinfo=timezone.utc)
    for resource in engine.registry.list():
        for slot in range(BOOKINGS_PER_RESOURCE):
            start = day + timedelta(hours=slot)
            engine.scheduler.create(
                {
                    "id": f"{resource.id}-{slot}",
                    "resourceId": resource.id,
                    "userId": "profiler",
                    "startTime": start.isoformat(),
                    "endTime": (start + timedelta(minutes=45)).isoformat(),
                }
            )
    engine.analyzer.compute()


def main() -> None:
    profile_path = Path(__file__).with_name("reservations_profile.prof")
    with tempfile.TemporaryDirectory() as workdir:
        settings = Settings(database_url=f"sqlite:///{workdir}/profile.db", utilization_cache_ttl=0)
        engine = ReservationEngine.open(settings)
        try:
            with cProfile.Profile() as profiler:
                exercise_engine(engine)
        finally:
            engine.close()
    profiler.dump_stats(profile_path)
    stats = pstats.Stats(str(profile_path))
    stats.sort_stats(pstats.SortKey.TIME).print_stats(10)


if __name__ == "__main__":
    main()
