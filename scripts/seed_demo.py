#!/usr/bin/env python3
"""Seed the configured store with the demo catalogue."""
import logging

from common.config import get_settings
from services.reservations.engine import ReservationEngine


def seed_demo() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    settings = get_settings()
    engine = ReservationEngine.open(settings)
    try:
        result = engine.seeder.seed()
    finally:
        engine.close()
    print(f"{result.message} ({result.count} resource(s)) at {settings.database_url}")


if __name__ == "__main__":
    seed_demo()
