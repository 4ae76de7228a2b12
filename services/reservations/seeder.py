"""Idempotent bootstrap of a sample catalogue."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from common.errors import ConflictError
from common.schemas import ResourceType, SeedResult

from .registry import ResourceRegistry

logger = logging.getLogger(__name__)

DEMO_RESOURCES: List[Dict[str, Any]] = [
    {
        "id": "room-101",
        "name": "Lecture Hall 101",
        "type": ResourceType.ROOM.value,
        "capacity": 100,
        "location": "Building A, Floor 1",
        "description": "Large lecture hall with projector and sound system",
    },
    {
        "id": "room-201",
        "name": "Computer Lab 201",
        "type": ResourceType.ROOM.value,
        "capacity": 30,
        "location": "Building B, Floor 2",
        "description": "Computer lab with 30 workstations",
    },
    {
        "id": "proj-001",
        "name": "HD Projector",
        "type": ResourceType.EQUIPMENT.value,
        "location": "Equipment Room",
        "description": "Portable HD projector with HDMI connection",
    },
    {
        "id": "book-001",
        "name": "Data Structures & Algorithms",
        "type": ResourceType.BOOK.value,
        "location": "Library - Section C",
        "description": "Comprehensive guide to DSA",
    },
    {
        "id": "faculty-001",
        "name": "Advising Hours - Computer Science",
        "type": ResourceType.FACULTY_HOURS.value,
        "capacity": 1,
        "location": "Building B, Room 310",
        "description": "One-to-one academic advising slots",
    },
]


class DemoSeeder:
    def __init__(self, registry: ResourceRegistry) -> None:
        self.registry = registry

    def seed(self) -> SeedResult:
        if self.registry.list():
            return SeedResult(seeded=False, count=0, message="Already initialized")

        created = 0
        for fields in DEMO_RESOURCES:
            try:
                self.registry.create(fields)
            except ConflictError:
                continue
            created += 1
        logger.info("Seeded %d demo resource(s)", created)
        return SeedResult(seeded=True, count=created, message="Initialized with demo data")
