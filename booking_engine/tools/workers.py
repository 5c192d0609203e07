"""
Worker directory and eligibility matching.

In production, the directory would be backed by the staff database;
the in-memory implementation here is seeded from DEFAULT_WORKERS and
used by the demo entry point and tests.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from booking_engine.schemas.booking_schema import Worker, Zone

logger = logging.getLogger(__name__)

ZONE_KEYWORDS: dict[Zone, list[str]] = {
    Zone.NORTH: ["north", "uptown", "highland", "oakwood", "summit"],
    Zone.SOUTH: ["south", "downtown", "riverside", "greenfield", "valley"],
    Zone.CENTRAL: ["central", "midtown", "city center", "main street", "downtown"],
    Zone.EAST: ["east", "harbor", "lakeside", "bayview"],
    Zone.WEST: ["west", "hillcrest", "sunset", "canyon"],
}

DEFAULT_WORKERS: list[Worker] = [
    Worker(
        id="W-001",
        name="Mike Johnson",
        email="mike@gohampro.com",
        phone="+15550101",
        zone=Zone.NORTH,
        services=("mobile-detailing", "house-washing"),
        experience_years=5,
        rating=4.9,
    ),
    Worker(
        id="W-002",
        name="Sarah Davis",
        email="sarah@gohampro.com",
        phone="+15550102",
        zone=Zone.SOUTH,
        services=("gutter-cleaning", "commercial-washing"),
        experience_years=7,
        rating=4.8,
    ),
    Worker(
        id="W-003",
        name="Carlos Rodriguez",
        email="carlos@gohampro.com",
        phone="+15550103",
        zone=Zone.CENTRAL,
        services=("mobile-detailing", "gutter-cleaning", "house-washing"),
        experience_years=3,
        rating=4.7,
    ),
]


def handles_service(worker: Worker, service_type: str) -> bool:
    """Case-insensitive substring match in either direction."""
    requested = service_type.lower().strip()
    return any(
        service.lower() in requested or requested in service.lower()
        for service in worker.services
    )


def is_in_worker_zone(address: str, zone: Zone) -> bool:
    """Keyword zone check; central workers cover every address."""
    if zone == Zone.CENTRAL:
        return True
    address_lower = address.lower()
    return any(keyword in address_lower for keyword in ZONE_KEYWORDS.get(zone, []))


def is_eligible(worker: Worker, service_type: str, address: str) -> bool:
    return (
        worker.is_active
        and handles_service(worker, service_type)
        and is_in_worker_zone(address, worker.zone)
    )


class WorkerDirectory(ABC):
    """Read-only worker lookup used by the scheduling core."""

    @abstractmethod
    async def find_workers_by_capability_and_zone(
        self, service_type: str, address: str
    ) -> list[Worker]:
        """Active workers who handle the service and cover the address."""

    @abstractmethod
    async def get_worker(self, worker_id: str) -> Optional[Worker]:
        ...

    @abstractmethod
    async def list_workers(self) -> list[Worker]:
        ...


class InMemoryWorkerDirectory(WorkerDirectory):
    """Worker directory held in process memory, in insertion order."""

    def __init__(self, workers: Optional[Iterable[Worker]] = None) -> None:
        source = DEFAULT_WORKERS if workers is None else workers
        self._workers: dict[str, Worker] = {w.id: w for w in source}

    async def find_workers_by_capability_and_zone(
        self, service_type: str, address: str
    ) -> list[Worker]:
        return [w for w in self._workers.values() if is_eligible(w, service_type, address)]

    async def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self._workers.get(worker_id)

    async def list_workers(self) -> list[Worker]:
        return list(self._workers.values())

    # ------------------------------------------------------------------ #
    # Worker management
    # ------------------------------------------------------------------ #

    def add_worker(self, worker: Worker) -> Worker:
        if worker.id in self._workers:
            raise ValueError(f"Worker {worker.id} already exists")
        self._workers[worker.id] = worker
        logger.info("Worker added: %s (%s)", worker.name, worker.id)
        return worker

    def update_worker(self, worker_id: str, **updates) -> Optional[Worker]:
        """Apply field updates to a worker. Returns None for unknown ids."""
        current = self._workers.get(worker_id)
        if current is None:
            return None
        updated = Worker.model_validate({**current.model_dump(), **updates, "id": worker_id})
        self._workers[worker_id] = updated
        logger.info("Worker updated: %s", worker_id)
        return updated

    def deactivate_worker(self, worker_id: str) -> Optional[Worker]:
        return self.update_worker(worker_id, is_active=False)
