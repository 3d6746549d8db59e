"""
Coordinator Test Fixtures.

Base fixtures:
  - Empty queue store (parametrized over both backends)
  - Fake snapshot source and status notifier
  - Lifecycle, reconciler and service wired to them

Per-test fixtures:
  - create_job: place a job with a given snapshot in any collection
"""

import pytest
from pathlib import Path
from typing import Callable, Optional

from ciqueue.coordinator import (
    Collection,
    CoordinatorLock,
    CoordinatorService,
    DirectoryQueueStore,
    JobLifecycle,
    JobRecordCodec,
    QueueStore,
    Snapshot,
    SnapshotReconciler,
    SqliteQueueStore,
)

from fakes import PUBLIC_URL, FakeSnapshotSource, FakeStatusNotifier, snap


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture(params=["sqlite", "directory"])
def store(request, tmp_path: Path) -> QueueStore:
    """Empty store, once per backend."""
    if request.param == "sqlite":
        return SqliteQueueStore(tmp_path / "queue.db")
    return DirectoryQueueStore(tmp_path / "jobs")


@pytest.fixture
def codec() -> JobRecordCodec:
    return JobRecordCodec()


@pytest.fixture
def create_job(store: QueueStore, codec: JobRecordCodec) -> Callable[..., int]:
    """
    Factory placing a job directly into a collection.

    Usage:
        create_job(3, Collection.RUNNING, snap("abc"), extra="status success\\n")
    """

    def _create(
        job_id: int,
        collection: Collection = Collection.WAITING,
        snapshot: Optional[Snapshot] = None,
        extra: str = "",
    ) -> int:
        snapshot = snapshot or snap(f"head{job_id}")
        assert store.create(collection, job_id, codec.format_header(snapshot) + extra)
        return job_id

    return _create


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def source() -> FakeSnapshotSource:
    return FakeSnapshotSource()


@pytest.fixture
def notifier() -> FakeStatusNotifier:
    return FakeStatusNotifier()


# =============================================================================
# Component Fixtures
# =============================================================================


@pytest.fixture
def lifecycle(store, codec, notifier) -> JobLifecycle:
    return JobLifecycle(store, codec, notifier, public_url=PUBLIC_URL)


@pytest.fixture
def reconciler(store, codec, source) -> SnapshotReconciler:
    return SnapshotReconciler(store, codec, source)


@pytest.fixture
def lock(tmp_path: Path) -> CoordinatorLock:
    return CoordinatorLock(tmp_path / "coordinator.lock", timeout=0.2)


@pytest.fixture
def service(store, lock, source, notifier) -> CoordinatorService:
    return CoordinatorService(store, lock, source, notifier, public_url=PUBLIC_URL)
