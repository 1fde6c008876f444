"""Tests configuration and fixtures."""

from typing import AsyncGenerator
from uuid import uuid4

import pytest

from unmute.config import Settings
from unmute.config.settings import DatabaseSettings
from unmute.infrastructure.database import DatabaseManager
from unmute.infrastructure.stores import (
    InMemoryAssignmentStore,
    InMemoryResponseLogStore,
    InMemoryRiskProfileStore,
    InMemorySignalRecordStore,
)
from unmute.services.alerts import AlertBus
from unmute.services.detection.signal_classifier import SignalClassifier
from unmute.services.escalation import EscalationWorkflow
from unmute.services.pipeline import CrisisPipeline


@pytest.fixture
def test_settings() -> Settings:
    """Development settings on the in-memory store."""
    return Settings(
        env="development",
        debug=False,
        store_backend="memory",
    )


@pytest.fixture
def sqlite_settings() -> Settings:
    """Settings pointing the SQL store at in-memory SQLite."""
    return Settings(
        env="development",
        store_backend="sql",
        database=DatabaseSettings(url_override="sqlite+aiosqlite://"),
    )


@pytest.fixture
async def db(sqlite_settings: Settings) -> AsyncGenerator[DatabaseManager, None]:
    """Initialized SQLite database with the full schema."""
    manager = DatabaseManager(sqlite_settings)
    await manager.initialize()
    await manager.create_schema()
    yield manager
    await manager.close()


@pytest.fixture
def classifier() -> SignalClassifier:
    return SignalClassifier()


@pytest.fixture
def profile_store() -> InMemoryRiskProfileStore:
    return InMemoryRiskProfileStore()


@pytest.fixture
def assignment_store() -> InMemoryAssignmentStore:
    return InMemoryAssignmentStore()


@pytest.fixture
def response_store() -> InMemoryResponseLogStore:
    return InMemoryResponseLogStore()


@pytest.fixture
def record_store() -> InMemorySignalRecordStore:
    return InMemorySignalRecordStore()


@pytest.fixture
def bus() -> AlertBus:
    return AlertBus()


@pytest.fixture
def workflow(assignment_store, response_store, profile_store) -> EscalationWorkflow:
    return EscalationWorkflow(assignment_store, response_store, profiles=profile_store)


@pytest.fixture
async def pipeline(
    classifier,
    profile_store,
    record_store,
    bus,
    workflow,
) -> AsyncGenerator[CrisisPipeline, None]:
    """Pipeline on in-memory stores with no retry backoff."""
    crisis_pipeline = CrisisPipeline(
        classifier=classifier,
        profiles=profile_store,
        signal_records=record_store,
        bus=bus,
        workflow=workflow,
        backoff_min_seconds=0,
        backoff_max_seconds=0,
    )
    yield crisis_pipeline
    await crisis_pipeline.stop()
    await bus.close()


@pytest.fixture
def student_id():
    return uuid4()


@pytest.fixture
def institution_id():
    return uuid4()
