"""Shared test fixtures for the revision ledger test suite.

Every test gets a fresh in-memory SQLite database (one shared connection
via StaticPool) with all tables created, a session on it, and a registry
with Document/DocumentRevision registered.
"""

import os

# Human-readable logs in test output.
os.environ["LOG_FORMAT"] = "text"

from datetime import datetime, timedelta, timezone

import pytest

from revisable.core.config import Settings
from revisable.core.registry import RevisableRegistry
from revisable.database import build_engine, init_db, make_session_factory
from revisable.models import Document, DocumentRevision
from revisable.services import RevisionService


class StepClock:
    """Deterministic clock: each call advances by one minute."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start
        self.calls = 0

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(minutes=1)
        self.calls += 1
        return self.now


@pytest.fixture()
def settings() -> Settings:
    return Settings(database_url="sqlite://", log_format="text")


@pytest.fixture()
def engine(settings):
    engine = build_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    """Per-test database session."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def registry() -> RevisableRegistry:
    registry = RevisableRegistry()
    registry.register(Document, DocumentRevision, clone_associations={"except": ["comments"]})
    return registry


@pytest.fixture()
def clock() -> StepClock:
    return StepClock()


@pytest.fixture()
def service(db, registry, settings, clock) -> RevisionService:
    return RevisionService(db, registry, settings, clock)


def make_document(db, title: str = "Test Document", content: str = "# Test\n\nHello world.", **overrides) -> Document:
    """Factory for stored live documents."""
    doc = Document(title=title, content=content, path=overrides.pop("path", "crate/docs"), **overrides)
    db.add(doc)
    db.commit()
    return doc


def snapshot(doc: Document) -> dict:
    """Domain fields of *doc* as they stand now."""
    return {
        "title": doc.title,
        "path": doc.path,
        "content": doc.content,
        "keywords": list(doc.keywords or []),
        "owner_id": doc.owner_id,
    }


def edit(service: RevisionService, doc: Document, **changes) -> DocumentRevision:
    """Snapshot the pre-change state, then apply *changes* to the live document."""
    revision = service.create_revision(doc, snapshot(doc), commit=False)
    for key, value in changes.items():
        setattr(doc, key, value)
    service.db.commit()
    return revision
