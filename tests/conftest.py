import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool

from shared.config import settings
from shared.database import EventStore
from shared.models import Event

API_KEY = "test-dashboard-key"

AS_OF = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    event_store = EventStore(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event_store.create_schema()
    yield event_store
    event_store.dispose()


@pytest.fixture
def db(store):
    with store.session_scope() as session:
        yield session


@pytest.fixture
def add_events(store):
    def _add(*events):
        with store.session_scope() as session:
            session.add_all(events)
            session.commit()
    return _add


@pytest.fixture
def api_keys(monkeypatch):
    monkeypatch.setattr(settings, "API_KEYS", {API_KEY})
    return API_KEY


def make_event(
        user_id="u1",
        event_type="keyword_search",
        timestamp=AS_OF,
        subscription_type="free",
        subscription_status="active",
        days_in_trial=None,
        metadata=None,
        properties=None
) -> Event:
    return Event(
        event_id=str(uuid.uuid4()),
        event_type=event_type,
        timestamp=timestamp,
        user_id=user_id,
        subscription_type=subscription_type,
        subscription_status=subscription_status,
        days_in_trial=days_in_trial,
        properties=properties or {},
        metadata_=metadata
    )
