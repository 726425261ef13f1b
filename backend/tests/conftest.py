"""Pytest fixtures: SQLite database, frozen clock and recording notifier."""
from datetime import datetime, timedelta, timezone
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.main import app
from app.services.clock import get_clock
from app.services.notifier import Notifier, get_notifier

# Import all models so they register with Base.metadata
from app.models.profile import Profile                # noqa: F401
from app.models.access_request import AccessRequest  # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
START = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier(Notifier):
    """Records every notification instead of sending it."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, dict]] = []

    async def notify_owner_of_request(self, **kwargs) -> bool:
        self.calls.append(("owner", kwargs))
        if self.fail:
            raise RuntimeError("smtp down")
        return True

    async def notify_requester_of_approval(self, **kwargs) -> bool:
        self.calls.append(("requester", kwargs))
        if self.fail:
            raise RuntimeError("smtp down")
        return True

    def sent(self, kind: str) -> list[dict]:
        return [kwargs for name, kwargs in self.calls if name == kind]


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def clock():
    return FrozenClock()


@pytest.fixture(scope="function")
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_engine, clock, notifier):
    """FastAPI TestClient with database, clock and notifier dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def create_test_profile(db, name: str = "Asha Rao", is_public: bool = False, **privacy) -> str:
    """Insert a profile directly (profiles are owned by the registration side). Returns its id."""
    profile = Profile(
        name=name,
        type_of_work="Architect",
        email="asha@example.com",
        mobile="+91 98765 43210",
        date_of_birth="1990-04-02",
        bio="Designs libraries.",
        is_public=is_public,
        privacy=privacy or None,
    )
    db.add(profile)
    db.commit()
    return profile.profile_id


def request_access(client: TestClient, profile_id: str, email: str = "a@x.com", mobile=None, name="Visitor"):
    """Helper: POST /api/access-requests and return the raw response."""
    body = {"profile_id": profile_id, "requester_name": name}
    if email is not None:
        body["requester_email"] = email
    if mobile is not None:
        body["requester_mobile"] = mobile
    return client.post("/api/access-requests/", json=body)


def token_for(db, request_id: str) -> str:
    """Read the access token straight from the store (it is never returned to requesters)."""
    db.expire_all()
    return db.query(AccessRequest).filter(AccessRequest.request_id == request_id).one().access_token


def stored_request(db, request_id: str) -> AccessRequest:
    db.expire_all()
    return db.query(AccessRequest).filter(AccessRequest.request_id == request_id).one()


def open_request(client: TestClient, db, profile_id: str, **kwargs) -> str:
    """Create a request and return its token."""
    resp = request_access(client, profile_id, **kwargs)
    assert resp.status_code == 201, resp.text
    return token_for(db, resp.json()["request_id"])
