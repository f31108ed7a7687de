from __future__ import annotations

import threading
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from donoralert.db.base import Base
from donoralert.db.models import Donor
from donoralert.db.repositories import DonorRepository
from donoralert.notification.transport import DeliveryOutcome, OutcomeKind

ALERT_PASSWORD = "hospital-secret"


class FakeGateway:
    """Deterministic stand-in for the SMS transport.

    ``outcomes`` maps an address to the kind it should report (default
    ``DELIVERED``); ``errors`` maps an address to an exception to raise.
    """

    def __init__(
        self,
        outcomes: dict[str, OutcomeKind] | None = None,
        errors: dict[str, Exception] | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.errors = errors or {}
        self.sent: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def send(self, address: str, body: str) -> DeliveryOutcome:
        with self._lock:
            self.sent.append((address, body))
        if address in self.errors:
            raise self.errors[address]
        kind = self.outcomes.get(address, OutcomeKind.DELIVERED)
        return DeliveryOutcome(address=address, kind=kind, detail=None if kind is OutcomeKind.DELIVERED else "fake")

    @property
    def addresses(self) -> list[str]:
        return [address for address, _ in self.sent]


def add_donor(
    db: Session,
    *,
    phone: str,
    area: str = "Andheri",
    blood_group: str = "O+",
    name: str = "Test Donor",
    created_at: datetime | None = None,
) -> Donor:
    donor = Donor(name=name, area=area, phone=phone, blood_group=blood_group)
    if created_at is not None:
        donor.created_at = created_at
    db.add(donor)
    db.flush()
    return donor


def phone(n: int) -> str:
    return f"+9190000{n:05d}"


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def repository(db_session: Session) -> DonorRepository:
    return DonorRepository(db_session)


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def client(db_session: Session, gateway: FakeGateway, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """TestClient with the DB session and SMS gateway overridden."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")
    monkeypatch.setenv("HOSPITAL_ALERT_PASSWORD", ALERT_PASSWORD)

    from donoralert.core.settings import get_settings

    get_settings.cache_clear()

    from donoralert.api.deps import get_db, get_transport_gateway
    from donoralert.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_transport_gateway] = lambda: gateway
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.dependency_overrides.clear()
    get_settings.cache_clear()
