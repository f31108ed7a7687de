"""FastAPI dependency injection: database sessions, registry and dispatcher."""
from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from donoralert.core.settings import get_settings
from donoralert.db.repositories import DonorRepository
from donoralert.db.session import get_session_factory
from donoralert.notification.dispatcher import AlertDispatcher
from donoralert.notification.transport import TransportGateway


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    db = get_session_factory()()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_donor_repository(db: Session = Depends(get_db)) -> DonorRepository:
    """Return a DonorRepository bound to the current DB session."""
    return DonorRepository(db)


def get_transport_gateway(request: Request) -> TransportGateway:
    """Return the process-wide SMS gateway created in the app lifespan."""
    return request.app.state.sms_gateway


def get_alert_dispatcher(
    repository: DonorRepository = Depends(get_donor_repository),
    gateway: TransportGateway = Depends(get_transport_gateway),
) -> AlertDispatcher:
    """Return an AlertDispatcher wired to the request's registry and the shared gateway."""
    settings = get_settings()
    return AlertDispatcher(
        repository,
        gateway,
        max_workers=settings.dispatch_max_workers,
        send_timeout_s=settings.sms_timeout_s,
    )
