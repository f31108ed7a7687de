from __future__ import annotations

import logging
from typing import Generic, TypeVar

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from donoralert.core.exceptions import DuplicateAddressError, StorageError
from donoralert.db import models
from donoralert.registry.filters import DonorQuery

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def create(self, **kwargs) -> ModelT:
        entity = self.model(**kwargs)
        self.db.add(entity)
        self.db.flush()
        return entity


class DonorRepository(BaseRepository[models.Donor]):
    """Registry of donors keyed by their unique phone number.

    Every SQLAlchemy failure leaves this class as :class:`StorageError`,
    except a unique-phone violation on insert, which is reported as
    :class:`DuplicateAddressError`.
    """

    model = models.Donor

    def create(self, **kwargs) -> models.Donor:
        try:
            return super().create(**kwargs)
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateAddressError("Phone number already registered") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Could not store donor") from exc

    def find(self, query: DonorQuery, *, newest_first: bool = False) -> list[models.Donor]:
        stmt = select(models.Donor)
        if query.area is not None:
            stmt = stmt.where(models.Donor.area == query.area)
        if query.blood_group is not None:
            stmt = stmt.where(models.Donor.blood_group == query.blood_group)
        if newest_first:
            stmt = stmt.order_by(models.Donor.created_at.desc())
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError("Could not query donors") from exc

    def get_by_phone(self, phone: str) -> models.Donor | None:
        stmt = select(models.Donor).where(models.Donor.phone == phone)
        try:
            return self.db.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError("Could not look up donor") from exc

    def exists_by_phone(self, phone: str) -> bool:
        stmt = select(exists().where(models.Donor.phone == phone))
        try:
            return bool(self.db.execute(stmt).scalar())
        except SQLAlchemyError as exc:
            raise StorageError("Could not look up donor") from exc

    def delete_by_phone(self, phone: str) -> bool:
        """Delete the donor registered under *phone*.

        Idempotent: returns ``False`` when no donor had that number.
        """
        stmt = delete(models.Donor).where(models.Donor.phone == phone)
        try:
            result = self.db.execute(stmt)
            self.db.flush()
        except SQLAlchemyError as exc:
            raise StorageError("Could not delete donor") from exc
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted donor %s from registry", phone)
        return deleted
