from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from donoralert.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Donor(Base):
    __tablename__ = "donors"
    __table_args__ = (UniqueConstraint("phone", name="uq_donors_phone"),)

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    area: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    blood_group: Mapped[str] = mapped_column(String(8), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), default=_utcnow
    )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": str(self.id),
            "name": self.name,
            "area": self.area,
            "phone": self.phone,
            "bloodGroup": self.blood_group,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
