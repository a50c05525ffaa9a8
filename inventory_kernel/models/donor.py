"""
Module: inventory_kernel.models.donor
Responsibility: ORM persistence for donors.  Independent of the ledger;
    donations may reference one (or none, for anonymous donations).
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UTCDateTime
from inventory_kernel.domain.dtos import DonorView


class Donor(Base):
    __tablename__ = "donors"

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    donor_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    contact_person: Mapped[str | None] = mapped_column(String(200), nullable=True)

    email: Mapped[str | None] = mapped_column(String(200), nullable=True)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    address: Mapped[str | None] = mapped_column(String(300), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    registered_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def to_dto(self) -> DonorView:
        return DonorView(
            donor_id=self.id,
            name=self.name,
            donor_type=self.donor_type,
            contact_person=self.contact_person,
            email=self.email,
            phone=self.phone,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<Donor {self.id}: {self.name}>"
