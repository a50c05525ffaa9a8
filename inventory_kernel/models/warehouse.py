"""
Module: inventory_kernel.models.warehouse
Responsibility: ORM persistence for warehouses (almacenes).  Reference data:
    lots point at a warehouse; nothing owns it.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UTCDateTime
from inventory_kernel.domain.dtos import WarehouseView


class Warehouse(Base):
    __tablename__ = "warehouses"

    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def to_dto(self) -> WarehouseView:
        return WarehouseView(warehouse_id=self.id, name=self.name, is_active=self.is_active)

    def __repr__(self) -> str:
        return f"<Warehouse {self.id}: {self.name} active={self.is_active}>"
