from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, func, text, true
from sqlalchemy.orm import Mapped, mapped_column

from app.vcms.models import Base
from app.vcms.modules.customer_import.utils import FIELD_MAX_LENGTHS


class ValuedCustomer(Base):
    """
    A customer record keyed by a DDDD-DDDDDD identifier.

    Column names follow the existing `valuedcustomer` table; the primary key
    on VCustID is what rejects a concurrently allocated identifier range.
    """

    __tablename__ = "valuedcustomer"
    __table_args__ = (
        Index("idx_valuedcustomer_mother_code", "MotherCode"),
    )

    identifier: Mapped[str] = mapped_column("VCustID", String(11), primary_key=True)
    name: Mapped[str] = mapped_column("VCustName", Text, nullable=False)
    mother_code: Mapped[str | None] = mapped_column("MotherCode", String(FIELD_MAX_LENGTHS["Mother Code"]), nullable=True)
    group: Mapped[str | None] = mapped_column("Vgroup", String(FIELD_MAX_LENGTHS["Group"]), nullable=True)
    active: Mapped[bool] = mapped_column("Active", Boolean, nullable=False, default=True, server_default=true())
    update_id: Mapped[int] = mapped_column("UpdateID", Integer, nullable=False, default=0, server_default=text("0"))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.current_timestamp(),
    )

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "name": self.name,
            "motherCode": self.mother_code,
            "group": self.group,
            "active": bool(self.active),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
