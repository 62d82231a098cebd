from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; module-specific tables can refer to it by id if needed.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "customer_import.upload"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "ValuedCustomer"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.vcms.modules.customer_import.models import ValuedCustomer  # noqa: E402,F401
