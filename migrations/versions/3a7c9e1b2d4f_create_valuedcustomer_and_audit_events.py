"""create valuedcustomer and audit_events

Revision ID: 3a7c9e1b2d4f
Revises:
Create Date: 2026-10-12

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "3a7c9e1b2d4f"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    def _has_index(table: str, name: str) -> bool:
        try:
            return any(ix.get("name") == name for ix in insp.get_indexes(table))
        except Exception:
            return False

    # valuedcustomer may already exist (shared with the customer maintenance screens).
    if "valuedcustomer" not in existing_tables:
        op.create_table(
            "valuedcustomer",
            sa.Column("VCustID", sa.String(length=11), primary_key=True, nullable=False),
            sa.Column("VCustName", sa.Text(), nullable=False),
            sa.Column("MotherCode", sa.String(length=64), nullable=True),
            sa.Column("Vgroup", sa.String(length=128), nullable=True),
            sa.Column("Active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("UpdateID", sa.Integer(), nullable=False, server_default=sa.text("0")),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
        )
        existing_tables.add("valuedcustomer")

    if "valuedcustomer" in existing_tables:
        insp = inspect(op.get_bind())
        if not _has_index("valuedcustomer", "idx_valuedcustomer_mother_code"):
            op.create_index("idx_valuedcustomer_mother_code", "valuedcustomer", ["MotherCode"])

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.Column("request_id", sa.String(length=64), nullable=True),
            sa.Column("client_ip", sa.String(length=64), nullable=True),
            sa.Column("action", sa.String(length=128), nullable=False),
            sa.Column("entity_type", sa.String(length=128), nullable=True),
            sa.Column("entity_id", sa.String(length=128), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
            sa.UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
        )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("idx_valuedcustomer_mother_code", table_name="valuedcustomer")
    op.drop_table("valuedcustomer")
