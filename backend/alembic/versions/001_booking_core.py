# backend/alembic/versions/001_booking_core.py
"""Booking core: branches, resources, reservations, payments

Revision ID: 001_booking_core
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_booking_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _is_postgres() -> bool:
    bind = op.get_bind()
    return bind is not None and bind.dialect.name == "postgresql"


def upgrade() -> None:
    """Create booking tables and, on PostgreSQL, the no-overlap exclusion constraint."""
    op.create_table(
        "branches",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("state", sa.String(60), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_branches_id", "branches", ["id"])
    op.create_index("ix_branches_city", "branches", ["city"])
    op.create_index("ix_branches_state", "branches", ["state"])

    op.create_table(
        "resources",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("branch_id", sa.String(26), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("hourly_rate >= 0", name="ck_resources_rate_non_negative"),
        sa.CheckConstraint("capacity > 0", name="ck_resources_capacity_positive"),
    )
    op.create_index("ix_resources_id", "resources", ["id"])
    op.create_index("ix_resources_branch_id", "resources", ["branch_id"])
    op.create_index("ix_resources_name", "resources", ["name"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("resource_id", sa.String(26), sa.ForeignKey("resources.id"), nullable=False),
        sa.Column("branch_id", sa.String(26), sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("reservation_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("hourly_rate_snapshot", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "deposit_required_pct", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED')", name="ck_reservations_status"
        ),
        sa.CheckConstraint("end_time > start_time", name="ck_reservations_time_order"),
        sa.CheckConstraint("total_amount >= 0", name="ck_reservations_total_non_negative"),
        sa.CheckConstraint(
            "deposit_required_pct >= 0 AND deposit_required_pct <= 100",
            name="ck_reservations_deposit_pct_range",
        ),
    )
    op.create_index("ix_reservations_id", "reservations", ["id"])
    op.create_index("ix_reservations_branch_id", "reservations", ["branch_id"])
    op.create_index("ix_reservations_customer_id", "reservations", ["customer_id"])
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index(
        "ix_reservations_resource_date_active",
        "reservations",
        ["resource_id", "reservation_date", "start_time"],
        postgresql_where=sa.text("status <> 'CANCELLED'"),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "reservation_id",
            sa.String(26),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("method", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("purpose", sa.String(50), nullable=True),
        sa.Column("external_ref", sa.String(255), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        sa.CheckConstraint("status IN ('PENDING', 'PAID')", name="ck_payments_status"),
    )
    op.create_index("ix_payments_id", "payments", ["id"])
    op.create_index("ix_payments_reservation_id", "payments", ["reservation_id"])
    op.create_index("ix_payments_status", "payments", ["status"])

    if _is_postgres():
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            """
            ALTER TABLE reservations
              ADD COLUMN booking_span tsrange
              GENERATED ALWAYS AS (
                tsrange(
                  (reservation_date::timestamp + start_time),
                  (reservation_date::timestamp + end_time),
                  '[)'
                )
              ) STORED
            """
        )
        op.execute(
            """
            ALTER TABLE reservations
              ADD CONSTRAINT reservations_no_overlap_per_resource
              EXCLUDE USING gist (
                resource_id WITH =,
                booking_span WITH &&
              )
              WHERE (status <> 'CANCELLED')
            """
        )


def downgrade() -> None:
    """Drop booking tables."""
    if _is_postgres():
        op.execute(
            "ALTER TABLE reservations DROP CONSTRAINT IF EXISTS reservations_no_overlap_per_resource"
        )
        op.execute("ALTER TABLE reservations DROP COLUMN IF EXISTS booking_span")

    op.drop_table("payments")
    op.drop_index("ix_reservations_resource_date_active", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("resources")
    op.drop_table("branches")
