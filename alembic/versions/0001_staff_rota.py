"""staff roster, weekly events and allocations

Revision ID: 0001_staff_rota
Revises: 
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_staff_rota"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "staff_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_id", sa.String(length=120), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=40), nullable=False),
        sa.Column("break_timings", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "role IN ('head_bartender', 'senior_bartender', 'bartender', 'bar_back', 'support')",
            name="ck_staff_members_role",
        ),
        sa.UniqueConstraint("staff_id"),
    )
    op.create_index("ix_staff_members_staff_id", "staff_members", ["staff_id"], unique=True)

    op.create_table(
        "weekly_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("event_name", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("week_start", "day", name="uq_weekly_events_week_day"),
    )
    op.create_index("ix_weekly_events_week_start", "weekly_events", ["week_start"], unique=False)

    op.create_table(
        "staff_allocations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("staff_member_id", sa.String(length=120), nullable=False),
        sa.Column("allocation_date", sa.Date(), nullable=False),
        sa.Column("shift_type", sa.String(length=20), nullable=False),
        sa.Column("time_start", sa.String(length=5), nullable=True),
        sa.Column("time_end", sa.String(length=5), nullable=True),
        sa.Column("station", sa.JSON(), nullable=True),
        sa.Column("station_assignment", sa.Text(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "shift_type IN ('off', 'opening', 'closing', 'pickup', 'brunch', 'early_shift', 'late_shift', 'regular')",
            name="ck_staff_allocations_shift_type",
        ),
        sa.UniqueConstraint("staff_member_id", "allocation_date", name="uq_staff_allocations_staff_date"),
    )
    op.create_index("ix_staff_allocations_staff_member_id", "staff_allocations", ["staff_member_id"], unique=False)
    op.create_index("ix_staff_allocations_allocation_date", "staff_allocations", ["allocation_date"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_staff_allocations_allocation_date", table_name="staff_allocations")
    op.drop_index("ix_staff_allocations_staff_member_id", table_name="staff_allocations")
    op.drop_table("staff_allocations")
    op.drop_index("ix_weekly_events_week_start", table_name="weekly_events")
    op.drop_table("weekly_events")
    op.drop_index("ix_staff_members_staff_id", table_name="staff_members")
    op.drop_table("staff_members")
