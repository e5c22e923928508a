"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Creates:
- origin_plan (tour / generated plan registry)
- itinerary_day (day documents with embedded activities)
- budget_breakdown (budget line items)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSONDocument = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "origin_plan",
        sa.Column("plan_id", sa.String(64), primary_key=True),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "itinerary_day",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("origin_id", sa.String(64), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("notes", sa.Text(), nullable=False, server_default=""),
        sa.Column("activities", JSONDocument, nullable=False),
        sa.Column("day_total", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("user_modified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("origin_id", "day_number", "type", name="uq_day_origin_number_type"),
    )
    op.create_index("idx_day_origin", "itinerary_day", ["origin_id"])
    op.create_index("idx_day_type", "itinerary_day", ["type"])

    op.create_table(
        "budget_breakdown",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("itinerary_id", sa.String(64), nullable=False),
        sa.Column("day_number", sa.Integer(), nullable=False),
        sa.Column("activity_id", sa.String(64), nullable=True),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("item_name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Float(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Float(), nullable=False),
        sa.Column("total_price", sa.Float(), nullable=False),
        sa.Column("is_included", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_optional", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("currency", sa.String(3), nullable=False, server_default="VND"),
        sa.Column("supplier", JSONDocument, nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_budget_itinerary_day", "budget_breakdown", ["itinerary_id", "day_number"])
    op.create_index("idx_budget_itinerary_category", "budget_breakdown", ["itinerary_id", "category"])
    op.create_index("idx_budget_activity", "budget_breakdown", ["activity_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("budget_breakdown")
    op.drop_table("itinerary_day")
    op.drop_table("origin_plan")
