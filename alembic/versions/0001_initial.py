"""Initial schema: donors registry

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "donors",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("area", sa.String(length=128), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("blood_group", sa.String(length=8), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("phone", name="uq_donors_phone"),
    )
    op.create_index("ix_donors_area", "donors", ["area"])
    op.create_index("ix_donors_blood_group", "donors", ["blood_group"])


def downgrade() -> None:
    op.drop_index("ix_donors_blood_group", table_name="donors")
    op.drop_index("ix_donors_area", table_name="donors")
    op.drop_table("donors")
