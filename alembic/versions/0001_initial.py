"""Create stored_values and raffle_configurations.

Revision ID: 0001_initial
Revises:
Create Date: 2024-03-01 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "stored_values",
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("key", name=op.f("pk_stored_values")),
    )
    op.create_table(
        "raffle_configurations",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("participants", sa.JSON(), nullable=False),
        sa.Column("round_settings", sa.JSON(), nullable=True),
        sa.Column("rounds", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_raffle_configurations")),
    )
    op.create_index(
        "ix_raffle_configurations_name", "raffle_configurations", ["name"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_raffle_configurations_name", table_name="raffle_configurations")
    op.drop_table("raffle_configurations")
    op.drop_table("stored_values")
