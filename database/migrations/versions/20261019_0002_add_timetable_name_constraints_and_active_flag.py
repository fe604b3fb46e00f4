"""add timetable name, constraints and active flag

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("generated_timetables") as batch_op:
        batch_op.add_column(
            sa.Column("name", sa.String(length=200), nullable=False, server_default="Generated timetable")
        )
        batch_op.add_column(sa.Column("constraints", sa.JSON(), nullable=True))
        batch_op.add_column(sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()))
        batch_op.create_index("ix_generated_timetables_is_active", ["is_active"])


def downgrade() -> None:
    with op.batch_alter_table("generated_timetables") as batch_op:
        batch_op.drop_index("ix_generated_timetables_is_active")
        batch_op.drop_column("is_active")
        batch_op.drop_column("constraints")
        batch_op.drop_column("name")
