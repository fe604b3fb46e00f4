"""create generated timetables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "generated_timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=True),
        sa.Column("semester", sa.Integer(), nullable=True),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_generated_timetables_academic_year", "generated_timetables", ["academic_year"])
    op.create_index("ix_generated_timetables_semester", "generated_timetables", ["semester"])
    op.create_index("ix_generated_timetables_department", "generated_timetables", ["department"])


def downgrade() -> None:
    op.drop_index("ix_generated_timetables_department", table_name="generated_timetables")
    op.drop_index("ix_generated_timetables_semester", table_name="generated_timetables")
    op.drop_index("ix_generated_timetables_academic_year", table_name="generated_timetables")
    op.drop_table("generated_timetables")
