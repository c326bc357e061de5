"""Create measurements table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `measurements` table and its (user_id, measurement_date DESC) index.
Rollback: downgrade() drops the table (destructive, all readings are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Column rationale is documented in suivitens/models/measurement.py."""
    op.create_table(
        "measurements",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False, comment="Owning user identifier"),
        sa.Column("systolic", sa.Integer(), nullable=False, comment="mmHg, 50-300"),
        sa.Column("diastolic", sa.Integer(), nullable=False, comment="mmHg, 30-200"),
        sa.Column("pulse", sa.Integer(), nullable=False, comment="bpm, 30-220"),
        sa.Column(
            "measurement_date",
            sa.Date(),
            nullable=False,
            comment="Calendar date of the reading",
        ),
        sa.Column(
            "measurement_time",
            sa.String(5),
            nullable=False,
            comment="Time of day, zero-padded HH:MM (24-hour)",
        ),
        sa.Column("notes", sa.String(500), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index(
        "idx_measurements_user_date",
        "measurements",
        ["user_id", sa.text("measurement_date DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_measurements_user_date", table_name="measurements")
    op.drop_table("measurements")
