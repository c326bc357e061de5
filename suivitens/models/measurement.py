"""
SuiviTens Backend — Measurement SQLAlchemy Model
==================================================

What:  ORM model representing the `measurements` table.
How:   Inherits from the shared DeclarativeBase; Alembic reads this for migrations.
Who:   Used by MeasurementService for CRUD operations.

Table Design:
    - UUID primary key assigned in Python on insert
    - user_id: opaque id of the owning user (the users table lives elsewhere)
    - measurement_date: DATE, so range queries are inclusive on whole days
    - measurement_time: "HH:MM", always zero-padded so it sorts chronologically
    - created_at / updated_at: maintained by the ORM on insert / update

    Index on (user_id, measurement_date DESC):
        Serves both the paginated history query and the date range query,
        which always filter on user_id first.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Date, DateTime, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from suivitens.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Measurement(Base):
    """
    One blood-pressure reading owned by one user.

    Lifecycle:
        1. Created by MeasurementService.create_measurement (owner = caller)
        2. Patched field-by-field by update_measurement
        3. Removed by delete_measurement, scoped to the same owner
    """

    __tablename__ = "measurements"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Never reassigned after insert
    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Owning user identifier",
    )

    systolic: Mapped[int] = mapped_column(Integer, nullable=False, comment="mmHg, 50-300")
    diastolic: Mapped[int] = mapped_column(Integer, nullable=False, comment="mmHg, 30-200")
    pulse: Mapped[int] = mapped_column(Integer, nullable=False, comment="bpm, 30-220")

    measurement_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Calendar date of the reading",
    )
    measurement_time: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        comment="Time of day, zero-padded HH:MM (24-hour)",
    )

    notes: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
        server_default=text("''"),
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return (
            f"<Measurement(id={self.id}, user_id='{self.user_id}', "
            f"{self.systolic}/{self.diastolic} pulse={self.pulse}, "
            f"at='{self.measurement_date} {self.measurement_time}')>"
        )


Index(
    "idx_measurements_user_date",
    Measurement.user_id,
    Measurement.measurement_date.desc(),
)
