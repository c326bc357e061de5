"""
SuiviTens Backend — Measurement Service (Business Logic)
==========================================================

What:  Ownership-scoped CRUD over the measurements table.
How:   Every statement carries a `user_id == caller` predicate, so another
       user's rows are never loaded, changed or removed, not even transiently.
Who:   Called by the measurements route handlers.

Operations:
    list_measurements            page/limit history, newest first
    list_measurements_in_range   inclusive date range, oldest first
    create_measurement           validate → insert (owner = caller)
    update_measurement           validate supplied fields → load (id, owner) → patch
    delete_measurement           single DELETE ... WHERE id AND owner RETURNING id

Design Decision:
    MeasurementService is stateless; the session is passed to each call.
    The session commits or rolls back in get_db_session, so a failed
    operation never leaves a partial write behind.
"""

import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import asc, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from suivitens.exceptions import DatabaseError, NotFoundError, SuiviTensError
from suivitens.models.measurement import Measurement, utcnow
from suivitens.schemas.measurement import (
    MeasurementListResponse,
    MeasurementRangeResponse,
    MeasurementResponse,
    PaginationInfo,
)
from suivitens.validation import parse_measurement

logger = logging.getLogger(__name__)

RESOURCE = "Measurement"


def _parse_id(measurement_id: Any) -> Optional[uuid.UUID]:
    if isinstance(measurement_id, uuid.UUID):
        return measurement_id
    try:
        return uuid.UUID(str(measurement_id))
    except (TypeError, ValueError):
        return None


def _page_count(total: int, limit: int) -> int:
    return -(-total // limit)


class MeasurementService:
    """
    Business logic layer for measurement operations.

    Error Handling Strategy:
        Application exceptions (ValidationError, NotFoundError) propagate
        unchanged. Anything else raised while talking to the database is
        logged and wrapped in DatabaseError, which the global handler turns
        into a generic 500.
    """

    async def list_measurements(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = 50,
    ) -> MeasurementListResponse:
        """
        One page of the caller's measurements, newest first.

        Query plan:
            SELECT count(*) FROM measurements WHERE user_id = :uid
            SELECT * FROM measurements WHERE user_id = :uid
            ORDER BY measurement_date DESC, measurement_time DESC
            LIMIT :limit OFFSET :offset
            → both use idx_measurements_user_date

        A page past the end returns an empty list without running the
        second query, so arbitrarily large page/limit values never reach
        the database as OFFSET/LIMIT literals.
        """
        offset = (page - 1) * limit
        try:
            count_result = await db.execute(
                select(func.count())
                .select_from(Measurement)
                .where(Measurement.user_id == user_id)
            )
            total = count_result.scalar() or 0

            measurements: List[Measurement] = []
            if offset < total:
                result = await db.execute(
                    select(Measurement)
                    .where(Measurement.user_id == user_id)
                    .order_by(
                        desc(Measurement.measurement_date),
                        desc(Measurement.measurement_time),
                    )
                    .offset(offset)
                    .limit(min(limit, total - offset))
                )
                measurements = list(result.scalars().all())

            return MeasurementListResponse(
                measurements=[MeasurementResponse.from_model(m) for m in measurements],
                pagination=PaginationInfo(
                    current=page,
                    pages=_page_count(total, limit),
                    total=total,
                ),
            )

        except Exception as e:
            logger.error("Get measurements error for user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve measurements. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def list_measurements_in_range(
        self,
        db: AsyncSession,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> MeasurementRangeResponse:
        """Caller's measurements with start_date <= measurement_date <= end_date, oldest first."""
        try:
            result = await db.execute(
                select(Measurement)
                .where(
                    Measurement.user_id == user_id,
                    Measurement.measurement_date >= start_date,
                    Measurement.measurement_date <= end_date,
                )
                .order_by(
                    asc(Measurement.measurement_date),
                    asc(Measurement.measurement_time),
                )
            )
            measurements = result.scalars().all()
            return MeasurementRangeResponse(
                measurements=[MeasurementResponse.from_model(m) for m in measurements],
            )

        except Exception as e:
            logger.error(
                "Get measurements range error for user %s: %s", user_id, str(e), exc_info=True
            )
            raise DatabaseError(
                message="Could not retrieve measurements. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def create_measurement(
        self,
        db: AsyncSession,
        user_id: str,
        payload: Dict[str, Any],
    ) -> MeasurementResponse:
        """
        Validate and insert a new measurement owned by the caller.

        Raises:
            ValidationError: one or more fields failed; nothing was added to the session
            DatabaseError: the insert failed
        """
        values = parse_measurement(payload, partial=False)

        now = utcnow()
        measurement = Measurement(
            id=uuid.uuid4(),
            user_id=user_id,
            created_at=now,
            updated_at=now,
            **values,
        )

        try:
            db.add(measurement)
            await db.flush()
        except Exception as e:
            logger.error("Create measurement error: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the measurement. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Measurement %s created for user %s", measurement.id, user_id)
        return MeasurementResponse.from_model(measurement)

    async def update_measurement(
        self,
        db: AsyncSession,
        user_id: str,
        measurement_id: Any,
        payload: Dict[str, Any],
    ) -> MeasurementResponse:
        """
        Patch the supplied fields of one of the caller's measurements.

        Absent fields are left untouched. Validation runs before the lookup,
        so an invalid payload is a 400 whether or not the record exists.

        Raises:
            ValidationError: a supplied field failed its check
            NotFoundError: no such id for this caller (other users' ids included)
            DatabaseError: the lookup or write failed
        """
        values = parse_measurement(payload, partial=True)

        record_id = _parse_id(measurement_id)
        if record_id is None:
            raise NotFoundError(resource=RESOURCE)

        try:
            result = await db.execute(
                select(Measurement).where(
                    Measurement.id == record_id,
                    Measurement.user_id == user_id,
                )
            )
            measurement = result.scalar_one_or_none()

            if measurement is None:
                raise NotFoundError(resource=RESOURCE, resource_id=str(record_id))

            for attr, value in values.items():
                setattr(measurement, attr, value)
            if values:
                measurement.updated_at = utcnow()
                await db.flush()

            logger.info(
                "Measurement %s updated for user %s (fields: %s)",
                measurement.id,
                user_id,
                ", ".join(sorted(values)) or "none",
            )
            return MeasurementResponse.from_model(measurement)

        except SuiviTensError:
            raise
        except Exception as e:
            logger.error("Update measurement error: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the measurement. Please try again.",
                context={"measurement_id": str(record_id), "error_type": type(e).__name__},
            )

    async def delete_measurement(
        self,
        db: AsyncSession,
        user_id: str,
        measurement_id: Any,
    ) -> None:
        """
        Remove one of the caller's measurements in a single statement.

        DELETE FROM measurements WHERE id = :id AND user_id = :uid RETURNING id

        There is no separate existence check, so no window exists between
        "found" and "deleted".

        Raises:
            NotFoundError: nothing matched (missing id, other owner, already deleted)
            DatabaseError: the statement failed
        """
        record_id = _parse_id(measurement_id)
        if record_id is None:
            raise NotFoundError(resource=RESOURCE)

        try:
            result = await db.execute(
                delete(Measurement)
                .where(
                    Measurement.id == record_id,
                    Measurement.user_id == user_id,
                )
                .returning(Measurement.id)
            )
            deleted_id = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Delete measurement error: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the measurement. Please try again.",
                context={"measurement_id": str(record_id), "error_type": type(e).__name__},
            )

        if deleted_id is None:
            raise NotFoundError(resource=RESOURCE, resource_id=str(record_id))

        logger.info("Measurement %s deleted for user %s", deleted_id, user_id)


# Stateless; safe to share across requests
measurement_service = MeasurementService()
