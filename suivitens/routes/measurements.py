"""
SuiviTens Backend — Measurements Route Handlers
=================================================

What:  The five measurement endpoints under /api/measurements.
How:   Each handler resolves the caller (require_user), coerces query
       parameters, delegates to MeasurementService and shapes the response.
       Errors are raised as application exceptions and formatted by the
       global handlers in main.py.

Routes:
    GET    /api/measurements?page&limit                 paginated history
    GET    /api/measurements/range?startDate&endDate    inclusive date range
    POST   /api/measurements                            create (201)
    PUT    /api/measurements/{measurement_id}           partial update
    DELETE /api/measurements/{measurement_id}           delete
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from suivitens.database import get_db_session
from suivitens.exceptions import MissingParameterError
from suivitens.middleware.auth import require_user
from suivitens.schemas.measurement import (
    ErrorResponse,
    MeasurementListResponse,
    MeasurementMutationResponse,
    MeasurementRangeResponse,
    MessageResponse,
)
from suivitens.services.measurement_service import measurement_service
from suivitens.validation import parse_date_param, parse_page_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/measurements", tags=["Measurements"])

AUTH_RESPONSES = {401: {"description": "Missing or invalid bearer token", "model": ErrorResponse}}
SERVER_ERROR = {500: {"description": "Server error", "model": ErrorResponse}}


@router.get(
    "",
    response_model=MeasurementListResponse,
    responses={**AUTH_RESPONSES, **SERVER_ERROR},
    summary="List the caller's measurements, newest first",
)
async def list_measurements(
    response: Response,
    page: Optional[str] = Query(default=None, description="Page number (default 1)"),
    limit: Optional[str] = Query(default=None, description="Items per page (default 50)"),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementListResponse:
    """
    page and limit are taken as strings and coerced leniently: a value that
    is not a positive integer falls back to its default instead of failing.
    """
    page_number, page_size = parse_page_params(page, limit)
    result = await measurement_service.list_measurements(
        db=db,
        user_id=user_id,
        page=page_number,
        limit=page_size,
    )
    response.headers["X-Total-Count"] = str(result.pagination.total)
    return result


@router.get(
    "/range",
    response_model=MeasurementRangeResponse,
    responses={
        400: {"description": "Missing or malformed date", "model": ErrorResponse},
        **AUTH_RESPONSES,
        **SERVER_ERROR,
    },
    summary="List the caller's measurements between two dates (inclusive)",
)
async def list_measurements_in_range(
    start_date: Optional[str] = Query(default=None, alias="startDate"),
    end_date: Optional[str] = Query(default=None, alias="endDate"),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementRangeResponse:
    missing = [
        name for name, value in (("startDate", start_date), ("endDate", end_date)) if not value
    ]
    if missing:
        raise MissingParameterError(
            parameters=missing,
            message="Start date and end date are required",
        )

    return await measurement_service.list_measurements_in_range(
        db=db,
        user_id=user_id,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate"),
    )


@router.post(
    "",
    status_code=201,
    response_model=MeasurementMutationResponse,
    responses={
        400: {"description": "Validation errors", "model": ErrorResponse},
        **AUTH_RESPONSES,
        **SERVER_ERROR,
    },
    summary="Record a new measurement",
)
async def create_measurement(
    payload: Dict[str, Any] = Body(...),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementMutationResponse:
    """The owner is always the caller; a userId in the body is ignored."""
    measurement = await measurement_service.create_measurement(
        db=db,
        user_id=user_id,
        payload=payload,
    )
    return MeasurementMutationResponse(
        message="Measurement created successfully",
        measurement=measurement,
    )


@router.put(
    "/{measurement_id}",
    response_model=MeasurementMutationResponse,
    responses={
        400: {"description": "Validation errors", "model": ErrorResponse},
        **AUTH_RESPONSES,
        404: {"description": "Measurement not found", "model": ErrorResponse},
        **SERVER_ERROR,
    },
    summary="Update the supplied fields of a measurement",
)
async def update_measurement(
    measurement_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MeasurementMutationResponse:
    measurement = await measurement_service.update_measurement(
        db=db,
        user_id=user_id,
        measurement_id=measurement_id,
        payload=payload or {},
    )
    return MeasurementMutationResponse(
        message="Measurement updated successfully",
        measurement=measurement,
    )


@router.delete(
    "/{measurement_id}",
    response_model=MessageResponse,
    responses={
        **AUTH_RESPONSES,
        404: {"description": "Measurement not found", "model": ErrorResponse},
        **SERVER_ERROR,
    },
    summary="Delete a measurement",
)
async def delete_measurement(
    measurement_id: str,
    user_id: str = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await measurement_service.delete_measurement(
        db=db,
        user_id=user_id,
        measurement_id=measurement_id,
    )
    return MessageResponse(message="Measurement deleted successfully")
