"""
SuiviTens Backend — Pydantic Response Schemas
===============================================

What:  Pydantic models defining what the API returns.
How:   FastAPI serializes route results through these models (by alias, so
       Python snake_case attributes become camelCase JSON keys) and builds
       the OpenAPI docs from them.

Request bodies are NOT declared here: create/update payloads are plain JSON
objects checked by suivitens.validation, which reports every failing field
at once instead of FastAPI's 422 format.
"""

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for response models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MeasurementResponse(CamelModel):
    """Full representation of one measurement."""

    id: uuid.UUID = Field(description="Unique measurement identifier")
    user_id: str = Field(description="Owning user identifier")
    systolic: int = Field(description="Systolic pressure (mmHg)")
    diastolic: int = Field(description="Diastolic pressure (mmHg)")
    pulse: int = Field(description="Pulse (bpm)")
    measurement_date: date = Field(description="Calendar date of the reading")
    measurement_time: str = Field(description="Time of day, HH:MM")
    notes: str = Field(default="", description="Free text, at most 500 characters")
    created_at: datetime = Field(description="When the record was created")
    updated_at: datetime = Field(description="When the record was last modified")

    @classmethod
    def from_model(cls, measurement: Any) -> "MeasurementResponse":
        return cls(
            id=measurement.id,
            user_id=measurement.user_id,
            systolic=measurement.systolic,
            diastolic=measurement.diastolic,
            pulse=measurement.pulse,
            measurement_date=measurement.measurement_date,
            measurement_time=measurement.measurement_time,
            notes=measurement.notes or "",
            created_at=measurement.created_at,
            updated_at=measurement.updated_at,
        )


class PaginationInfo(CamelModel):
    current: int = Field(description="Requested page number")
    pages: int = Field(description="ceil(total / limit)")
    total: int = Field(description="Total measurements owned by the caller")


class MeasurementListResponse(CamelModel):
    """Returned by GET /api/measurements."""

    measurements: List[MeasurementResponse]
    pagination: PaginationInfo


class MeasurementRangeResponse(CamelModel):
    """Returned by GET /api/measurements/range."""

    measurements: List[MeasurementResponse]


class MeasurementMutationResponse(CamelModel):
    """Returned by POST and PUT."""

    message: str
    measurement: MeasurementResponse


class MessageResponse(CamelModel):
    """Returned by DELETE."""

    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Measurement not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    errors: Optional[List[Dict[str, Any]]] = Field(
        default=None, description="Per-field violations (validation errors only)"
    )
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Static liveness payload returned by GET /health."""
    message: str = Field(description="Service banner")
    status: str = Field(description="Always OK when the process is serving")
    version: str = Field(description="Application version")
