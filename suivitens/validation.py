"""
SuiviTens Backend — Measurement Validation
============================================

What:  Explicit per-field checks for measurement payloads and query parameters.
How:   Each field has one checker returning (clean_value, error_message).
       `validate_measurement()` returns every violation; `parse_measurement()`
       raises ValidationError with all of them or returns the cleaned values.
Who:   MeasurementService (create/update) and the measurements routes
       (pagination and date parameters).

Field rules:
    systolic          integer 50-300
    diastolic         integer 30-200
    pulse             integer 30-220
    measurementDate   YYYY-MM-DD, a real calendar date
    measurementTime   H:MM or HH:MM, 24-hour (normalized to HH:MM)
    notes             text, at most 500 characters (optional, defaults to "")
"""

import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from suivitens.exceptions import FieldViolation, ValidationError

NOTES_MAX_LENGTH = 500
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
INT_STRING_PATTERN = re.compile(r"^[+-]?\d+$")
LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")

# JSON name → (attribute name, (min, max))
INTEGER_FIELDS: Dict[str, Tuple[str, Tuple[int, int]]] = {
    "systolic": ("systolic", (50, 300)),
    "diastolic": ("diastolic", (30, 200)),
    "pulse": ("pulse", (30, 220)),
}

REQUIRED_FIELDS = ("systolic", "diastolic", "pulse", "measurementDate", "measurementTime")

CheckResult = Tuple[Any, Optional[str]]


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and INT_STRING_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def _integer_checker(name: str, bounds: Tuple[int, int]) -> Callable[[Any], CheckResult]:
    low, high = bounds

    def check(value: Any) -> CheckResult:
        number = _to_int(value)
        if number is None or not low <= number <= high:
            return None, f"{name} must be an integer between {low} and {high}"
        return number, None

    return check


def check_date(value: Any, name: str = "measurementDate") -> CheckResult:
    """Accepts a date (not datetime) or a YYYY-MM-DD string naming a real day."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value, None
    if isinstance(value, str) and DATE_PATTERN.match(value.strip()):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date(), None
        except ValueError:
            pass
    return None, f"{name} must be a valid date (YYYY-MM-DD)"


def check_time(value: Any) -> CheckResult:
    if isinstance(value, str):
        match = TIME_PATTERN.match(value.strip())
        if match:
            return f"{int(match.group(1)):02d}:{match.group(2)}", None
    return None, "measurementTime must be in HH:MM format (00:00-23:59)"


def check_notes(value: Any) -> CheckResult:
    if value is None:
        return "", None
    if not isinstance(value, str):
        return None, "notes must be text"
    if len(value) > NOTES_MAX_LENGTH:
        return None, f"notes must be at most {NOTES_MAX_LENGTH} characters"
    return value, None


# JSON name → (model attribute, checker)
FIELD_CHECKS: Dict[str, Tuple[str, Callable[[Any], CheckResult]]] = {
    **{
        json_name: (attr, _integer_checker(json_name, bounds))
        for json_name, (attr, bounds) in INTEGER_FIELDS.items()
    },
    "measurementDate": ("measurement_date", check_date),
    "measurementTime": ("measurement_time", check_time),
    "notes": ("notes", check_notes),
}


def _run_checks(
    payload: Dict[str, Any], partial: bool
) -> Tuple[Dict[str, Any], List[FieldViolation]]:
    values: Dict[str, Any] = {}
    violations: List[FieldViolation] = []

    for json_name, (attr, check) in FIELD_CHECKS.items():
        if json_name not in payload:
            if not partial and json_name in REQUIRED_FIELDS:
                violations.append(
                    FieldViolation(field=json_name, message=f"{json_name} is required")
                )
            continue

        raw = payload[json_name]
        clean, error = check(raw)
        if error:
            violations.append(FieldViolation(field=json_name, message=error, value=raw))
        else:
            values[attr] = clean

    if not partial:
        values.setdefault("notes", "")
    return values, violations


def validate_measurement(payload: Dict[str, Any], partial: bool = False) -> List[FieldViolation]:
    """
    Check a measurement payload and return every field-level violation.

    Args:
        payload: Decoded JSON body, keyed by API (camelCase) field names.
                 Unknown keys, including any client-supplied userId, are ignored.
        partial: True for updates; only the keys present are checked.

    Returns:
        Empty list when the payload is acceptable.
    """
    return _run_checks(payload, partial)[1]


def parse_measurement(payload: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate a payload and return clean values keyed by model attribute name.

    Raises:
        ValidationError: listing every failing field; nothing is returned
        for the fields that passed.
    """
    if not isinstance(payload, dict):
        raise ValidationError(
            violations=[FieldViolation(field="body", message="Request body must be a JSON object")]
        )
    values, violations = _run_checks(payload, partial)
    if violations:
        raise ValidationError(violations=violations)
    return values


def coerce_positive_int(raw: Optional[str], default: int) -> int:
    """
    Lenient integer coercion for pagination parameters.

    Reads the leading integer of the string ("3abc" → 3). Missing, non-numeric,
    zero or negative input falls back to the default.
    """
    if raw is None:
        return default
    match = LEADING_INT_PATTERN.match(str(raw))
    if not match:
        return default
    value = int(match.group(1))
    return value if value > 0 else default


def parse_page_params(page: Optional[str], limit: Optional[str]) -> Tuple[int, int]:
    return coerce_positive_int(page, DEFAULT_PAGE), coerce_positive_int(limit, DEFAULT_LIMIT)


def parse_date_param(raw: str, name: str) -> date:
    """Parses a required YYYY-MM-DD query parameter or raises ValidationError."""
    value, error = check_date(raw, name)
    if error:
        raise ValidationError(
            message=error,
            violations=[FieldViolation(field=name, message=error, value=raw)],
        )
    return value
