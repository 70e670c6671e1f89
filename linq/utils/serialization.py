"""Conversions between JSON values and model field types."""
import uuid
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from linq.exceptions import BadRequestError


def parse_uuid(value: Any, field: str = 'id') -> uuid.UUID:
    """Parse a UUID from a string (or UUID); raise BadRequestError otherwise."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise BadRequestError(f"invalid {field}: {value!r} is not a UUID")


def parse_decimal(value: Any, field: str = 'value') -> Optional[Decimal]:
    """Parse an optional numeric JSON value into a Decimal."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise BadRequestError(f"invalid {field}: {value!r} is not a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise BadRequestError(f"invalid {field}: {value!r} is not a number")


def format_decimal(value: Any) -> Optional[str]:
    """Decimals travel as strings to keep their precision."""
    if value is None:
        return None
    return str(value)


def format_datetime(value: Any) -> Optional[str]:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
