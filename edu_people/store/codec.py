"""Conversion between JSON-style Python values and the boto3 DynamoDB resource types."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from edu_people.core.exceptions import ValidationError

# DynamoDB numbers: up to 38 significant digits, magnitude between 1E-130 and 1E+126.
MAX_DIGITS = 38
MAX_EXPONENT = 125
MIN_EXPONENT = -130


def _check_number(value: Any) -> Decimal:
    number = Decimal(str(value))
    if not number.is_finite():
        raise ValidationError(f"DynamoDB cannot store the number {value!r}")
    if number != 0:
        exponent = number.adjusted()
        if exponent > MAX_EXPONENT or exponent < MIN_EXPONENT:
            raise ValidationError(f"Number {value!r} is outside the range DynamoDB can store")
        if len(number.normalize().as_tuple().digits) > MAX_DIGITS:
            raise ValidationError(f"Number {value!r} has more than {MAX_DIGITS} significant digits")
    return number


def to_dynamo(value: Any) -> Any:
    """Prepare a value for the DynamoDB resource, which rejects floats.

    Numbers DynamoDB cannot hold raise `ValidationError` before any write.
    """

    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return _check_number(value)
    if isinstance(value, int):
        _check_number(value)
        return value
    if isinstance(value, dict):
        return {key: to_dynamo(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamo(item) for item in value]
    return value


def from_dynamo(value: Any) -> Any:
    """Undo the resource's Decimal numbers so records serialize as plain JSON."""

    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, dict):
        return {key: from_dynamo(item) for key, item in value.items()}
    if isinstance(value, list):
        return [from_dynamo(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(from_dynamo(item) for item in value)
    return value
