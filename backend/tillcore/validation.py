# Overview: Error taxonomy and strict input coercion for money and identifiers.

from __future__ import annotations

from typing import Any


# Maximum single amount: 9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., second open shift)."""


class NotFoundError(LookupError):
    """404-level missing shift, customer, or alert."""


class AccessDeniedError(PermissionError):
    """403-level: caller may not act on this record."""


class ConsistencyError(RuntimeError):
    """
    Persisted state disagrees with its own audit trail.

    Never corrected automatically. Carries the mismatches so an operator
    can investigate.
    """

    def __init__(self, message: str, *, details: list[dict] | None = None):
        super().__init__(message)
        self.details = details or []


def parse_cents(value: Any, field: str, *, allow_zero: bool = True, required: bool = True) -> int | None:
    """
    Coerce an incoming money value to integer cents.

    Rejects floats, booleans, scientific notation and decimal strings so
    that running balances never accumulate floating-point drift.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer number of cents")

    if isinstance(value, int):
        cents = value
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer number of cents, not a decimal")
    elif isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer number of cents (no decimals)")
        try:
            cents = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer number of cents")
    else:
        raise ValidationError(f"{field} must be an integer number of cents")

    if cents < 0:
        raise ValidationError(f"{field} cannot be negative")
    if cents == 0 and not allow_zero:
        raise ValidationError(f"{field} must be positive")
    if cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT_CENTS} cents")
    return cents


def require_positive_cents(value: Any, field: str) -> int:
    """Shorthand for amounts that must be strictly greater than zero."""
    return parse_cents(value, field, allow_zero=False)  # type: ignore[return-value]


def parse_int_id(value: Any, field: str, *, required: bool = True) -> int | None:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError(f"{field} must be an integer")
