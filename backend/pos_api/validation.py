"""
Request payload validation.

Routes validate JSON bodies against the SQLAlchemy column metadata of the
target model: a policy says which keys a client may write and which are
required on create; column types drive coercion, nullability and String
length checks. Business rules that the schema cannot express live in the
enforce_rules_* helpers.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Float, Integer, String, Text


# Upper bound for any money field; keeps typos like 1e12 out of reports
MAX_AMOUNT = 99_999_999.99

# Bound for quantities, stock and ids; well inside SQLite's 64-bit INTEGER
MAX_QUANTITY = 1_000_000_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate barcode)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    writable_fields: keys a client may set
    required_on_create: keys that must be present and non-blank on POST
    ignored_fields: read-only keys clients echo back (id, timestamps); dropped silently
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    ignored_fields: set[str] = field(default_factory=set)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{key} must be an integer, not a decimal")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if "." in text:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        if "e" in text.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        try:
            return int(text)
        except ValueError:
            pass
    raise ValidationError(f"{key} must be an integer")


def coerce_int(key: str, value: Any) -> int:
    """
    Accept ints, integral floats (JSON clients send 2.0) and plain digit
    strings, with |x| <= MAX_QUANTITY. Bools, decimals and scientific
    notation are rejected.
    """
    number = _parse_int(key, value)
    if abs(number) > MAX_QUANTITY:
        raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY:,}")
    return number


def coerce_amount(key: str, value: Any) -> float:
    """Money as float: numbers or numeric strings, finite, |x| <= MAX_AMOUNT."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{key} must be a number")
    try:
        amount = float(value.strip() if isinstance(value, str) else value)
    except ValueError:
        raise ValidationError(f"{key} must be a number")

    if not math.isfinite(amount):
        raise ValidationError(f"{key} must be a finite number")
    if abs(amount) > MAX_AMOUNT:
        raise ValidationError(f"{key} cannot exceed {MAX_AMOUNT:,.2f}")
    return amount


def _coerce_for_column(col, value: Any):
    coltype = col.type

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)
    if isinstance(coltype, Float):
        return coerce_amount(col.key, value)
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        text = str(value).strip()
        if not col.nullable and text == "":
            raise ValidationError(f"{col.key} cannot be blank")
        if isinstance(coltype, String) and coltype.length and len(text) > coltype.length:
            raise ValidationError(f"{col.key} exceeds max length {coltype.length}")
        return text
    return value


def validate_payload(
    *,
    model,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Return a cleaned patch dict containing only writable fields.

    partial=False: create semantics, required_on_create is enforced
    partial=True: update semantics, only the keys present are checked
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    incoming = {k: v for k, v in payload.items() if k not in policy.ignored_fields}

    if not partial:
        missing = sorted(f for f in policy.required_on_create if _is_missing(incoming.get(f)))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}

    patch: dict = {}
    for key, raw in incoming.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        col = columns.get(key)
        if col is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
        else:
            patch[key] = _coerce_for_column(col, raw)

    return patch


def _reject_negative(patch: dict, keys) -> None:
    for key in keys:
        if patch.get(key) is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")


def enforce_rules_product(patch: dict) -> None:
    _reject_negative(patch, ("price", "cost", "stock"))


def enforce_rules_transaction(patch: dict) -> None:
    # Amounts are computed by the register; only sign is checked here
    _reject_negative(patch, ("subtotal", "discount", "total", "cash_received", "change_amount"))
