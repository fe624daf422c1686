from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .time_utils import parse_iso_datetime


# NUMERIC(10, 2) ceiling
MAX_MONEY = Decimal("99999999.99")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """404-level: a referenced record does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate barcode)."""


# ---------------------------------------------------------------------------
# Scalar coercion shared by model payloads and procedure inputs
# ---------------------------------------------------------------------------

def coerce_int(key: str, value: Any) -> int:
    # bool is a subclass of int; reject it explicitly
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            # str() keeps 15.1 as 15.1 instead of its binary expansion
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{key} must be a finite number")
    return result


# ---------------------------------------------------------------------------
# Model-backed payloads (create/update semantics driven by column metadata)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for create payloads
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    for key in ("cost_price", "selling_price"):
        if key in patch and patch[key] is not None:
            price = patch[key]
            if price <= 0:
                raise ValidationError(f"{key} must be > 0")
            if price > MAX_MONEY:
                raise ValidationError(f"{key} cannot exceed {MAX_MONEY}")

    for key in ("stock_quantity", "min_stock_level"):
        if key in patch and patch[key] is not None and patch[key] < 0:
            raise ValidationError(f"{key} must be >= 0")

    # An empty barcode means "no barcode"
    if patch.get("barcode") == "":
        patch["barcode"] = None


# ---------------------------------------------------------------------------
# Procedure input schemas
# ---------------------------------------------------------------------------

_MISSING = object()


@dataclass(frozen=True)
class Field:
    """
    Declarative description of one input field.

    kind: "int", "decimal", "string", "bool", "email", "enum", "date", "list"
    items: element Field for "list"
    fields: nested schema (dict of Field) for list elements that are objects
    strip: trim surrounding whitespace from "string" values before length checks
    """
    kind: str
    required: bool = True
    nullable: bool = False
    default: Any = _MISSING
    min_value: Any = None
    max_value: Any = None
    exclusive_min: bool = False
    min_length: int | None = None
    max_length: int | None = None
    choices: tuple[str, ...] | None = None
    items: "Field | None" = None
    fields: dict | None = None
    strip: bool = False


def _check_bounds(key: str, rule: Field, value) -> None:
    if rule.min_value is not None:
        if rule.exclusive_min and value <= rule.min_value:
            raise ValidationError(f"{key} must be > {rule.min_value}")
        if not rule.exclusive_min and value < rule.min_value:
            raise ValidationError(f"{key} must be >= {rule.min_value}")
    if rule.max_value is not None and value > rule.max_value:
        raise ValidationError(f"{key} must be <= {rule.max_value}")


def _check_length(key: str, rule: Field, value) -> None:
    if rule.min_length is not None and len(value) < rule.min_length:
        if isinstance(value, list):
            raise ValidationError(f"{key} must contain at least {rule.min_length} item(s)")
        raise ValidationError(f"{key} must be at least {rule.min_length} characters")
    if rule.max_length is not None and len(value) > rule.max_length:
        if isinstance(value, list):
            raise ValidationError(f"{key} must contain at most {rule.max_length} item(s)")
        raise ValidationError(f"{key} exceeds max length {rule.max_length}")


def _validate_field(key: str, rule: Field, value: Any) -> Any:
    if value is None:
        if rule.nullable:
            return None
        raise ValidationError(f"{key} cannot be null")

    kind = rule.kind

    if kind == "int":
        result = coerce_int(key, value)
        _check_bounds(key, rule, result)
        return result

    if kind == "decimal":
        result = coerce_decimal(key, value)
        _check_bounds(key, rule, result)
        return result

    if kind == "bool":
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be a boolean")
        return value

    if kind in ("string", "email", "date"):
        if not isinstance(value, str):
            raise ValidationError(f"{key} must be a string")
        if kind == "string" and rule.strip:
            value = value.strip()
        if kind == "email":
            value = value.strip()
            if not EMAIL_RE.match(value):
                raise ValidationError(f"{key} must be a valid email address")
        if kind == "date":
            if not value.strip():
                raise ValidationError(f"{key} must be an ISO-8601 date")
            try:
                parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{key} must be an ISO-8601 date")
        _check_length(key, rule, value)
        return value

    if kind == "enum":
        if value not in (rule.choices or ()):
            raise ValidationError(f"{key} must be one of: {', '.join(rule.choices or ())}")
        return value

    if kind == "list":
        if not isinstance(value, list):
            raise ValidationError(f"{key} must be a list")
        _check_length(key, rule, value)
        cleaned = []
        for i, element in enumerate(value):
            element_key = f"{key}[{i}]"
            if rule.fields is not None:
                cleaned.append(validate_input(rule.fields, element, prefix=element_key))
            elif rule.items is not None:
                cleaned.append(_validate_field(element_key, rule.items, element))
            else:
                cleaned.append(element)
        return cleaned

    raise ValueError(f"Unsupported field kind: {kind}")


def validate_input(schema: dict[str, Field], payload: Any, *, prefix: str = "") -> dict:
    """
    Validate a procedure input against a schema.

    Unknown keys are rejected. Optional keys absent from the payload are
    left out of the result unless the Field declares a default, so callers
    can tell "omitted" apart from "explicit null".
    """
    if payload is None:
        payload = {}
    label = prefix or "input"
    if not isinstance(payload, dict):
        raise ValidationError(f"{label} must be an object")

    for k in payload.keys():
        if k not in schema:
            raise ValidationError(f"Unknown field: {prefix + '.' if prefix else ''}{k}")

    cleaned: dict = {}
    for key, rule in schema.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if key not in payload:
            if rule.default is not _MISSING:
                cleaned[key] = rule.default
            elif rule.required:
                raise ValidationError(f"Missing required field: {full_key}")
            continue
        cleaned[key] = _validate_field(full_key, rule, payload[key])
    return cleaned
