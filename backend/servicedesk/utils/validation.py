from __future__ import annotations
"""Validation helpers for ticket input.

Status membership and field-patch coercion live here so the lifecycle engine,
ticket creation and the routes report the same 400 errors.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping, Optional
from servicedesk.constants.workflows import (
    FIELD_BOOL, FIELD_GRADE, FIELD_MONEY, FIELD_TEXT, SCREEN_GRADES,
)
from servicedesk.errors import InvalidField, InvalidStatus

CENT = Decimal('0.01')
_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off', '')


def validate_status(new_status: Any, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises InvalidStatus.
    """
    if not isinstance(new_status, str) or new_status not in allowed:
        raise InvalidStatus(description=f"{field_name} invalid: {new_status!r}")
    return new_status


def parse_money(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidField(description=f'{field_name} invalid')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidField(description=f'{field_name} invalid')
    if not amount.is_finite() or amount < 0:
        raise InvalidField(description=f'{field_name} invalid')
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_grade(value: Any, field_name: str) -> Optional[str]:
    if value is None or value == '':
        return None
    grade = str(value).strip().upper()
    if grade not in SCREEN_GRADES:
        raise InvalidField(description=f'{field_name} must be one of {", ".join(SCREEN_GRADES)}')
    return grade


def parse_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raw = str(value).strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise InvalidField(description=f'{field_name} invalid')


def require_object(data: Any, field_name: str = 'body') -> Mapping[str, Any]:
    """JSON request bodies must be objects; a missing body counts as empty."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise InvalidField(description=f'{field_name} must be a JSON object')
    return data


def parse_text(value: Any, field_name: str, required: bool = False) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidField(description=f'{field_name} required')
        return None
    if not isinstance(value, str):
        raise InvalidField(description=f'{field_name} must be a string')
    return value.strip()


def coerce_field(name: str, field_kind: str, value: Any):
    if field_kind == FIELD_MONEY:
        return parse_money(value, name)
    if field_kind == FIELD_GRADE:
        return parse_grade(value, name)
    if field_kind == FIELD_BOOL:
        return parse_bool(value, name)
    if value is None:
        return None
    if not isinstance(value, (str, int, float)):
        raise InvalidField(description=f'{name} invalid')
    return str(value)


def coerce_patch(patch: Optional[Mapping[str, Any]], allowed: Mapping[str, str]) -> Dict[str, Any]:
    """Validate a field patch against a workflow's patchable fields.

    Unknown keys are rejected rather than ignored so a typo never looks like
    a successful update.
    """
    if not patch:
        return {}
    if not isinstance(patch, Mapping):
        raise InvalidField(description='fields must be an object')
    unknown = sorted(k for k in patch if k not in allowed)
    if unknown:
        raise InvalidField(description=f"unknown field(s): {', '.join(unknown)}")
    return {name: coerce_field(name, allowed[name], value) for name, value in patch.items()}


def format_money(amount: Optional[Decimal], symbol: str = '$') -> Optional[str]:
    if amount is None:
        return None
    return f"{symbol}{Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)}"

__all__ = ['validate_status', 'require_object', 'parse_text', 'parse_money', 'parse_grade', 'parse_bool', 'coerce_field', 'coerce_patch', 'format_money']
