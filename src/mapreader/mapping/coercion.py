"""Type-directed coercion rules for assigning untyped values to properties.

Each resolved property gets one of three assignment strategies, chosen by
its TypeCategory:

- REFERENCE / NULLABLE_VALUE: type-safe cast, falling back to the type's
  empty value when the incoming value is None or of the wrong type.
- ENUM: skipped on None; otherwise converted to a 32-bit int, then to the
  enum.
- PRIMITIVE_VALUE: skipped on None; assigned as-is when the runtime type
  matches exactly, otherwise passed through change_type().

Only the ENUM and PRIMITIVE_VALUE paths can raise (ConversionError). On the
reference paths a mismatched value leaves the property in its empty state.
"""

from __future__ import annotations

import datetime
import math
import numbers
import operator
import uuid
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any, get_origin

import numpy as np
import pandas as pd

from mapreader.mapping.resolver import is_optional, is_union, non_none_args
from mapreader.models.descriptor import ResolvedProperty, TypeCategory

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# Reference types whose empty value is their no-argument construction.
_EMPTY_CONSTRUCTIBLE: frozenset[type] = frozenset(
    {str, bytes, bytearray, list, dict, set, frozenset, tuple}
)

Assign = Callable[[Any, Any], None]
"""(target, value) -> None"""


class MapperError(Exception):
    """Base class for all errors raised by the mapping engine."""


class ConversionError(MapperError, ValueError):
    """Raised when a value cannot be converted to a property's declared type.

    Only enum and primitive-value properties raise this; there is no safe
    default for them.
    """

    def __init__(self, value: Any, target: Any, reason: str | None = None) -> None:
        self.value = value
        self.target = target
        target_name = getattr(target, "__name__", repr(target))
        msg = f"Cannot convert {value!r} ({type(value).__name__}) to {target_name}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# --- generic value conversion ---


def _to_int(value: Any) -> int:
    if isinstance(value, (str, bytes)):
        return int(value.strip())
    if isinstance(value, numbers.Integral):
        return operator.index(value)
    if isinstance(value, (numbers.Real, Decimal)):
        if not math.isfinite(value):
            raise ValueError("value is not finite")
        # round half to even
        return int(round(value))
    return operator.index(value)


def _to_bool(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token == "true":
            return True
        if token == "false":
            return False
        raise ValueError(f"'{value}' is not a valid boolean")
    if isinstance(value, (numbers.Number, Decimal)):
        return value != 0
    raise TypeError(f"{type(value).__name__} has no boolean conversion")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, (float, np.floating)):
        return Decimal(str(value))
    if isinstance(value, np.integer):
        return Decimal(int(value))
    if isinstance(value, str):
        return Decimal(value.strip())
    return Decimal(value)


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value.strip())
    if isinstance(value, np.datetime64):
        return pd.Timestamp(value).to_pydatetime()
    raise TypeError(f"{type(value).__name__} has no datetime conversion")


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, str):
        return datetime.date.fromisoformat(value.strip())
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return value
    return _to_datetime(value).date()


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, str):
        return datetime.time.fromisoformat(value.strip())
    return _to_datetime(value).time()


def _to_timedelta(value: Any) -> datetime.timedelta:
    if isinstance(value, (str, np.timedelta64, datetime.timedelta)):
        return pd.Timedelta(value).to_pytimedelta()
    raise TypeError(f"{type(value).__name__} has no timedelta conversion")


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return uuid.UUID(bytes=bytes(value))
    if isinstance(value, str):
        return uuid.UUID(value.strip())
    raise TypeError(f"{type(value).__name__} has no UUID conversion")


CONVERTERS: dict[type, Callable[[Any], Any]] = {
    int: _to_int,
    float: float,
    bool: _to_bool,
    complex: complex,
    str: str,
    Decimal: _to_decimal,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
    datetime.time: _to_time,
    datetime.timedelta: _to_timedelta,
    uuid.UUID: _to_uuid,
}


def change_type(value: Any, target: type) -> Any:
    """Convert ``value`` to ``target`` using the registered converter.

    Types without a registered converter are called as ``target(value)``.

    Args:
        value: Any non-None value.
        target: The destination type.

    Returns:
        A value whose type is ``target``.

    Raises:
        ConversionError: If the conversion fails for any reason.
    """
    converter = CONVERTERS.get(target, target)
    try:
        return converter(value)
    except (ValueError, TypeError, OverflowError, ArithmeticError, InvalidOperation) as e:
        raise ConversionError(value, target, str(e)) from e


def to_int32(value: Any) -> int:
    """Convert ``value`` to an int in the signed 32-bit range."""
    result = value if type(value) is int else change_type(value, int)
    if not INT32_MIN <= result <= INT32_MAX:
        raise ConversionError(value, int, "value is outside the 32-bit integer range")
    return result


# --- empty values and instance checks ---


def empty_value(declared_type: Any) -> Any:
    """Value a reference property receives when the cast fails.

    None for optional and arbitrary reference types; ``T()`` for the
    builtin strings, bytes and containers.
    """
    if is_optional(declared_type):
        return None
    origin = get_origin(declared_type) or declared_type
    if origin in _EMPTY_CONSTRUCTIBLE:
        return origin()
    return None


def _instance_types(declared_type: Any) -> tuple[type, ...] | None:
    """Runtime classes accepted by a cast, or None to accept anything."""
    members = non_none_args(declared_type) if is_union(declared_type) else (declared_type,)
    accepted: list[type] = []
    for member in members:
        member = get_origin(member) or member
        if member is Any or member is object:
            return None
        if isinstance(member, type):
            accepted.append(member)
    return tuple(accepted) if accepted else None


# --- strategies ---


def _reference_rule(prop: ResolvedProperty) -> Assign:
    name = prop.name
    declared = prop.declared_type
    accepted = _instance_types(declared)

    if accepted is None:

        def assign_any(target: Any, value: Any) -> None:
            setattr(target, name, value)

        return assign_any

    def assign_reference(target: Any, value: Any) -> None:
        if isinstance(value, accepted):
            setattr(target, name, value)
        else:
            # fresh instance each time so containers are never shared
            setattr(target, name, empty_value(declared))

    return assign_reference


def _nullable_value_rule(prop: ResolvedProperty) -> Assign:
    name = prop.name
    accepted = non_none_args(prop.declared_type)
    rejects_bool = bool not in accepted

    def assign_nullable(target: Any, value: Any) -> None:
        # bool subclasses int but is never an int value here
        if isinstance(value, accepted) and not (rejects_bool and isinstance(value, bool)):
            setattr(target, name, value)
        else:
            setattr(target, name, None)

    return assign_nullable


def _enum_rule(prop: ResolvedProperty) -> Assign:
    name = prop.name
    enum_type = prop.declared_type

    def assign_enum(target: Any, value: Any) -> None:
        if value is None:
            return
        number = to_int32(value)
        try:
            member = enum_type(number)
        except ValueError as e:
            raise ConversionError(value, enum_type, str(e)) from e
        setattr(target, name, member)

    return assign_enum


def _primitive_rule(prop: ResolvedProperty) -> Assign:
    name = prop.name
    declared = prop.declared_type

    def assign_primitive(target: Any, value: Any) -> None:
        if value is None:
            return
        if type(value) is declared:
            setattr(target, name, value)
        else:
            setattr(target, name, change_type(value, declared))

    return assign_primitive


STRATEGIES: dict[TypeCategory, Callable[[ResolvedProperty], Assign]] = {
    TypeCategory.REFERENCE: _reference_rule,
    TypeCategory.NULLABLE_VALUE: _nullable_value_rule,
    TypeCategory.ENUM: _enum_rule,
    TypeCategory.PRIMITIVE_VALUE: _primitive_rule,
}


def build_assignment(prop: ResolvedProperty) -> Assign:
    """Build the assignment closure for one property from its category."""
    return STRATEGIES[prop.category](prop)
