"""Property discovery for target classes.

Walks a class and its ancestors (derived first) and collects every public,
settable attribute together with its resolved type and coercion category.
The result is flattened once per class; callers never re-walk the
inheritance chain.
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import inspect
import sys
import types
import uuid
from decimal import Decimal
from typing import (
    Annotated,
    Any,
    ClassVar,
    Final,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from loguru import logger

from mapreader.models.descriptor import ResolvedProperty, TargetTypeDescriptor, TypeCategory

# Types with value semantics: converted on mismatch rather than cast.
VALUE_TYPES: frozenset[type] = frozenset(
    {
        int,
        float,
        bool,
        complex,
        Decimal,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
    }
)

_UNION_ORIGINS = (Union, types.UnionType)
_CLASS_LEVEL_NAMES = frozenset({"ClassVar", "Final", "typing.ClassVar", "typing.Final"})


def is_union(declared_type: Any) -> bool:
    return get_origin(declared_type) in _UNION_ORIGINS


def is_optional(declared_type: Any) -> bool:
    """True if the annotation is a union that admits None."""
    return is_union(declared_type) and type(None) in get_args(declared_type)


def strip_annotated(declared_type: Any) -> Any:
    """``Annotated[T, ...]`` -> ``T``; anything else unchanged."""
    while get_origin(declared_type) is Annotated:
        declared_type = get_args(declared_type)[0]
    return declared_type


def non_none_args(declared_type: Any) -> tuple[Any, ...]:
    """Members of a union annotation other than NoneType."""
    return tuple(a for a in get_args(declared_type) if a is not type(None))


def is_enum_type(declared_type: Any) -> bool:
    return isinstance(declared_type, type) and issubclass(declared_type, enum.Enum)


def categorize(declared_type: Any) -> TypeCategory:
    """Pick the coercion category for a declared type.

    Args:
        declared_type: A resolved annotation (class, union, generic alias, Any).

    Returns:
        NULLABLE_VALUE for ``X | None`` over value/enum types, ENUM for Enum
        subclasses, PRIMITIVE_VALUE for VALUE_TYPES, REFERENCE otherwise.
    """
    if is_optional(declared_type):
        members = non_none_args(declared_type)
        if members and all(m in VALUE_TYPES or is_enum_type(m) for m in members):
            return TypeCategory.NULLABLE_VALUE
        return TypeCategory.REFERENCE
    if is_enum_type(declared_type):
        return TypeCategory.ENUM
    if declared_type in VALUE_TYPES:
        return TypeCategory.PRIMITIVE_VALUE
    return TypeCategory.REFERENCE


def has_default_constructor(cls: type) -> bool:
    """Return True if ``cls()`` can be called without arguments."""
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        return False
    for param in sig.parameters.values():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if param.default is inspect.Parameter.empty:
            return False
    return True


def _is_frozen(cls: type) -> bool:
    if dataclasses.is_dataclass(cls) and cls.__dataclass_params__.frozen:  # type: ignore[attr-defined]
        return True
    model_config = getattr(cls, "model_config", None)
    return isinstance(model_config, dict) and bool(model_config.get("frozen"))


def _frozen_fields(cls: type) -> set[str]:
    # pydantic Field(frozen=True)
    model_fields = getattr(cls, "__pydantic_fields__", None) or {}
    return {name for name, info in model_fields.items() if getattr(info, "frozen", False)}


def _is_class_level(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.split("[", 1)[0].strip() in _CLASS_LEVEL_NAMES
    return annotation in (ClassVar, Final) or get_origin(annotation) in (ClassVar, Final)


def _own_hints(klass: type) -> dict[str, Any]:
    """Resolved annotations declared directly on ``klass``.

    Uses ``get_type_hints`` on the class. If an ancestor carries an
    annotation that cannot be resolved (pydantic's ``BaseModel`` declares
    names it only imports under TYPE_CHECKING), the public instance-level
    annotations of ``klass`` are resolved one at a time instead.
    Unresolvable names are logged and treated as Any.
    """
    own = inspect.get_annotations(klass)
    try:
        hints = get_type_hints(klass, include_extras=True)
    except (NameError, AttributeError, SyntaxError, TypeError):
        hints = _hints_one_by_one(klass, own)
    return {name: hints.get(name, Any) for name in own}


def _hints_one_by_one(klass: type, own: dict[str, Any]) -> dict[str, Any]:
    module = sys.modules.get(klass.__module__)
    # Module names shadow class attributes, as in get_type_hints on a class:
    # ``Role: Role = Role.ADMIN`` resolves to the enum, not the member.
    globalns = dict(vars(klass))
    localns = dict(vars(module)) if module is not None else {}

    hints: dict[str, Any] = {}
    for name, annotation in own.items():
        if name.startswith("_") or _is_class_level(annotation):
            hints[name] = annotation
            continue
        holder = types.SimpleNamespace(__annotations__={name: annotation})
        try:
            hints[name] = get_type_hints(
                holder, globalns=globalns, localns=localns, include_extras=True
            )[name]
        except (NameError, AttributeError, SyntaxError, TypeError) as e:
            logger.warning(
                "Could not resolve annotation '{}' on {}.{}: {}; treating as Any",
                annotation,
                klass.__qualname__,
                name,
                e,
            )
            hints[name] = Any
    return hints


def _property_type(prop: property) -> Any:
    """Type of a property: getter return annotation, else setter value annotation."""
    for func, key in ((prop.fget, "return"), (prop.fset, None)):
        if func is None:
            continue
        try:
            hints = get_type_hints(func)
        except (NameError, AttributeError, TypeError) as e:
            logger.warning("Could not resolve annotations on {}: {}", func.__qualname__, e)
            continue
        if key is not None:
            if key in hints:
                return hints[key]
            continue
        hints.pop("return", None)
        if hints:
            return next(iter(hints.values()))
    return Any


def _own_members(klass: type) -> list[tuple[str, Any]]:
    """Names declared directly on ``klass`` with their member object.

    Annotated attributes come first (declaration order), then properties.
    The member is the ``property`` object for properties and the raw
    annotation for annotated attributes.
    """
    members: list[tuple[str, Any]] = []
    seen: set[str] = set()
    for name, annotation in inspect.get_annotations(klass).items():
        if isinstance(klass.__dict__.get(name), property):
            continue
        members.append((name, annotation))
        seen.add(name)
    for name, value in klass.__dict__.items():
        if isinstance(value, property) and name not in seen:
            members.append((name, value))
            seen.add(name)
    return members


def resolve_properties(cls: type) -> tuple[ResolvedProperty, ...]:
    """Collect every public settable property of ``cls`` and its ancestors.

    Own declarations come first, followed by each ancestor's in MRO order.
    A name declared on a derived class hides the same name on every
    ancestor, whether or not the derived declaration is settable. Names
    that differ only by case are kept; the first one wins at match time.

    Args:
        cls: The target class.

    Returns:
        Ordered tuple of ResolvedProperty. Empty if nothing is settable.
    """
    if _is_frozen(cls):
        logger.debug("{} is frozen; no settable properties", cls.__qualname__)
        return ()

    frozen_fields = _frozen_fields(cls)
    declared: set[str] = set()
    resolved: list[ResolvedProperty] = []

    for klass in cls.__mro__:
        if klass is object:
            break
        hints = _own_hints(klass)
        for name, member in _own_members(klass):
            if name in declared:
                continue
            declared.add(name)
            if name.startswith("_"):
                continue

            if isinstance(member, property):
                if member.fset is None:
                    continue
                declared_type = _property_type(member)
            else:
                if _is_class_level(member) or name in frozen_fields:
                    continue
                declared_type = hints[name]
                if _is_class_level(declared_type):
                    continue
            declared_type = strip_annotated(declared_type)

            resolved.append(
                ResolvedProperty(
                    name=name,
                    declared_type=declared_type,
                    category=categorize(declared_type),
                    owner=klass,
                )
            )

    return tuple(resolved)


def full_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def describe_type(cls: type) -> TargetTypeDescriptor:
    """Build the immutable descriptor for ``cls``."""
    descriptor = TargetTypeDescriptor(
        target_type=cls,
        full_name=full_name(cls),
        has_default_constructor=has_default_constructor(cls),
        properties=resolve_properties(cls),
    )
    logger.debug(
        "Resolved {}: {} settable properties (default constructor: {})",
        descriptor.full_name,
        len(descriptor.properties),
        descriptor.has_default_constructor,
    )
    return descriptor
