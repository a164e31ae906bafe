"""Marking target classes and discovering them in a module.

@generate_mapper flags a class as a mapping target. discover_targets()
finds flagged classes defined in a module, which is how the CLI (or any
other host) decides which classes to plan.
"""

from __future__ import annotations

import importlib
import inspect
from types import ModuleType
from typing import Any, TypeVar

from loguru import logger

from mapreader.mapping.planner import MapperExtensions, generate_extensions

C = TypeVar("C", bound=type)

MARKER_ATTRIBUTE = "__generate_mapper__"


def generate_mapper(cls: C | None = None) -> Any:
    """Class decorator marking ``cls`` as a mapping target.

    Usable bare (``@generate_mapper``) or called (``@generate_mapper()``).
    The class itself is returned unchanged apart from the marker attribute.
    """

    def mark(target: C) -> C:
        if not inspect.isclass(target):
            raise TypeError(f"@generate_mapper applies to classes, not {type(target).__name__}")
        setattr(target, MARKER_ATTRIBUTE, True)
        return target

    if cls is None:
        return mark
    return mark(cls)


def is_mapper_target(cls: type) -> bool:
    """True if ``cls`` itself (not only a base class) carries the marker."""
    return bool(cls.__dict__.get(MARKER_ATTRIBUTE, False))


def load_module(module: str | ModuleType) -> ModuleType:
    if isinstance(module, ModuleType):
        return module
    return importlib.import_module(module)


def discover_targets(module: str | ModuleType) -> list[type]:
    """Marked classes defined in ``module``, in definition order.

    Classes imported into the module from elsewhere are not included.

    Args:
        module: A module object or dotted module path.

    Returns:
        List of marked classes.
    """
    mod = load_module(module)
    targets = [
        obj
        for _name, obj in vars(mod).items()
        if inspect.isclass(obj) and obj.__module__ == mod.__name__ and is_mapper_target(obj)
    ]
    logger.debug("Discovered {} mapping target(s) in {}", len(targets), mod.__name__)
    return targets


def generate_module_extensions(module: str | ModuleType) -> MapperExtensions:
    """Plan every marked class in ``module``."""
    return generate_extensions(discover_targets(module))
