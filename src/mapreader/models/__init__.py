"""Pydantic data models shared across mapreader components.

    from mapreader.models import ResolvedProperty, TargetTypeDescriptor, TypeCategory
"""

from mapreader.models.descriptor import ResolvedProperty, TargetTypeDescriptor, TypeCategory

__all__ = [
    "TypeCategory",
    "ResolvedProperty",
    "TargetTypeDescriptor",
]
