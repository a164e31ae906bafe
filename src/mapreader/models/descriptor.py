"""Type descriptor models for the mapping engine.

These models describe a target class as the planner sees it: the flat,
ordered set of settable properties reachable on the class and its
ancestors, each tagged with the coercion category that decides how an
untyped incoming value is assigned to it.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class TypeCategory(StrEnum):
    """Coercion category of a property's declared type.

    - REFERENCE: Cast-or-empty. Incompatible values become the empty value.
    - NULLABLE_VALUE: Same rule as REFERENCE, for ``X | None`` value types.
    - ENUM: Skip on None, otherwise convert to a 32-bit int and build the enum.
    - PRIMITIVE_VALUE: Skip on None, otherwise assign or convert.
    """

    REFERENCE = "reference"
    NULLABLE_VALUE = "nullable-value"
    ENUM = "enum"
    PRIMITIVE_VALUE = "primitive-value"


class ResolvedProperty(BaseModel):
    """One settable property reachable on a target class or an ancestor."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Attribute name as declared on the owner class")
    declared_type: Any = Field(..., description="Resolved type annotation")
    category: TypeCategory = Field(..., description="Coercion category for the declared type")
    owner: type = Field(..., description="Class that declares the property")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def upper_name(self) -> str:
        """Case-insensitive matching key."""
        return self.name.upper()


class TargetTypeDescriptor(BaseModel):
    """Everything the planner needs to know about one target class.

    Derived once per class by the resolver and never mutated.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    target_type: type = Field(..., description="The class being mapped")
    full_name: str = Field(..., description="Fully-qualified name (module.QualName)")
    has_default_constructor: bool = Field(
        ..., description="True if the class can be constructed without arguments"
    )
    properties: tuple[ResolvedProperty, ...] = Field(
        default_factory=tuple, description="Settable properties, most-derived first"
    )

    @property
    def property_names(self) -> list[str]:
        """Declared names in resolution order."""
        return [p.name for p in self.properties]
