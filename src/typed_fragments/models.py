"""Model tree types handed to a code emitter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typed_fragments.scalars import TargetType
from typed_fragments.types import TypeReference

GLOBAL_SCOPE = "global"


def qualify(scope: str, name: str) -> str:
    """Return the fully qualified path of a name within a scope."""
    if scope == GLOBAL_SCOPE:
        return name
    return f"{scope}.{name}"


class ShapeKind(Enum):
    RECORD = "record"
    DISCRIMINATED_UNION = "discriminated_union"


class Placement(Enum):
    NESTED = "nested"
    HOISTED = "hoisted"


class MemberRole(Enum):
    FIELD = "field"
    DISCRIMINANT = "discriminant"
    VARIANT = "variant"


@dataclass(frozen=True)
class ModelMember:
    """One member of a generated shape.

    `shape` is the qualified name of the member's model shape for
    object-valued members and variants, None for scalar leaves.
    """

    name: str
    graphql_type: TypeReference
    target: TargetType
    shape: str | None = None
    is_deprecated: bool = False
    deprecation_reason: str | None = None
    description: str | None = None
    role: MemberRole = MemberRole.FIELD
    variant_type: str | None = None

    @property
    def is_optional(self) -> bool:
        return self.target.is_nullable

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "role": self.role.value,
            "graphql_type": str(self.graphql_type),
            "target": self.target.to_dict(),
        }
        if self.shape is not None:
            data["shape"] = self.shape
        if self.variant_type is not None:
            data["variant_type"] = self.variant_type
        if self.is_deprecated:
            data["deprecated"] = True
            data["deprecation_reason"] = self.deprecation_reason
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class ModelShape:
    """A generated record or discriminated union.

    `parent` is the qualified name of the shape this one conceptually
    belongs to, kept even when the shape is hoisted.
    """

    name: str
    scope: str
    placement: Placement
    kind: ShapeKind
    members: tuple[ModelMember, ...]
    source_type: str | None
    depth: int = 0
    parent: str | None = None
    doc: str | None = None

    @property
    def qualified_name(self) -> str:
        return qualify(self.scope, self.name)

    @property
    def is_discriminated(self) -> bool:
        return self.kind is ShapeKind.DISCRIMINATED_UNION

    def get_member(self, name: str) -> ModelMember | None:
        for member in self.members:
            if member.name == name:
                return member
        return None

    def variants(self) -> list[ModelMember]:
        return [m for m in self.members if m.role is MemberRole.VARIANT]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "qualified_name": self.qualified_name,
            "scope": self.scope,
            "placement": self.placement.value,
            "kind": self.kind.value,
            "source_type": self.source_type,
            "depth": self.depth,
            "parent": self.parent,
            "members": [m.to_dict() for m in self.members],
        }
        if self.doc is not None:
            data["doc"] = self.doc
        return data


@dataclass
class ModelTree:
    """All shapes generated for one fragment, in dependency order.

    Every shape precedes the shapes referencing it, so `shapes[-1]` is the
    root.
    """

    fragment_name: str
    on_type: str
    namespace: str
    root: ModelShape
    shapes: list[ModelShape] = field(default_factory=list)
    immutable: bool = True
    doc_comments: bool = True

    def get_shape(self, qualified_name: str) -> ModelShape | None:
        for shape in self.shapes:
            if shape.qualified_name == qualified_name:
                return shape
        return None

    def find_shapes(self, name: str) -> list[ModelShape]:
        """All shapes with the given (unqualified) name."""
        return [s for s in self.shapes if s.name == name]

    def nested_in(self, parent: ModelShape) -> list[ModelShape]:
        """Shapes emitted inside `parent`."""
        return [s for s in self.shapes if s.scope == parent.qualified_name]

    def to_dict(self) -> dict[str, Any]:
        return {
            "fragment": self.fragment_name,
            "on_type": self.on_type,
            "namespace": self.namespace,
            "immutable": self.immutable,
            "doc_comments": self.doc_comments,
            "root": self.root.qualified_name,
            "shapes": [s.to_dict() for s in self.shapes],
        }
