"""Type definitions for the typed_fragments library."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# Built-in GraphQL scalars, always present in a TypeRegistry
BUILTIN_SCALARS: tuple[str, ...] = ("String", "Int", "Float", "Boolean", "ID")

# Meta field every object, interface and union answers
TYPENAME_FIELD = "__typename"


@dataclass(frozen=True)
class TypeReference:
    """Possibly-nullable, possibly-list reference to a named type.

    Lists carry their element as another TypeReference, so `[[Int!]]!`
    is a non-null list of nullable lists of non-null Int.
    """

    name: str = ""
    is_nullable: bool = True
    is_list: bool = False
    element_type: TypeReference | None = None

    def __post_init__(self) -> None:
        if self.is_list and self.element_type is None:
            raise ValueError("List type reference requires an element type")
        if not self.is_list and not self.name:
            raise ValueError("Named type reference requires a name")

    @classmethod
    def named(cls, name: str, nullable: bool = True) -> TypeReference:
        """Reference to a named type."""
        return cls(name=name, is_nullable=nullable)

    @classmethod
    def list_of(cls, element: TypeReference, nullable: bool = True) -> TypeReference:
        """Reference to a list of `element`."""
        return cls(is_nullable=nullable, is_list=True, element_type=element)

    @property
    def base_name(self) -> str:
        """Return the innermost named type, unwrapping lists."""
        ref = self
        while ref.is_list:
            ref = ref.element_type  # type: ignore[assignment]
        return ref.name

    def with_nullable(self, nullable: bool) -> TypeReference:
        return TypeReference(
            name=self.name,
            is_nullable=nullable,
            is_list=self.is_list,
            element_type=self.element_type,
        )

    def __str__(self) -> str:
        marker = "" if self.is_nullable else "!"
        if self.is_list:
            return f"[{self.element_type}]{marker}"
        return f"{self.name}{marker}"


# Placeholder for fields the schema cannot resolve: a nullable string
UNTYPED = TypeReference(name="String", is_nullable=True)


# ---- Schema definitions ----


@dataclass
class InputValueDefinition:
    """Argument or input-object field."""

    name: str
    type: TypeReference
    default_value: Any = None
    description: str | None = None


@dataclass
class FieldDefinition:
    """Definition of a field on an object type or interface."""

    name: str
    type: TypeReference
    is_deprecated: bool = False
    deprecation_reason: str | None = None
    description: str | None = None
    arguments: dict[str, InputValueDefinition] = field(default_factory=dict)


@dataclass
class TypeDefinition:
    """Base class for all schema type definitions."""

    name: str
    description: str | None = None

    @property
    def is_object(self) -> bool:
        return False

    @property
    def is_interface(self) -> bool:
        return False

    @property
    def is_union(self) -> bool:
        return False

    @property
    def is_scalar(self) -> bool:
        return False

    @property
    def is_enum(self) -> bool:
        return False

    @property
    def is_input(self) -> bool:
        return False

    @property
    def is_abstract(self) -> bool:
        """Interfaces and unions resolve to a concrete type at runtime."""
        return self.is_interface or self.is_union


@dataclass
class ObjectTypeDefinition(TypeDefinition):
    """Object type: named fields plus the interfaces it implements."""

    interfaces: list[str] = field(default_factory=list)
    fields: dict[str, FieldDefinition] = field(default_factory=dict)

    @property
    def is_object(self) -> bool:
        return True

    def get_field(self, name: str) -> FieldDefinition | None:
        return self.fields.get(name)


@dataclass
class InterfaceTypeDefinition(TypeDefinition):
    """Interface type.

    Interfaces define field contracts but are never concrete. An interface
    may itself implement other interfaces; field lookup on an interface only
    consults its own fields.
    """

    interfaces: list[str] = field(default_factory=list)
    fields: dict[str, FieldDefinition] = field(default_factory=dict)

    @property
    def is_interface(self) -> bool:
        return True

    def get_field(self, name: str) -> FieldDefinition | None:
        return self.fields.get(name)


@dataclass
class UnionTypeDefinition(TypeDefinition):
    """Union type. Member order is significant for common-field resolution."""

    possible_types: list[str] = field(default_factory=list)

    @property
    def is_union(self) -> bool:
        return True


@dataclass
class EnumValueDefinition:
    """A single value within an enum type."""

    name: str
    description: str | None = None
    is_deprecated: bool = False
    deprecation_reason: str | None = None


@dataclass
class EnumTypeDefinition(TypeDefinition):
    values: list[EnumValueDefinition] = field(default_factory=list)

    @property
    def is_enum(self) -> bool:
        return True

    def get_value(self, name: str) -> EnumValueDefinition | None:
        for v in self.values:
            if v.name == name:
                return v
        return None


@dataclass
class InputTypeDefinition(TypeDefinition):
    input_fields: dict[str, InputValueDefinition] = field(default_factory=dict)

    @property
    def is_input(self) -> bool:
        return True


@dataclass
class ScalarTypeDefinition(TypeDefinition):
    """Scalar type, built in or declared with `scalar X`."""

    builtin: bool = False

    @property
    def is_scalar(self) -> bool:
        return True


class TypeRegistry:
    """Registry of all defined schema types."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self.query_type: str | None = None
        self.mutation_type: str | None = None
        self.subscription_type: str | None = None
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register the built-in scalar types."""
        for name in BUILTIN_SCALARS:
            self._types[name] = ScalarTypeDefinition(name=name, builtin=True)

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition."""
        existing = self._types.get(type_def.name)
        if existing is not None:
            # Re-declaring a built-in scalar is harmless
            if isinstance(existing, ScalarTypeDefinition) and existing.builtin and type_def.is_scalar:
                return
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def find_implementing_types(self, interface_name: str) -> list[str]:
        """Names of all object types implementing the given interface, in definition order."""
        return [
            name
            for name, td in self._types.items()
            if isinstance(td, ObjectTypeDefinition) and interface_name in td.interfaces
        ]

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def definitions(self) -> list[TypeDefinition]:
        return list(self._types.values())

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def __len__(self) -> int:
        return len(self._types)


# ---- Fragment AST ----


@dataclass
class Field:
    """A selection entry in a fragment.

    Three shapes share this node:
      - a named field, optionally with a nested selection;
      - a pure fragment spread (`...Name`): no name, one spread;
      - a type-conditional sub-selection (`... on T { }`): no name,
        `type_condition` set, the conditional fields in `selection`.
    """

    name: str = ""
    resolved_type: TypeReference | None = None  # explicit annotation until resolved
    is_deprecated: bool = False
    deprecation_reason: str | None = None
    selection: list[Field] = field(default_factory=list)
    fragment_spreads: list[str] = field(default_factory=list)
    type_condition: str | None = None
    arguments: dict[str, Any] = field(default_factory=dict)

    @property
    def is_fragment_spread(self) -> bool:
        """True for `...Name` entries that carry nothing but the spread."""
        return (
            not self.name
            and self.type_condition is None
            and not self.selection
            and bool(self.fragment_spreads)
        )

    @property
    def is_type_conditional(self) -> bool:
        return self.type_condition is not None

    @property
    def is_object(self) -> bool:
        """True when the field selects sub-fields and so yields a sub-model."""
        return bool(self.name) and (bool(self.selection) or bool(self.fragment_spreads))


@dataclass
class Fragment:
    """A named, reusable selection of fields against a declared base type."""

    name: str
    on_type: str
    fields: list[Field] = field(default_factory=list)
