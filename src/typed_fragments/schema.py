"""Schema class answering field-type and type-compatibility queries."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from typed_fragments.parsing import SchemaParser
from typed_fragments.types import (
    FieldDefinition,
    InterfaceTypeDefinition,
    ObjectTypeDefinition,
    TypeDefinition,
    TypeReference,
    TypeRegistry,
    UnionTypeDefinition,
)


class Schema:
    """Read-only index over parsed schema definitions.

    The schema is built once per run and shared by every fragment
    resolution; nothing here mutates the registry.
    """

    def __init__(self, registry: TypeRegistry) -> None:
        """Initialize a schema.

        Args:
            registry: Type registry with all type definitions.
        """
        self.registry = registry

    @classmethod
    def parse(cls, sdl: str) -> Schema:
        """Parse SDL text and create a schema.

        Raises:
            SyntaxError: If the text is not valid SDL.
            ValueError: If a type is defined twice.
        """
        parser = SchemaParser()
        return cls(parser.parse(sdl))

    @classmethod
    def parse_files(cls, paths: Iterable[Path | str]) -> Schema:
        """Parse several SDL files into one schema.

        Raises:
            FileNotFoundError: If a path does not exist.
            SyntaxError: If a file is not valid SDL.
        """
        parser = SchemaParser()
        registry = TypeRegistry()
        for path in paths:
            parser.parse(Path(path).read_text(encoding="utf-8"), registry=registry)
        return cls(registry)

    # ---- index lookups ----

    def get_type(self, name: str) -> TypeDefinition | None:
        return self.registry.get(name)

    def has_type(self, name: str) -> bool:
        return name in self.registry

    def is_object_type(self, name: str) -> bool:
        return isinstance(self.registry.get(name), ObjectTypeDefinition)

    def is_interface(self, name: str) -> bool:
        return isinstance(self.registry.get(name), InterfaceTypeDefinition)

    def is_union(self, name: str) -> bool:
        return isinstance(self.registry.get(name), UnionTypeDefinition)

    def is_abstract(self, name: str) -> bool:
        td = self.registry.get(name)
        return td is not None and td.is_abstract

    def list_types(self) -> list[str]:
        return self.registry.list_types()

    def type_implements_interface(self, type_name: str, interface_name: str) -> bool:
        """True when object type `type_name` declares `implements interface_name`."""
        td = self.registry.get(type_name)
        return isinstance(td, ObjectTypeDefinition) and interface_name in td.interfaces

    def types_implementing_interface(self, interface_name: str) -> list[str]:
        return self.registry.find_implementing_types(interface_name)

    def possible_types_of_union(self, union_name: str) -> list[str]:
        td = self.registry.get(union_name)
        if isinstance(td, UnionTypeDefinition):
            return list(td.possible_types)
        return []

    def possible_types(self, name: str) -> list[str]:
        """Concrete types a value of type `name` can have at runtime."""
        if self.is_union(name):
            return self.possible_types_of_union(name)
        if self.is_interface(name):
            return self.types_implementing_interface(name)
        if self.is_object_type(name):
            return [name]
        return []

    # ---- field resolution ----

    def resolve_field(self, type_name: str, field_name: str) -> FieldDefinition | None:
        """Find the definition of `field_name` as seen from `type_name`.

        Object types answer with their own field first, then with the first
        implemented interface declaring it. Interfaces answer with their own
        fields. Unions answer only with a field common to every possible
        type, represented by the first possible type's definition.

        Returns:
            The field definition, or None when the field is not found or its
            type does not resolve to a known definition.
        """
        return self._resolve(type_name, field_name, set())

    def _resolve(
        self, type_name: str, field_name: str, visiting: set[str]
    ) -> FieldDefinition | None:
        if type_name in visiting:
            return None
        visiting = visiting | {type_name}

        td = self.registry.get(type_name)

        if isinstance(td, ObjectTypeDefinition):
            fd = td.get_field(field_name)
            if fd is not None:
                return self._known(fd)
            for interface_name in td.interfaces:
                if not self.is_interface(interface_name):
                    continue
                fd = self._resolve(interface_name, field_name, visiting)
                if fd is not None:
                    return fd
            return None

        if isinstance(td, InterfaceTypeDefinition):
            fd = td.get_field(field_name)
            return self._known(fd) if fd is not None else None

        if isinstance(td, UnionTypeDefinition):
            return self._common_field(td, field_name, visiting)

        return None

    def _common_field(
        self, union: UnionTypeDefinition, field_name: str, visiting: set[str]
    ) -> FieldDefinition | None:
        # Left to right: the first possible type's definition is canonical
        common: FieldDefinition | None = None
        for member in union.possible_types:
            fd = self._resolve(member, field_name, visiting)
            if fd is None:
                return None
            if common is None:
                common = fd
            elif not self.types_compatible(common.type, fd.type):
                return None
        return common

    def _known(self, fd: FieldDefinition) -> FieldDefinition | None:
        """Fail closed on fields whose type names nothing in the index."""
        if fd.type.base_name not in self.registry:
            return None
        return fd

    def types_compatible(self, t1: TypeReference, t2: TypeReference) -> bool:
        """Compatibility of two field types, as used for union common fields.

        Not symmetric: when only nullability differs the result is
        `t1.is_nullable`, so a nullable first operand accepts a non-null
        second one but not the other way round.
        """
        if t1.is_list and t2.is_list:
            return self.types_compatible(t1.element_type, t2.element_type)  # type: ignore[arg-type]
        if t1.is_list != t2.is_list:
            return False
        if t1.name != t2.name:
            return (
                self.is_interface(t1.name) and self.type_implements_interface(t2.name, t1.name)
            ) or (
                self.is_interface(t2.name) and self.type_implements_interface(t1.name, t2.name)
            )
        if t1.is_nullable != t2.is_nullable:
            return t1.is_nullable
        return True

    def field_definitions(self, type_name: str) -> dict[str, FieldDefinition]:
        """All fields selectable on `type_name`, own fields first.

        Object types include fields inherited from their interfaces; unions
        list their common fields.
        """
        td = self.registry.get(type_name)
        if isinstance(td, ObjectTypeDefinition):
            fields = dict(td.fields)
            for interface_name in td.interfaces:
                iface = self.registry.get(interface_name)
                if isinstance(iface, InterfaceTypeDefinition):
                    for name, fd in iface.fields.items():
                        fields.setdefault(name, fd)
            return fields
        if isinstance(td, InterfaceTypeDefinition):
            return dict(td.fields)
        if isinstance(td, UnionTypeDefinition) and td.possible_types:
            fields = {}
            for name in self.field_definitions(td.possible_types[0]):
                fd = self.resolve_field(type_name, name)
                if fd is not None:
                    fields[name] = fd
            return fields
        return {}

    def undefined_references(self) -> list[tuple[str, str]]:
        """Return (referencing type, missing name) pairs for dangling names."""
        missing: list[tuple[str, str]] = []
        for td in self.registry.definitions():
            names: list[str] = []
            if isinstance(td, (ObjectTypeDefinition, InterfaceTypeDefinition)):
                names.extend(td.interfaces)
                names.extend(fd.type.base_name for fd in td.fields.values())
            elif isinstance(td, UnionTypeDefinition):
                names.extend(td.possible_types)
            for name in names:
                if name not in self.registry and (td.name, name) not in missing:
                    missing.append((td.name, name))
        return missing
