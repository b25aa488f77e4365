"""Scalar mapping from GraphQL leaf types to Python type annotations."""

from __future__ import annotations

from dataclasses import dataclass

from typed_fragments.types import TypeReference

# Default GraphQL scalar -> Python annotation table
DEFAULT_SCALAR_MAPPINGS: dict[str, str] = {
    "String": "str",
    "ID": "str",
    "Int": "int",
    "Float": "float",
    "Boolean": "bool",
    "DateTime": "datetime.datetime",
    "Date": "datetime.date",
    "Time": "datetime.time",
}

# Representation for scalars nobody mapped
FALLBACK_SCALAR = "str"


@dataclass(frozen=True)
class TargetType:
    """Target representation of a GraphQL type.

    `name` is the base representation (scalar mapping or model shape name);
    `annotation` is the full rendered annotation including list wrapping
    and the optional marker.
    """

    name: str
    annotation: str
    is_list: bool = False
    is_nullable: bool = True
    element: TargetType | None = None

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "annotation": self.annotation,
            "is_list": self.is_list,
            "is_nullable": self.is_nullable,
        }
        if self.element is not None:
            data["element"] = self.element.to_dict()
        return data


def is_optional_annotation(annotation: str) -> bool:
    """True when the annotation already denotes an optional value."""
    text = annotation.replace(" ", "")
    return (
        text == "None"
        or text.endswith("|None")
        or text.startswith("None|")
        or text.startswith("Optional[")
        or text.startswith("typing.Optional[")
    )


def make_optional(annotation: str) -> str:
    """Attach the `| None` marker unless the annotation already carries one."""
    if is_optional_annotation(annotation):
        return annotation
    return f"{annotation} | None"


class ScalarMapper:
    """Maps scalar leaf types to target annotations.

    Custom mappings win over the default table; scalars in neither map to
    `str`.
    """

    def __init__(
        self,
        custom_mappings: dict[str, str] | None = None,
        validate_non_nullable_fields: bool = True,
    ) -> None:
        self.custom_mappings = dict(custom_mappings or {})
        self.validate_non_nullable_fields = validate_non_nullable_fields

    def base_representation(
        self, type_name: str, custom_mappings: dict[str, str] | None = None
    ) -> str:
        mappings = self.custom_mappings if custom_mappings is None else custom_mappings
        if type_name in mappings:
            return mappings[type_name]
        return DEFAULT_SCALAR_MAPPINGS.get(type_name, FALLBACK_SCALAR)

    def map_scalar(
        self,
        type_name: str,
        is_list: bool = False,
        is_nullable: bool = True,
        custom_mappings: dict[str, str] | None = None,
    ) -> TargetType:
        """Map a scalar, optionally list-wrapped, to its target type.

        Args:
            type_name: GraphQL scalar name.
            is_list: Wrap the scalar in a list.
            is_nullable: Mark the outermost level optional.
            custom_mappings: Overrides the mapper's own custom mappings.
        """
        base = self.base_representation(type_name, custom_mappings)
        if not is_list:
            return self._leaf(base, is_nullable)

        element = self._leaf(base, nullable=False)
        return self._wrap_list(element, is_nullable)

    def map_type(self, type_ref: TypeReference, shape_name: str | None = None) -> TargetType:
        """Map a full type reference, keeping nullability at every list level.

        Args:
            type_ref: Resolved GraphQL type.
            shape_name: Model shape name used instead of a scalar mapping
                for object-valued fields.
        """
        if type_ref.is_list:
            element = self.map_type(type_ref.element_type, shape_name)  # type: ignore[arg-type]
            return self._wrap_list(element, type_ref.is_nullable)

        base = shape_name if shape_name else self.base_representation(type_ref.name)
        nullable = type_ref.is_nullable or not self.validate_non_nullable_fields
        return self._leaf(base, nullable)

    def _leaf(self, base: str, nullable: bool) -> TargetType:
        annotation = make_optional(base) if nullable else base
        return TargetType(
            name=base,
            annotation=annotation,
            is_nullable=nullable or is_optional_annotation(base),
        )

    def _wrap_list(self, element: TargetType, nullable: bool) -> TargetType:
        annotation = f"list[{element.annotation}]"
        if nullable:
            annotation = make_optional(annotation)
        return TargetType(
            name=element.name,
            annotation=annotation,
            is_list=True,
            is_nullable=nullable,
            element=element,
        )
