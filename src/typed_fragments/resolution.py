"""Field resolution: turns a fragment's field tree into a typed selection tree.

Resolution never aborts on a single field. Anything the schema cannot
answer degrades to the field's explicit annotation or an untyped
placeholder, and is reported as a diagnostic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from typed_fragments.config import GeneratorConfig
from typed_fragments.diagnostics import Diagnostic, DiagnosticCode, DiagnosticSink
from typed_fragments.schema import Schema
from typed_fragments.types import (
    TYPENAME_FIELD,
    UNTYPED,
    Field,
    FieldDefinition,
    Fragment,
    TypeReference,
)

logger = logging.getLogger(__name__)

# Chain of fragment names being inlined, innermost last
SpreadStack = tuple[str, ...]

# A selection entry together with the spreads it was reached through
Entry = tuple[Field, SpreadStack]

TYPENAME_TYPE = TypeReference.named("String", nullable=False)


@dataclass
class ResolvedField:
    """A field with its final GraphQL type and metadata."""

    name: str
    type: TypeReference
    is_deprecated: bool = False
    deprecation_reason: str | None = None
    is_resolved: bool = True
    description: str | None = None
    selection: ResolvedSelection | None = None

    @property
    def is_object(self) -> bool:
        return self.selection is not None


@dataclass
class ResolvedVariant:
    """Fields selected only when the runtime type is `type_name`."""

    type_name: str
    selection: ResolvedSelection


@dataclass
class ResolvedSelection:
    """Resolved fields of one selection level.

    `type_name` is the parent type the fields were resolved against, or None
    when it is unknown. A selection with variants is discriminated: `fields`
    are the common fields, each variant holds one concrete type's fields.
    """

    type_name: str | None
    fields: list[ResolvedField] = field(default_factory=list)
    variants: list[ResolvedVariant] = field(default_factory=list)

    @property
    def is_discriminated(self) -> bool:
        return bool(self.variants)

    def get_field(self, name: str) -> ResolvedField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_variant(self, type_name: str) -> ResolvedVariant | None:
        for v in self.variants:
            if v.type_name == type_name:
                return v
        return None


@dataclass
class ResolvedFragment:
    name: str
    on_type: str
    selection: ResolvedSelection
    diagnostics: list[Diagnostic] = field(default_factory=list)


class _Run:
    """Per-fragment resolution state."""

    def __init__(self, fragment_name: str) -> None:
        self.fragment_name = fragment_name
        self.sink = DiagnosticSink()
        self.reported_types: set[str] = set()

    def report(self, code: DiagnosticCode, message: str) -> None:
        self.sink.report(code, message, fragment=self.fragment_name)


class FieldResolver:
    """Resolves fragments against an optional schema.

    Args:
        schema: Schema to resolve against; None resolves everything untyped.
        fragments: All fragments known to the run, for spread inlining.
        config: Generator configuration (schema use and descriptions).
    """

    def __init__(
        self,
        schema: Schema | None = None,
        fragments: Mapping[str, Fragment] | Iterable[Fragment] = (),
        config: GeneratorConfig | None = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.schema = schema if self.config.use_schema_for_type_inference else None
        if isinstance(fragments, Mapping):
            self.fragments = dict(fragments)
        else:
            self.fragments = {}
            for fragment in fragments:
                self.fragments.setdefault(fragment.name, fragment)

    def resolve(self, fragment: Fragment) -> ResolvedFragment:
        """Resolve every field of `fragment`, inlining spreads."""
        run = _Run(fragment.name)
        if self.schema is not None and not self.schema.has_type(fragment.on_type):
            run.reported_types.add(fragment.on_type)
            run.report(
                DiagnosticCode.TYPE_NOT_FOUND,
                f"Type '{fragment.on_type}' not found in schema",
            )

        stack: SpreadStack = (fragment.name,)
        entries = [(f, stack) for f in fragment.fields]
        selection = self._resolve_selection(fragment.on_type, entries, run)
        return ResolvedFragment(
            name=fragment.name,
            on_type=fragment.on_type,
            selection=selection,
            diagnostics=list(run.sink.diagnostics),
        )

    # ---- selection levels ----

    def _resolve_selection(
        self, parent_type: str | None, entries: list[Entry], run: _Run
    ) -> ResolvedSelection:
        expanded = self._expand(parent_type, entries, run)

        discriminate = any(f.is_type_conditional for f, _ in expanded) and self._is_polymorphic(
            parent_type
        )
        if not discriminate:
            expanded = self._flatten_conditionals(parent_type, expanded, run)

        selection = ResolvedSelection(type_name=parent_type)
        for group in _group_by_response_name(f for f in expanded if not f[0].is_type_conditional):
            resolved = self._resolve_field(parent_type, group, run)
            if resolved is not None:
                selection.fields.append(resolved)

        if discriminate:
            by_type: dict[str, list[Entry]] = {}
            for f, stack in expanded:
                if not f.is_type_conditional:
                    continue
                for type_name in self._variant_types(parent_type, f.type_condition):  # type: ignore[arg-type]
                    by_type.setdefault(type_name, []).extend(
                        (child, stack) for child in f.selection
                    )
            for type_name, children in by_type.items():
                selection.variants.append(
                    ResolvedVariant(
                        type_name=type_name,
                        selection=self._resolve_selection(type_name, children, run),
                    )
                )

        return selection

    def _expand(self, parent_type: str | None, entries: list[Entry], run: _Run) -> list[Entry]:
        """Inline spreads and untyped inline fragments, keeping document order."""
        out: list[Entry] = []
        for f, stack in entries:
            if f.name:
                out.append((f, stack))
            elif f.is_type_conditional:
                if f.type_condition == parent_type:
                    out.extend(self._expand(parent_type, [(c, stack) for c in f.selection], run))
                else:
                    out.append((f, stack))
            else:
                for spread in f.fragment_spreads:
                    out.extend(self._inline_spread(parent_type, spread, stack, run))
                if f.selection:
                    out.extend(self._expand(parent_type, [(c, stack) for c in f.selection], run))
        return out

    def _inline_spread(
        self, parent_type: str | None, name: str, stack: SpreadStack, run: _Run
    ) -> list[Entry]:
        target = self.fragments.get(name)
        if target is None:
            run.report(
                DiagnosticCode.FRAGMENT_SPREAD_NOT_FOUND,
                f"Fragment spread '...{name}' refers to an unknown fragment",
            )
            return []
        if name in stack:
            cycle = " -> ".join(stack + (name,))
            run.report(DiagnosticCode.SPREAD_CYCLE, f"Fragment spread cycle: {cycle}")
            return []

        inner = stack + (name,)
        if (
            target.on_type != parent_type
            and self.schema is not None
            and self.schema.has_type(target.on_type)
            and self._is_polymorphic(parent_type)
        ):
            # A spread on a narrower type behaves like `... on T { }`
            return [(Field(type_condition=target.on_type, selection=target.fields), inner)]
        return self._expand(parent_type, [(c, inner) for c in target.fields], run)

    def _flatten_conditionals(
        self, parent_type: str | None, entries: list[Entry], run: _Run
    ) -> list[Entry]:
        out: list[Entry] = []
        for f, stack in entries:
            if not f.is_type_conditional:
                out.append((f, stack))
                continue
            if not self._condition_applies(parent_type, f.type_condition):  # type: ignore[arg-type]
                logger.debug(
                    "Dropping '... on %s' under %s: condition can never match",
                    f.type_condition,
                    parent_type,
                )
                continue
            children = self._expand(parent_type, [(c, stack) for c in f.selection], run)
            out.extend(self._flatten_conditionals(parent_type, children, run))
        return out

    def _variant_types(self, parent_type: str | None, condition: str) -> list[str]:
        """Concrete types a condition contributes variants to.

        An abstract condition is spread over its possible types that the
        parent can also have, since `__typename` only ever names a concrete
        type.
        """
        if self.schema is None or not self.schema.is_abstract(condition):
            return [condition]
        types = self.schema.possible_types(condition)
        if parent_type is not None and self.schema.has_type(parent_type):
            allowed = set(self.schema.possible_types(parent_type))
            types = [t for t in types if t in allowed]
        if not types:
            logger.debug(
                "Dropping '... on %s' under %s: no common concrete type",
                condition,
                parent_type,
            )
        return types

    def _is_polymorphic(self, type_name: str | None) -> bool:
        """True unless the schema says `type_name` is a concrete type."""
        if self.schema is None or type_name is None or not self.schema.has_type(type_name):
            return True
        return self.schema.is_abstract(type_name)

    def _condition_applies(self, parent_type: str | None, condition: str) -> bool:
        if self.schema is None or parent_type is None or condition == parent_type:
            return True
        if not self.schema.has_type(condition):
            return True
        if self.schema.is_interface(condition):
            return self.schema.type_implements_interface(parent_type, condition)
        if self.schema.is_union(condition):
            return parent_type in self.schema.possible_types_of_union(condition)
        return False

    # ---- single fields ----

    def _resolve_field(
        self, parent_type: str | None, group: list[Entry], run: _Run
    ) -> ResolvedField | None:
        first = group[0][0]
        name = first.name
        annotation = next((f.resolved_type for f, _ in group if f.resolved_type is not None), None)
        explicit = next((f for f, _ in group if f.is_deprecated), None)

        children: list[Entry] = []
        for f, stack in group:
            children.extend((Field(fragment_spreads=[s]), stack) for s in f.fragment_spreads)
            children.extend((c, stack) for c in f.selection)

        definition: FieldDefinition | None = None
        if name == TYPENAME_FIELD:
            type_ref = TYPENAME_TYPE
            is_resolved = True
        else:
            definition = self._lookup(parent_type, name, run)
            if definition is None:
                if (
                    self.schema is not None
                    and parent_type is not None
                    and self.schema.is_union(parent_type)
                ):
                    run.report(
                        DiagnosticCode.INCOMPATIBLE_UNION_FIELD,
                        f"Field '{name}' is not common to all members of union "
                        f"'{parent_type}'; omitted",
                    )
                    return None
                type_ref = annotation or UNTYPED
                is_resolved = False
            else:
                type_ref = definition.type
                is_resolved = True

        if explicit is not None:
            is_deprecated, reason = True, explicit.deprecation_reason
        elif definition is not None:
            is_deprecated, reason = definition.is_deprecated, definition.deprecation_reason
        else:
            is_deprecated, reason = False, None

        description = None
        if definition is not None and self.config.include_field_descriptions:
            description = definition.description

        selection = None
        if children:
            if is_resolved or annotation is not None:
                child_parent: str | None = type_ref.base_name
            else:
                child_parent = None
            selection = self._resolve_selection(child_parent, children, run)

        return ResolvedField(
            name=name,
            type=type_ref,
            is_deprecated=is_deprecated,
            deprecation_reason=reason,
            is_resolved=is_resolved,
            description=description,
            selection=selection,
        )

    def _lookup(self, parent_type: str | None, name: str, run: _Run) -> FieldDefinition | None:
        if self.schema is None or parent_type is None:
            return None
        if not self.schema.has_type(parent_type):
            if parent_type not in run.reported_types:
                run.reported_types.add(parent_type)
                run.report(
                    DiagnosticCode.TYPE_NOT_FOUND,
                    f"Type '{parent_type}' not found in schema",
                )
            return None

        definition = self.schema.resolve_field(parent_type, name)
        if definition is None and not self.schema.is_union(parent_type):
            run.report(
                DiagnosticCode.FIELD_NOT_FOUND,
                f"Field '{name}' not found on type '{parent_type}'",
            )
        return definition


def _group_by_response_name(entries: Iterable[Entry]) -> list[list[Entry]]:
    """Group entries sharing a response name; the first occurrence sets the position."""
    groups: dict[str, list[Entry]] = {}
    for entry in entries:
        groups.setdefault(entry[0].name, []).append(entry)
    return list(groups.values())
