"""Model tree assembly from resolved fragments."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Hashable

from typed_fragments.config import GeneratorConfig
from typed_fragments.models import (
    GLOBAL_SCOPE,
    MemberRole,
    ModelMember,
    ModelShape,
    ModelTree,
    Placement,
    ShapeKind,
    qualify,
)
from typed_fragments.naming import MODEL_SUFFIX, NameAllocator, NestedModelBehavior
from typed_fragments.resolution import ResolvedFragment, ResolvedSelection
from typed_fragments.scalars import ScalarMapper
from typed_fragments.types import TYPENAME_FIELD, TypeReference

logger = logging.getLogger(__name__)

VARIANT_PREFIX = "as"

DISCRIMINANT_TYPE = TypeReference.named("String", nullable=False)


def selection_signature(selection: ResolvedSelection) -> Hashable:
    """Structural signature of a selection, used to tell shapes apart."""
    fields = tuple(
        (
            f.name,
            str(f.type),
            f.is_deprecated,
            selection_signature(f.selection) if f.selection is not None else None,
        )
        for f in selection.fields
    )
    variants = tuple(
        (v.type_name, selection_signature(v.selection)) for v in selection.variants
    )
    return (selection.type_name, fields, variants)


def variant_member_name(type_name: str) -> str:
    """`Article` -> `asArticle`."""
    return VARIANT_PREFIX + type_name


@dataclass(frozen=True)
class _Parent:
    path: str  # qualified name, the scope of nested children
    context: str  # prefix for hoisted descendants' names
    depth: int


class ModelTreeAssembler:
    """Builds one ModelTree per resolved fragment.

    Walks the resolved selection bottom-up so every shape is emitted after
    the shapes it references, with the fragment's root shape last. A shape is
    reused when the same name in the same scope was already produced with an
    identical structure.
    """

    def __init__(
        self,
        scalar_mapper: ScalarMapper,
        allocator: NameAllocator,
        config: GeneratorConfig | None = None,
    ) -> None:
        self.scalar_mapper = scalar_mapper
        self.allocator = allocator
        self.config = config or GeneratorConfig()

    def assemble(self, resolved: ResolvedFragment) -> ModelTree:
        """Assemble the model tree of one fragment.

        Raises:
            NamingCollisionError: If two different shapes get the same name.
            ConfigurationError: If a field or custom name is not usable.
        """
        self._fragment = resolved.name
        self._shapes: list[ModelShape] = []
        self._built: dict[str, ModelShape] = {}
        self._shared = self._count_shared(resolved.selection)
        self._shared_names: dict[tuple[str, Hashable], str] = {}

        root_name = self.allocator.root_name(resolved.name)
        root_parent = _Parent(path=root_name, context=resolved.name, depth=0)
        members = self._members(resolved.selection, root_parent)

        root = self._make_shape(
            name=root_name,
            scope=GLOBAL_SCOPE,
            placement=Placement.HOISTED,
            selection=resolved.selection,
            members=members,
            source_type=resolved.on_type,
            depth=0,
            parent=None,
            doc=f"Generated from fragment {resolved.name} on {resolved.on_type}.",
        )

        logger.debug(
            "Assembled %s: %d shape(s)", resolved.name, len(self._shapes)
        )
        return ModelTree(
            fragment_name=resolved.name,
            on_type=resolved.on_type,
            namespace=self.config.namespace,
            root=root,
            shapes=list(self._shapes),
            immutable=self.config.emit_immutable_value_types,
            doc_comments=self.config.generate_doc_comments,
        )

    # ---- members ----

    def _members(self, selection: ResolvedSelection, parent: _Parent) -> tuple[ModelMember, ...]:
        members: list[ModelMember] = []

        if selection.is_discriminated:
            members.append(
                ModelMember(
                    name=TYPENAME_FIELD,
                    graphql_type=DISCRIMINANT_TYPE,
                    target=self.scalar_mapper.map_type(DISCRIMINANT_TYPE),
                    role=MemberRole.DISCRIMINANT,
                )
            )

        for f in selection.fields:
            if selection.is_discriminated and f.name == TYPENAME_FIELD:
                continue
            shape_ref = None
            if f.selection is not None:
                child = self._child_shape(
                    stem=f.name,
                    selection=f.selection,
                    parent=parent,
                    doc=f"Selection of '{f.name}'"
                    + (f" on {f.selection.type_name}." if f.selection.type_name else "."),
                )
                shape_ref = child.qualified_name
            members.append(
                ModelMember(
                    name=f.name,
                    graphql_type=f.type,
                    target=self.scalar_mapper.map_type(f.type, shape_name=shape_ref),
                    shape=shape_ref,
                    is_deprecated=f.is_deprecated,
                    deprecation_reason=f.deprecation_reason,
                    description=f.description,
                )
            )

        for variant in selection.variants:
            child = self._child_shape(
                stem=variant_member_name(variant.type_name),
                selection=variant.selection,
                parent=parent,
                doc=f"Fields selected when {TYPENAME_FIELD} is '{variant.type_name}'.",
            )
            variant_type = TypeReference.named(variant.type_name, nullable=True)
            members.append(
                ModelMember(
                    name=variant_member_name(variant.type_name),
                    graphql_type=variant_type,
                    target=self.scalar_mapper.map_type(
                        variant_type, shape_name=child.qualified_name
                    ),
                    shape=child.qualified_name,
                    role=MemberRole.VARIANT,
                    variant_type=variant.type_name,
                )
            )

        return tuple(members)

    # ---- shapes ----

    def _child_shape(
        self, stem: str, selection: ResolvedSelection, parent: _Parent, doc: str
    ) -> ModelShape:
        depth = parent.depth + 1
        type_name = selection.type_name
        bare = self.allocator.assign_name(stem, type_name=type_name)
        shared = (bare, selection_signature(selection)) in self._shared

        scope, placement = self.allocator.assign_scope(parent.path, depth, shared)
        if placement is Placement.NESTED:
            name = bare
            context = f"{parent.context}_{_stem_part(bare)}"
        else:
            forced = bool(
                self.allocator.max_nested_depth and depth > self.allocator.max_nested_depth
            )
            if shared and not forced:
                name = self._shared_name(stem, bare, selection, parent)
            else:
                name = self.allocator.assign_name(
                    stem, parent_context=parent.context, type_name=type_name
                )
            context = _stem_part(name)

        path = qualify(scope, name)
        existing = self._built.get(path)
        if existing is not None:
            # Same name and scope: the registry decides whether it is the same shape
            self.allocator.register(name, scope, selection_signature(selection))
            self.allocator.registry.register_nested_model(parent.path, path)
            return existing

        child_parent = _Parent(path=path, context=context, depth=depth)
        members = self._members(selection, child_parent)
        shape = self._make_shape(
            name=name,
            scope=scope,
            placement=placement,
            selection=selection,
            members=members,
            source_type=type_name,
            depth=depth,
            parent=parent.path,
            doc=doc,
        )
        self.allocator.registry.register_nested_model(parent.path, path)
        return shape

    def _shared_name(
        self, stem: str, bare: str, selection: ResolvedSelection, parent: _Parent
    ) -> str:
        """Global name of a shape shared within the fragment.

        The first shared group with a given bare name gets
        `{fragment}_{Bare}`. A structurally different group with the same
        bare name is qualified by the context of its first user instead, and
        failing that numbered: `{fragment}_{Bare}2`, `{fragment}_{Bare}3`...
        """
        signature = selection_signature(selection)
        key = (bare, signature)
        if key in self._shared_names:
            return self._shared_names[key]

        type_name = selection.type_name
        first = self.allocator.assign_name(
            stem, parent_context=self._fragment, type_name=type_name
        )
        candidates = [first]
        if parent.context != self._fragment:
            candidates.append(
                self.allocator.assign_name(stem, parent_context=parent.context, type_name=type_name)
            )
        name = next((c for c in candidates if not self._name_taken(c, signature)), None)
        ordinal = 2
        while name is None:
            numbered = f"{_stem_part(first)}{ordinal}{MODEL_SUFFIX}"
            if not self._name_taken(numbered, signature):
                name = numbered
            ordinal += 1

        self._shared_names[key] = name
        return name

    def _name_taken(self, name: str, signature: Hashable) -> bool:
        if name in self._shared_names.values():
            return True
        registration = self.allocator.registry.get(name, GLOBAL_SCOPE)
        return registration is not None and registration.signature != signature

    def _make_shape(
        self,
        name: str,
        scope: str,
        placement: Placement,
        selection: ResolvedSelection,
        members: tuple[ModelMember, ...],
        source_type: str | None,
        depth: int,
        parent: str | None,
        doc: str,
    ) -> ModelShape:
        self.allocator.register(name, scope, selection_signature(selection))
        shape = ModelShape(
            name=name,
            scope=scope,
            placement=placement,
            kind=ShapeKind.DISCRIMINATED_UNION if selection.is_discriminated else ShapeKind.RECORD,
            members=members,
            source_type=source_type,
            depth=depth,
            parent=parent,
            doc=doc if self.config.generate_doc_comments else None,
        )
        self._built[shape.qualified_name] = shape
        self._shapes.append(shape)
        return shape

    def _count_shared(self, selection: ResolvedSelection) -> set[tuple[str, Hashable]]:
        """(bare name, signature) pairs used more than once in the fragment."""
        if self.allocator.behavior is not NestedModelBehavior.MIXED:
            return set()

        counts: Counter = Counter()

        def visit(sel: ResolvedSelection) -> None:
            for f in sel.fields:
                if f.selection is not None:
                    bare = self.allocator.assign_name(f.name, type_name=f.selection.type_name)
                    counts[(bare, selection_signature(f.selection))] += 1
                    visit(f.selection)
            for v in sel.variants:
                bare = self.allocator.assign_name(
                    variant_member_name(v.type_name), type_name=v.type_name
                )
                counts[(bare, selection_signature(v.selection))] += 1
                visit(v.selection)

        visit(selection)
        return {key for key, n in counts.items() if n > 1}


def _stem_part(bare_name: str) -> str:
    if bare_name.endswith(MODEL_SUFFIX) and len(bare_name) > len(MODEL_SUFFIX):
        return bare_name[: -len(MODEL_SUFFIX)]
    return bare_name
