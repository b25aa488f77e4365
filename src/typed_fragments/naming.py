"""Naming and scope allocation for generated model shapes.

Every generated shape gets a name derived from the field (or variant) that
produces it and a scope deciding where it is emitted: nested inside its
parent or hoisted to the top level. Names are recorded in a run-scoped
ModelRegistry that rejects two different shapes under one qualified name.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Hashable

from typed_fragments.errors import ConfigurationError, NamingCollisionError
from typed_fragments.models import GLOBAL_SCOPE, Placement, qualify

logger = logging.getLogger(__name__)

MODEL_SUFFIX = "Model"
FRAGMENT_SUFFIX = "Fragment"


class NestedModelBehavior(Enum):
    """Placement policy for generated shapes."""

    NESTED = "nested"  # every shape inside its parent
    FLATTENED = "flattened"  # every shape hoisted
    MIXED = "mixed"  # shared shapes hoisted, the rest nested


@dataclass(frozen=True)
class ModelRegistration:
    name: str
    scope: str
    signature: Hashable

    @property
    def qualified_name(self) -> str:
        return qualify(self.scope, self.name)


class ModelRegistry:
    """Run-scoped record of every assigned model name.

    Create one per generation run (or call `reset`). Tracks which models
    live in which scope and which shapes conceptually belong to which parent,
    independent of where they end up being emitted.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, ModelRegistration] = {}
        self._scoped_models: dict[str, list[str]] = {}
        self._nested_models: dict[str, list[str]] = {}

    def reset(self) -> None:
        """Forget everything registered so far."""
        self._registrations.clear()
        self._scoped_models.clear()
        self._nested_models.clear()

    def register_model(self, name: str, scope: str, signature: Hashable) -> ModelRegistration:
        """Register `name` in `scope` for the shape described by `signature`.

        Re-registering the same name and scope with an equal signature
        returns the existing registration.

        Raises:
            NamingCollisionError: If the name is taken by a different shape.
        """
        key = qualify(scope, name)
        existing = self._registrations.get(key)
        if existing is not None:
            if existing.signature == signature:
                return existing
            raise NamingCollisionError(name, scope)

        registration = ModelRegistration(name=name, scope=scope, signature=signature)
        self._registrations[key] = registration
        self._scoped_models.setdefault(scope, []).append(name)
        logger.debug("Registered model %s", key)
        return registration

    def register_nested_model(self, parent: str, child: str) -> None:
        """Record that `child` belongs to `parent` (both qualified names)."""
        if not parent or not child:
            raise ConfigurationError("Parent and child model names must not be empty")
        children = self._nested_models.setdefault(parent, [])
        if child not in children:
            children.append(child)

    def get(self, name: str, scope: str = GLOBAL_SCOPE) -> ModelRegistration | None:
        return self._registrations.get(qualify(scope, name))

    def is_registered(self, name: str, scope: str = GLOBAL_SCOPE) -> bool:
        return qualify(scope, name) in self._registrations

    def models_in_scope(self, scope: str) -> list[str]:
        return list(self._scoped_models.get(scope, []))

    def nested_models(self, parent: str) -> list[str]:
        return list(self._nested_models.get(parent, []))

    def is_nested_model(self, parent: str, child: str) -> bool:
        return child in self._nested_models.get(parent, [])

    def all_models(self) -> list[str]:
        """Qualified names of every registered model, in registration order."""
        return list(self._registrations.keys())

    def all_scopes(self) -> list[str]:
        return list(self._scoped_models.keys())

    def __len__(self) -> int:
        return len(self._registrations)


class NameAllocator:
    """Assigns names and placement to shapes under a placement policy."""

    def __init__(
        self,
        registry: ModelRegistry,
        custom_name_mappings: dict[str, str] | None = None,
        behavior: NestedModelBehavior = NestedModelBehavior.NESTED,
        max_nested_depth: int = 0,
    ) -> None:
        self.registry = registry
        self.custom_name_mappings = dict(custom_name_mappings or {})
        self.behavior = behavior
        self.max_nested_depth = max_nested_depth

    def assign_name(
        self,
        field_name: str,
        parent_context: str | None = None,
        type_name: str | None = None,
    ) -> str:
        """Derive a model name from a field name.

        Custom mappings are looked up by field name, then by type name.
        Otherwise the first character is upper-cased. The `Model` suffix is
        appended unless already present, and a parent context qualifies the
        result as `{parent_context}_{name}`.

        Raises:
            ConfigurationError: If the field name is empty or the result is
                not a valid identifier.
        """
        if not field_name or not field_name.strip():
            raise ConfigurationError("Field name must not be empty")

        custom = self.custom_name_mappings.get(field_name)
        if custom is None and type_name:
            custom = self.custom_name_mappings.get(type_name)

        if custom is not None:
            if not custom:
                raise ConfigurationError(f"Custom model name for '{field_name}' is empty")
            name = custom if custom.endswith(MODEL_SUFFIX) else custom + MODEL_SUFFIX
        else:
            name = field_name[0].upper() + field_name[1:] + MODEL_SUFFIX

        if parent_context:
            name = f"{parent_context}_{name}"

        if not name.isidentifier():
            raise ConfigurationError(f"'{name}' is not a valid model name")
        return name

    def root_name(self, fragment_name: str) -> str:
        """Name of a fragment's root shape: `{fragment}Fragment`, never doubled."""
        if not fragment_name or not fragment_name.isidentifier():
            raise ConfigurationError(f"'{fragment_name}' is not a valid fragment name")
        if fragment_name.endswith(FRAGMENT_SUFFIX):
            return fragment_name
        return fragment_name + FRAGMENT_SUFFIX

    def should_hoist(self, depth: int, shared: bool = False) -> bool:
        if self.max_nested_depth and depth > self.max_nested_depth:
            return True
        if self.behavior is NestedModelBehavior.FLATTENED:
            return True
        return self.behavior is NestedModelBehavior.MIXED and shared

    def assign_scope(
        self, parent_path: str, depth: int, shared: bool = False
    ) -> tuple[str, Placement]:
        """Decide where a shape at `depth` below the root is emitted.

        Args:
            parent_path: Qualified path of the parent shape.
            depth: 1 for the root's direct children.
            shared: The shape is used by more than one field (MIXED policy).

        Returns:
            (scope, placement): hoisted shapes go to the global scope, nested
            ones to their parent's path.
        """
        if self.should_hoist(depth, shared):
            return GLOBAL_SCOPE, Placement.HOISTED
        return parent_path, Placement.NESTED

    def register(self, name: str, scope: str, signature: Hashable) -> ModelRegistration:
        return self.registry.register_model(name, scope, signature)
