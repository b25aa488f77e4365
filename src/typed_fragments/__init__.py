"""Typed Fragments - Compile GraphQL fragments into typed model trees."""

from typed_fragments.assembler import ModelTreeAssembler
from typed_fragments.config import GeneratorConfig, load_config
from typed_fragments.diagnostics import Diagnostic, DiagnosticCode, Severity
from typed_fragments.errors import ConfigurationError, NamingCollisionError
from typed_fragments.generator import FragmentModelGenerator, GenerationResult
from typed_fragments.models import (
    MemberRole,
    ModelMember,
    ModelShape,
    ModelTree,
    Placement,
    ShapeKind,
)
from typed_fragments.naming import ModelRegistry, NameAllocator, NestedModelBehavior
from typed_fragments.parsing import FragmentParser, SchemaParser
from typed_fragments.resolution import (
    FieldResolver,
    ResolvedField,
    ResolvedFragment,
    ResolvedSelection,
    ResolvedVariant,
)
from typed_fragments.scalars import ScalarMapper, TargetType
from typed_fragments.schema import Schema
from typed_fragments.types import (
    Field,
    FieldDefinition,
    Fragment,
    TypeReference,
    TypeRegistry,
)

__all__ = [
    # Main API
    "FragmentModelGenerator",
    "GenerationResult",
    "GeneratorConfig",
    "load_config",
    "Schema",
    "FragmentParser",
    "SchemaParser",
    # Pipeline stages
    "FieldResolver",
    "ModelTreeAssembler",
    "NameAllocator",
    "ModelRegistry",
    "NestedModelBehavior",
    "ScalarMapper",
    "TargetType",
    # Results
    "ResolvedField",
    "ResolvedFragment",
    "ResolvedSelection",
    "ResolvedVariant",
    "ModelTree",
    "ModelShape",
    "ModelMember",
    "MemberRole",
    "Placement",
    "ShapeKind",
    # Diagnostics and errors
    "Diagnostic",
    "DiagnosticCode",
    "Severity",
    "ConfigurationError",
    "NamingCollisionError",
    # Type definitions
    "Field",
    "FieldDefinition",
    "Fragment",
    "TypeReference",
    "TypeRegistry",
]

__version__ = "0.1.0"
