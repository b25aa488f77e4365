"""Run driver: parse sources, resolve fragments and assemble model trees."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from typed_fragments.assembler import ModelTreeAssembler
from typed_fragments.config import GeneratorConfig
from typed_fragments.diagnostics import Diagnostic, DiagnosticCode, DiagnosticSink, Severity
from typed_fragments.errors import ConfigurationError, NamingCollisionError
from typed_fragments.models import ModelTree
from typed_fragments.naming import ModelRegistry, NameAllocator
from typed_fragments.parsing import FragmentParser, SchemaParser
from typed_fragments.resolution import FieldResolver
from typed_fragments.scalars import ScalarMapper
from typed_fragments.schema import Schema
from typed_fragments.types import TYPENAME_FIELD, Fragment, TypeRegistry

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Model trees and diagnostics of one generation run.

    `failed` names the fragments that produced no tree.
    """

    trees: list[ModelTree] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def succeeded(self) -> bool:
        return not self.failed and not self.errors

    def get_tree(self, fragment_name: str) -> ModelTree | None:
        for tree in self.trees:
            if tree.fragment_name == fragment_name:
                return tree
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trees": [t.to_dict() for t in self.trees],
            "diagnostics": [
                {
                    "code": d.code.id,
                    "severity": d.severity.value,
                    "message": d.message,
                    "fragment": d.fragment,
                }
                for d in self.diagnostics
            ],
            "failed": list(self.failed),
        }


class FragmentModelGenerator:
    """Generates model trees for GraphQL fragments.

    Diagnostics reported by `parse_fragments` and `load_schema` are carried
    into the result of the next `generate` call. Each `generate` call starts
    with a fresh naming registry.
    """

    def __init__(self, config: GeneratorConfig | None = None) -> None:
        self.config = config or GeneratorConfig()
        self.registry = ModelRegistry()
        self.sink = DiagnosticSink()
        self._fragment_parser = FragmentParser()

    # ---- inputs ----

    def parse_fragments(self, sources: Iterable[str]) -> list[Fragment]:
        """Parse fragment documents; unparsable documents are reported and skipped."""
        fragments: list[Fragment] = []
        for index, source in enumerate(sources):
            try:
                parsed = self._fragment_parser.parse(source)
            except SyntaxError as e:
                self.sink.report(
                    DiagnosticCode.INVALID_SYNTAX, f"Document {index + 1}: {e}"
                )
                continue
            if not parsed:
                self.sink.report(
                    DiagnosticCode.NO_FRAGMENTS,
                    f"Document {index + 1} contains no fragment definitions",
                )
            fragments.extend(parsed)
        return fragments

    def load_schema(self, sources: Iterable[str] = ()) -> Schema | None:
        """Build the run's schema from configured files plus SDL `sources`.

        Missing files and invalid documents are reported and skipped; if
        nothing could be loaded the result is None and the run proceeds
        without a schema.
        """
        if not self.config.use_schema_for_type_inference:
            logger.debug("Schema use disabled; skipping schema loading")
            return None

        registry = TypeRegistry()
        parser = SchemaParser()
        loaded = 0

        documents: list[tuple[str, str]] = []
        for raw_path in self.config.schema_file_paths:
            path = Path(raw_path)
            if not path.is_file():
                self.sink.report(
                    DiagnosticCode.SCHEMA_FILE_NOT_FOUND, f"Schema file '{path}' not found"
                )
                continue
            documents.append((str(path), path.read_text(encoding="utf-8")))
        for index, source in enumerate(sources):
            documents.append((f"<schema {index + 1}>", source))

        for origin, text in documents:
            try:
                parser.parse(text, registry=registry)
            except (SyntaxError, ValueError) as e:
                self.sink.report(DiagnosticCode.INVALID_SCHEMA, f"{origin}: {e}")
                continue
            loaded += 1
            logger.info("Loaded schema from %s", origin)

        if not loaded:
            return None

        schema = Schema(registry)
        for owner, missing in schema.undefined_references():
            self.sink.report(
                DiagnosticCode.TYPE_NOT_FOUND,
                f"Type '{missing}' referenced by '{owner}' is not defined",
            )
        return schema

    # ---- generation ----

    def generate(
        self, fragments: Iterable[Fragment], schema: Schema | None = None
    ) -> GenerationResult:
        """Resolve and assemble every fragment.

        A naming collision or configuration error ends the affected
        fragment only; all other fragments still produce trees.
        """
        fragments = list(fragments)
        sink = self.sink
        self.sink = DiagnosticSink()
        self.registry.reset()
        result = GenerationResult()

        if schema is None and self.config.use_schema_for_type_inference:
            sink.report(
                DiagnosticCode.MISSING_SCHEMA,
                "No schema available; fields resolve without type information",
            )

        valid = self._validate(fragments, schema, sink, result)

        resolver = FieldResolver(schema, valid, self.config)
        allocator = NameAllocator(
            self.registry,
            custom_name_mappings=self.config.custom_model_name_mappings,
            behavior=self.config.nested_model_behavior,
            max_nested_depth=self.config.max_nested_depth,
        )
        mapper = ScalarMapper(
            self.config.custom_scalar_mappings,
            validate_non_nullable_fields=self.config.validate_non_nullable_fields,
        )
        assembler = ModelTreeAssembler(mapper, allocator, self.config)

        for fragment in valid:
            try:
                resolved = resolver.resolve(fragment)
                sink.extend(resolved.diagnostics)
                result.trees.append(assembler.assemble(resolved))
            except NamingCollisionError as e:
                sink.report(DiagnosticCode.NAMING_COLLISION, str(e), fragment=fragment.name)
                result.failed.append(fragment.name)
            except ConfigurationError as e:
                sink.report(DiagnosticCode.CONFIGURATION_ERROR, str(e), fragment=fragment.name)
                result.failed.append(fragment.name)

        result.diagnostics = list(sink.diagnostics)
        logger.info(
            "Generated %d model tree(s), %d failed, %d diagnostic(s)",
            len(result.trees),
            len(result.failed),
            len(result.diagnostics),
        )
        return result

    def generate_from_sources(
        self, fragment_sources: Iterable[str], schema_sources: Iterable[str] = ()
    ) -> GenerationResult:
        """Parse fragment and SDL text, then generate."""
        fragments = self.parse_fragments(fragment_sources)
        schema = self.load_schema(schema_sources)
        return self.generate(fragments, schema)

    def _validate(
        self,
        fragments: list[Fragment],
        schema: Schema | None,
        sink: DiagnosticSink,
        result: GenerationResult,
    ) -> list[Fragment]:
        valid: list[Fragment] = []
        seen: set[str] = set()
        for fragment in fragments:
            if not fragment.name or not fragment.name.isidentifier():
                sink.report(
                    DiagnosticCode.INVALID_FRAGMENT_NAME,
                    f"'{fragment.name}' is not a valid fragment name",
                    fragment=fragment.name or None,
                )
                result.failed.append(fragment.name)
                continue
            if fragment.name in seen:
                sink.report(
                    DiagnosticCode.INVALID_FRAGMENT_NAME,
                    f"Fragment '{fragment.name}' is defined more than once",
                    fragment=fragment.name,
                )
                result.failed.append(fragment.name)
                continue
            seen.add(fragment.name)

            if _needs_typename(fragment, schema) and not any(
                f.name == TYPENAME_FIELD for f in fragment.fields
            ):
                sink.report(
                    DiagnosticCode.MISSING_TYPENAME,
                    f"Fragment '{fragment.name}' on '{fragment.on_type}' should select "
                    f"{TYPENAME_FIELD} to tell its variants apart",
                    fragment=fragment.name,
                )
            valid.append(fragment)
        return valid


def _needs_typename(fragment: Fragment, schema: Schema | None) -> bool:
    if schema is not None and schema.has_type(fragment.on_type):
        return schema.is_abstract(fragment.on_type)
    return any(f.is_type_conditional for f in fragment.fields)
