"""Tests for the generation run driver."""

import logging

import pytest

from typed_fragments.config import GeneratorConfig
from typed_fragments.diagnostics import DiagnosticCode, Severity
from typed_fragments.generator import FragmentModelGenerator
from typed_fragments.schema import Schema
from typed_fragments.types import Fragment

SDL = """
interface Node { id: ID! }

type User implements Node {
  id: ID!
  name: String
  billing: Address
  shipping: Address
}

type Address {
  street: String
  city: String!
}

type Article implements Node { id: ID! body: String }
type Video implements Node { id: ID! url: String }

union Content = Article | Video
"""

USER_FRAGMENTS = """
fragment UserSummary on User { id name }
fragment UserAddresses on User { billing { city } shipping { street } }
"""


@pytest.fixture
def generator():
    """Create a generator with default configuration."""
    return FragmentModelGenerator()


def codes(result):
    return [d.code for d in result.diagnostics]


class TestGenerateFromSources:
    """Tests for the full run from source text."""

    def test_with_schema(self, generator):
        """Test a clean run produces one tree per fragment."""
        result = generator.generate_from_sources([USER_FRAGMENTS], [SDL])

        assert result.succeeded
        assert [t.fragment_name for t in result.trees] == ["UserSummary", "UserAddresses"]
        assert result.diagnostics == []
        summary = result.get_tree("UserSummary")
        assert summary.root.get_member("id").target.annotation == "str"
        assert result.get_tree("Missing") is None

    def test_without_schema_never_fails(self, generator):
        """Test that a schema-less run still produces every tree."""
        result = generator.generate_from_sources([USER_FRAGMENTS])

        assert result.succeeded
        assert len(result.trees) == 2
        assert codes(result) == [DiagnosticCode.MISSING_SCHEMA]
        assert result.diagnostics[0].severity is Severity.INFO

    def test_schema_use_disabled(self):
        """Test that no schema diagnostics appear when schema use is off."""
        generator = FragmentModelGenerator(GeneratorConfig(use_schema_for_type_inference=False))

        result = generator.generate_from_sources([USER_FRAGMENTS], [SDL])

        assert result.diagnostics == []
        member = result.get_tree("UserSummary").root.get_member("id")
        assert member.target.annotation == "str | None"

    def test_invalid_fragment_document(self, generator):
        """Test that a broken document is reported and the others still run."""
        result = generator.generate_from_sources(
            ["fragment Broken on User { id", "fragment Ok on User { id }"], [SDL]
        )

        assert codes(result) == [DiagnosticCode.INVALID_SYNTAX]
        assert [t.fragment_name for t in result.trees] == ["Ok"]
        assert not result.succeeded

    def test_invalid_string_escape(self, generator):
        """Test that a bad unicode escape is reported as a syntax error."""
        result = generator.generate_from_sources(
            ['fragment U on User { billing(x: "\\uZZZZ") { city } }', "fragment Ok on User { id }"],
            [SDL],
        )

        assert codes(result) == [DiagnosticCode.INVALID_SYNTAX]
        assert "Invalid unicode escape" in result.diagnostics[0].message
        assert [t.fragment_name for t in result.trees] == ["Ok"]

    def test_document_without_fragments(self, generator):
        """Test a warning for documents with no fragment definitions."""
        result = generator.generate_from_sources(
            ["query Q { viewer { id } }", "fragment Ok on User { id }"], [SDL]
        )

        assert codes(result) == [DiagnosticCode.NO_FRAGMENTS]
        assert result.succeeded
        assert result.warnings[0].code is DiagnosticCode.NO_FRAGMENTS

    def test_invalid_schema(self, generator):
        """Test that unparsable SDL leaves the run schema-less."""
        result = generator.generate_from_sources(["fragment Ok on User { id }"], ["type User {"])

        assert codes(result) == [DiagnosticCode.INVALID_SCHEMA, DiagnosticCode.MISSING_SCHEMA]
        assert len(result.trees) == 1

    def test_undefined_schema_reference(self, generator):
        """Test that dangling type names in the schema are reported."""
        result = generator.generate_from_sources(
            ["fragment Ok on User { id }"], ["type User { id: ID! pet: Pet }"]
        )

        assert codes(result) == [DiagnosticCode.TYPE_NOT_FOUND]
        assert "Pet" in result.diagnostics[0].message

    def test_missing_typename(self, generator):
        """Test a warning when an abstract fragment omits __typename."""
        result = generator.generate_from_sources(
            [
                "fragment C on Content { ... on Article { body } }",
                "fragment T on Content { __typename ... on Video { url } }",
            ],
            [SDL],
        )

        assert codes(result) == [DiagnosticCode.MISSING_TYPENAME]
        assert result.diagnostics[0].fragment == "C"
        assert len(result.trees) == 2

    def test_resolution_diagnostics_collected(self, generator):
        """Test that per-fragment diagnostics reach the result."""
        result = generator.generate_from_sources(
            ["fragment U on User { id nickname ...Nope }"], [SDL]
        )

        # Spreads are inlined before the level's fields are resolved
        assert codes(result) == [
            DiagnosticCode.FRAGMENT_SPREAD_NOT_FOUND,
            DiagnosticCode.FIELD_NOT_FOUND,
        ]
        assert [d.fragment for d in result.diagnostics] == ["U", "U"]
        assert result.get_tree("U") is not None
        assert result.failed == []


class TestSchemaFiles:
    """Tests for configured schema files."""

    def test_schema_files_loaded(self, tmp_path):
        """Test that configured schema files are read."""
        schema_path = tmp_path / "schema.graphql"
        schema_path.write_text(SDL)
        generator = FragmentModelGenerator(GeneratorConfig(schema_file_paths=[str(schema_path)]))

        result = generator.generate_from_sources(["fragment U on User { id }"])

        assert result.diagnostics == []
        assert result.get_tree("U").root.get_member("id").target.annotation == "str"

    def test_missing_schema_file(self, tmp_path):
        """Test that a missing file is reported and the run continues."""
        config = GeneratorConfig(schema_file_paths=[str(tmp_path / "nope.graphql")])
        generator = FragmentModelGenerator(config)

        result = generator.generate_from_sources(["fragment U on User { id }"])

        assert codes(result) == [
            DiagnosticCode.SCHEMA_FILE_NOT_FOUND,
            DiagnosticCode.MISSING_SCHEMA,
        ]
        assert len(result.trees) == 1

    def test_missing_file_with_inline_schema(self, tmp_path):
        """Test that other schema sources still load when one file is missing."""
        config = GeneratorConfig(schema_file_paths=[str(tmp_path / "nope.graphql")])
        generator = FragmentModelGenerator(config)

        result = generator.generate_from_sources(["fragment U on User { id }"], [SDL])

        assert codes(result) == [DiagnosticCode.SCHEMA_FILE_NOT_FOUND]


class TestGenerate:
    """Tests for generate with pre-built inputs."""

    def test_collision_isolated_to_fragment(self):
        """Test that a naming collision fails only the offending fragment."""
        generator = FragmentModelGenerator(
            GeneratorConfig(custom_model_name_mappings={"Address": "Location"})
        )

        result = generator.generate_from_sources([USER_FRAGMENTS], [SDL])

        assert result.failed == ["UserAddresses"]
        assert [t.fragment_name for t in result.trees] == ["UserSummary"]
        assert codes(result) == [DiagnosticCode.NAMING_COLLISION]
        assert result.errors[0].fragment == "UserAddresses"

    def test_mixed_shared_groups_do_not_collide(self):
        """Test that distinct shared shapes with one bare name all generate."""
        generator = FragmentModelGenerator(GeneratorConfig(nested_model_behavior="mixed"))

        result = generator.generate_from_sources(
            [
                "fragment U on User { a { address { city } } b { address { city } } "
                "c { address { street } } d { address { street } } }"
            ]
        )

        assert result.failed == []
        assert not any(d.code is DiagnosticCode.NAMING_COLLISION for d in result.diagnostics)
        tree = result.get_tree("U")
        assert tree.get_shape("U_AddressModel") is not None
        assert tree.get_shape("U_C_AddressModel") is not None

    def test_configuration_error_isolated_to_fragment(self):
        """Test that an unusable custom name fails only the affected fragment."""
        generator = FragmentModelGenerator(
            GeneratorConfig(custom_model_name_mappings={"billing": "not valid"})
        )

        result = generator.generate_from_sources([USER_FRAGMENTS], [SDL])

        assert result.failed == ["UserAddresses"]
        assert codes(result) == [DiagnosticCode.CONFIGURATION_ERROR]

    def test_invalid_and_duplicate_names(self):
        """Test fragment name validation."""
        generator = FragmentModelGenerator()
        fragments = [
            Fragment(name="A", on_type="User"),
            Fragment(name="A", on_type="User"),
            Fragment(name="bad-name", on_type="User"),
        ]

        result = generator.generate(fragments, Schema.parse(SDL))

        assert codes(result) == [
            DiagnosticCode.INVALID_FRAGMENT_NAME,
            DiagnosticCode.INVALID_FRAGMENT_NAME,
        ]
        assert result.failed == ["A", "bad-name"]
        assert [t.fragment_name for t in result.trees] == ["A"]

    def test_runs_are_independent(self, generator):
        """Test that repeated runs give identical results."""
        fragments = generator.parse_fragments([USER_FRAGMENTS])
        schema = generator.load_schema([SDL])

        first = generator.generate(fragments, schema)
        second = generator.generate(fragments, schema)

        assert first.to_dict() == second.to_dict()
        assert first.succeeded

    def test_pending_diagnostics_move_to_next_run(self, generator):
        """Test that input diagnostics are reported once."""
        fragments = generator.parse_fragments(["fragment A on User { id", "fragment B on User { id }"])

        first = generator.generate(fragments)
        second = generator.generate(fragments)

        assert DiagnosticCode.INVALID_SYNTAX in codes(first)
        assert DiagnosticCode.INVALID_SYNTAX not in codes(second)

    def test_result_to_dict(self, generator):
        """Test the serialized result."""
        result = generator.generate_from_sources(["fragment U on User { id }"])

        data = result.to_dict()
        assert data["failed"] == []
        assert data["diagnostics"] == [
            {
                "code": "GQLSG012",
                "severity": "info",
                "message": "No schema available; fields resolve without type information",
                "fragment": None,
            }
        ]
        assert data["trees"][0]["root"] == "UFragment"

    def test_diagnostics_are_logged(self, generator, caplog):
        """Test that diagnostics are written to the log."""
        with caplog.at_level(logging.INFO, logger="typed_fragments"):
            generator.generate_from_sources(["fragment U on User { id }"])

        assert any("GQLSG012" in record.getMessage() for record in caplog.records)
