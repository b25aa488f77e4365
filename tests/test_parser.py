"""Tests for the GraphQL lexer and fragment parser."""

import pytest

from typed_fragments.parsing import FragmentParser
from typed_fragments.parsing.graphql_lexer import GraphQLLexer
from typed_fragments.types import TypeReference


@pytest.fixture
def lexer():
    """Create a built GraphQLLexer."""
    lexer = GraphQLLexer()
    lexer.build()
    return lexer


@pytest.fixture
def parser():
    """Create a fresh FragmentParser."""
    return FragmentParser()


class TestGraphQLLexer:
    """Tests for the GraphQL lexer."""

    def test_tokenize_fragment_header(self, lexer):
        """Test tokenizing a fragment definition."""
        tokens = lexer.tokenize("fragment UserFields on User { id }")
        token_types = [t.type for t in tokens]

        assert token_types == [
            "FRAGMENT",
            "IDENTIFIER",
            "ON",
            "IDENTIFIER",
            "LBRACE",
            "IDENTIFIER",
            "RBRACE",
        ]

    def test_commas_ignored(self, lexer):
        """Test that commas are insignificant."""
        tokens = lexer.tokenize("{ a, b, }")
        token_types = [t.type for t in tokens]

        assert token_types == ["LBRACE", "IDENTIFIER", "IDENTIFIER", "RBRACE"]

    def test_comments_ignored(self, lexer):
        """Test that comments are skipped."""
        tokens = lexer.tokenize("# a comment\nfoo # trailing")

        assert [t.value for t in tokens] == ["foo"]

    def test_ellipsis_and_spread(self, lexer):
        """Test tokenizing a fragment spread."""
        tokens = lexer.tokenize("...UserFields")

        assert [t.type for t in tokens] == ["ELLIPSIS", "IDENTIFIER"]

    def test_numbers(self, lexer):
        """Test integer and float literals."""
        tokens = lexer.tokenize("42 -3 1.5 2e3")

        assert [(t.type, t.value) for t in tokens] == [
            ("INTEGER", 42),
            ("INTEGER", -3),
            ("FLOAT", 1.5),
            ("FLOAT", 2000.0),
        ]

    def test_variable(self, lexer):
        """Test that variables drop their dollar sign."""
        tokens = lexer.tokenize("$userId")

        assert tokens[0].type == "VARIABLE"
        assert tokens[0].value == "userId"

    def test_string_escapes(self, lexer):
        """Test escape handling in strings."""
        tokens = lexer.tokenize(r'"a\nb \"q\" A"')

        assert tokens[0].type == "STRING"
        assert tokens[0].value == 'a\nb "q" A'

    @pytest.mark.parametrize("text", [r'"\uZZZZ"', r'"\u12"'])
    def test_invalid_unicode_escape(self, lexer, text):
        """Test error on a unicode escape that is not four hex digits."""
        with pytest.raises(SyntaxError, match="Invalid unicode escape"):
            lexer.tokenize(text)

    def test_block_string_dedented(self, lexer):
        """Test that block strings lose common indentation."""
        tokens = lexer.tokenize('"""\n    Hello\n      world\n    """')

        assert tokens[0].type == "BLOCK_STRING"
        assert tokens[0].value == "Hello\n  world"

    def test_line_numbers(self, lexer):
        """Test that newlines advance the line number."""
        tokens = lexer.tokenize("a\n\nb")

        assert tokens[0].lineno == 1
        assert tokens[1].lineno == 3

    def test_line_numbers_reset_between_inputs(self, lexer):
        """Test that each input starts at line 1."""
        lexer.tokenize("a\nb\nc")
        tokens = lexer.tokenize("d")

        assert tokens[0].lineno == 1

    def test_illegal_character(self, lexer):
        """Test error on illegal character."""
        with pytest.raises(SyntaxError):
            lexer.tokenize("fragment A on User { id % }")


class TestFragmentParser:
    """Tests for the fragment parser."""

    def test_parse_simple_fragment(self, parser):
        """Test parsing a fragment with scalar fields."""
        fragments = parser.parse("fragment UserFields on User { id name }")

        assert len(fragments) == 1
        fragment = fragments[0]
        assert fragment.name == "UserFields"
        assert fragment.on_type == "User"
        assert [f.name for f in fragment.fields] == ["id", "name"]

    def test_parse_nested_selection(self, parser):
        """Test that sub-selections become object-valued fields."""
        fragment = parser.parse("fragment A on User { posts { title } }")[0]

        posts = fragment.fields[0]
        assert posts.is_object
        assert [f.name for f in posts.selection] == ["title"]
        assert not posts.selection[0].is_object

    def test_parse_fragment_spread(self, parser):
        """Test that spreads stay at their position."""
        fragment = parser.parse("fragment A on User { id ...Other name }")[0]

        assert [f.name for f in fragment.fields] == ["id", "", "name"]
        spread = fragment.fields[1]
        assert spread.is_fragment_spread
        assert spread.fragment_spreads == ["Other"]

    def test_parse_inline_fragment(self, parser):
        """Test parsing a type-conditional selection."""
        fragment = parser.parse(
            "fragment C on Content { title ... on Article { body } }"
        )[0]

        conditional = fragment.fields[1]
        assert conditional.is_type_conditional
        assert conditional.type_condition == "Article"
        assert [f.name for f in conditional.selection] == ["body"]
        assert not conditional.is_fragment_spread

    def test_untyped_inline_fragment_is_spliced(self, parser):
        """Test that `... { }` without a type condition joins the parent selection."""
        fragment = parser.parse("fragment A on User { id ... { name email } }")[0]

        assert [f.name for f in fragment.fields] == ["id", "name", "email"]

    def test_parse_type_annotation(self, parser):
        """Test explicit `field: Type` annotations."""
        fragment = parser.parse(
            "fragment A on User { createdAt: DateTime! tags: [String!] }"
        )[0]

        created, tags = fragment.fields
        assert created.resolved_type == TypeReference.named("DateTime", nullable=False)
        assert tags.resolved_type.is_list
        assert tags.resolved_type.is_nullable
        assert tags.resolved_type.element_type == TypeReference.named("String", nullable=False)

    def test_unannotated_field_has_no_type(self, parser):
        """Test that plain fields carry no resolved type."""
        fragment = parser.parse("fragment A on User { id }")[0]

        assert fragment.fields[0].resolved_type is None

    def test_parse_deprecated_directive(self, parser):
        """Test that @deprecated marks the field."""
        fragment = parser.parse(
            'fragment A on User { old @deprecated(reason: "use new") other @deprecated }'
        )[0]

        old, other = fragment.fields
        assert old.is_deprecated
        assert old.deprecation_reason == "use new"
        assert other.is_deprecated
        assert other.deprecation_reason is None

    def test_other_directives_ignored(self, parser):
        """Test that unrelated directives do not mark deprecation."""
        fragment = parser.parse("fragment A on User { id @include(if: $flag) }")[0]

        assert not fragment.fields[0].is_deprecated

    def test_parse_arguments(self, parser):
        """Test argument values are parsed."""
        fragment = parser.parse(
            'fragment A on User { avatar(size: 64, round: true, fmt: PNG, tags: ["a"], '
            "opts: {x: 1.5}, id: $id, none: null) }"
        )[0]

        assert fragment.fields[0].arguments == {
            "size": 64,
            "round": True,
            "fmt": "PNG",
            "tags": ["a"],
            "opts": {"x": 1.5},
            "id": "$id",
            "none": None,
        }

    def test_keywords_as_field_names(self, parser):
        """Test that keywords are usable as field names."""
        fragment = parser.parse("fragment A on Thing { type input on fragment }")[0]

        assert [f.name for f in fragment.fields] == ["type", "input", "on", "fragment"]

    def test_multiple_fragments_in_order(self, parser):
        """Test parsing several fragments from one document."""
        fragments = parser.parse(
            """
            fragment A on User { id }
            fragment B on Post { title }
            """
        )

        assert [f.name for f in fragments] == ["A", "B"]

    def test_operations_are_skipped(self, parser):
        """Test that queries in the same document produce no fragments."""
        fragments = parser.parse(
            """
            query GetUser($id: ID!, $limit: Int = 10) {
              user(id: $id) { ...UserFields }
            }
            fragment UserFields on User { id }
            { viewer { id } }
            """
        )

        assert [f.name for f in fragments] == ["UserFields"]

    def test_unknown_operation_keyword(self, parser):
        """Test that an unknown operation type is rejected."""
        with pytest.raises(SyntaxError):
            parser.parse("fetch Something { id }")

    def test_empty_document(self, parser):
        """Test that an empty document has no fragments."""
        assert parser.parse("") == []
        assert parser.parse("# only a comment") == []

    def test_missing_fragment_name(self, parser):
        """Test error when the fragment name is missing."""
        with pytest.raises(SyntaxError):
            parser.parse("fragment on User { id }")

    def test_unterminated_selection(self, parser):
        """Test error at end of input."""
        with pytest.raises(SyntaxError, match="end of input"):
            parser.parse("fragment A on User { id")

    def test_invalid_escape_in_argument(self, parser):
        """Test that a bad escape in an argument value is a syntax error."""
        with pytest.raises(SyntaxError, match="line 2"):
            parser.parse('fragment A on User {\n  posts(after: "\\uZZZZ") { title }\n}')

    def test_parser_is_reusable(self, parser):
        """Test parsing several documents with one parser."""
        first = parser.parse("fragment A on User { id }")
        second = parser.parse("fragment B on User { name }")

        assert first[0].name == "A"
        assert second[0].name == "B"
