"""Parsing module for GraphQL fragment and schema documents."""

from typed_fragments.parsing.fragment_parser import FragmentParser
from typed_fragments.parsing.graphql_lexer import GraphQLLexer
from typed_fragments.parsing.schema_parser import SchemaParser

__all__ = [
    "FragmentParser",
    "GraphQLLexer",
    "SchemaParser",
]
