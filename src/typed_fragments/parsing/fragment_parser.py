"""Parser for GraphQL fragment documents."""

from __future__ import annotations

from dataclasses import dataclass

import ply.yacc as yacc

from typed_fragments.parsing.graphql_grammar import GraphQLGrammar, deprecation_from
from typed_fragments.types import Field, Fragment

OPERATION_KEYWORDS = ("query", "mutation", "subscription")


@dataclass
class _Operation:
    """Placeholder for an operation definition; operations produce no models."""

    name: str | None


class FragmentParser(GraphQLGrammar):
    """Parser for fragment definitions.

    Besides standard GraphQL, a field may carry an explicit type annotation
    (`createdAt: DateTime!`) used when no schema resolves the field.
    Operation definitions are accepted and skipped.
    """

    start = "document"

    def p_document(self, p: yacc.YaccProduction) -> None:
        """document : definition_list
                    | empty"""
        definitions = p[1] or []
        p[0] = [d for d in definitions if isinstance(d, Fragment)]

    def p_definition_list_single(self, p: yacc.YaccProduction) -> None:
        """definition_list : definition"""
        p[0] = [p[1]]

    def p_definition_list_multiple(self, p: yacc.YaccProduction) -> None:
        """definition_list : definition_list definition"""
        p[0] = p[1] + [p[2]]

    def p_definition(self, p: yacc.YaccProduction) -> None:
        """definition : fragment_definition
                      | operation_definition"""
        p[0] = p[1]

    def p_fragment_definition(self, p: yacc.YaccProduction) -> None:
        """fragment_definition : FRAGMENT name_no_on ON IDENTIFIER directives_opt selection_set"""
        p[0] = Fragment(name=p[2], on_type=p[4], fields=p[6])

    def p_operation_definition(self, p: yacc.YaccProduction) -> None:
        """operation_definition : IDENTIFIER operation_name_opt variable_definitions_opt directives_opt selection_set"""
        if p[1] not in OPERATION_KEYWORDS:
            self._reject(f"Unknown operation type '{p[1]}' (line {p.lineno(1)})")
        p[0] = _Operation(name=p[2])

    def p_operation_definition_anonymous(self, p: yacc.YaccProduction) -> None:
        """operation_definition : selection_set"""
        p[0] = _Operation(name=None)

    def p_operation_name_opt(self, p: yacc.YaccProduction) -> None:
        """operation_name_opt : name_no_on
                              | empty"""
        p[0] = p[1]

    def p_variable_definitions_opt(self, p: yacc.YaccProduction) -> None:
        """variable_definitions_opt : LPAREN variable_definition_list RPAREN
                                    | empty"""
        p[0] = p[2] if len(p) == 4 else []

    def p_variable_definition_list_single(self, p: yacc.YaccProduction) -> None:
        """variable_definition_list : variable_definition"""
        p[0] = [p[1]]

    def p_variable_definition_list_multiple(self, p: yacc.YaccProduction) -> None:
        """variable_definition_list : variable_definition_list variable_definition"""
        p[0] = p[1] + [p[2]]

    def p_variable_definition(self, p: yacc.YaccProduction) -> None:
        """variable_definition : VARIABLE COLON type_ref default_value_opt directives_opt"""
        p[0] = (p[1], p[3])

    def p_selection_set(self, p: yacc.YaccProduction) -> None:
        """selection_set : LBRACE selection_list RBRACE"""
        p[0] = p[2]

    def p_selection_set_opt(self, p: yacc.YaccProduction) -> None:
        """selection_set_opt : selection_set
                             | empty"""
        p[0] = p[1]

    def p_selection_list_single(self, p: yacc.YaccProduction) -> None:
        """selection_list : selection"""
        p[0] = p[1]

    def p_selection_list_multiple(self, p: yacc.YaccProduction) -> None:
        """selection_list : selection_list selection"""
        p[0] = p[1] + p[2]

    def p_selection(self, p: yacc.YaccProduction) -> None:
        """selection : field
                     | fragment_spread
                     | inline_fragment"""
        # Each selection yields a list so untyped inline fragments can splice
        p[0] = p[1]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : name arguments_opt annotation_opt directives_opt selection_set_opt"""
        is_deprecated, reason = deprecation_from(p[4])
        p[0] = [
            Field(
                name=p[1],
                resolved_type=p[3],
                is_deprecated=is_deprecated,
                deprecation_reason=reason,
                selection=p[5] or [],
                arguments=p[2],
            )
        ]

    def p_annotation_opt(self, p: yacc.YaccProduction) -> None:
        """annotation_opt : COLON type_ref
                          | empty"""
        p[0] = p[2] if len(p) == 3 else None

    def p_fragment_spread(self, p: yacc.YaccProduction) -> None:
        """fragment_spread : ELLIPSIS name_no_on directives_opt"""
        p[0] = [Field(fragment_spreads=[p[2]])]

    def p_inline_fragment_typed(self, p: yacc.YaccProduction) -> None:
        """inline_fragment : ELLIPSIS ON IDENTIFIER directives_opt selection_set"""
        p[0] = [Field(type_condition=p[3], selection=p[5])]

    def p_inline_fragment_untyped(self, p: yacc.YaccProduction) -> None:
        """inline_fragment : ELLIPSIS directives_opt selection_set"""
        # No type condition: the fields belong to the enclosing selection
        p[0] = p[3]

    def parse(self, data: str) -> list[Fragment]:
        """Parse a document and return its fragment definitions in order."""
        fragments = self._parse(data)
        if fragments is None:
            fragments = []
        return fragments
