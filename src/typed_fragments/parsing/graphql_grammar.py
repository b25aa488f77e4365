"""Grammar rules shared by the fragment and schema parsers.

Both parsers inherit these productions; ply collects every `p_` method
visible on the parser instance, so each parser builds its own tables from
its own rules plus these.
"""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from typed_fragments.parsing.graphql_lexer import GraphQLLexer
from typed_fragments.types import TypeReference


class Directive:
    """A parsed `@name(args)` usage."""

    __slots__ = ("name", "arguments")

    def __init__(self, name: str, arguments: dict[str, Any]) -> None:
        self.name = name
        self.arguments = arguments

    def __repr__(self) -> str:
        return f"Directive({self.name!r}, {self.arguments!r})"


def deprecation_from(directives: list[Directive]) -> tuple[bool, str | None]:
    """Return (is_deprecated, reason) from a directive list."""
    for d in directives:
        if d.name == "deprecated":
            reason = d.arguments.get("reason")
            return True, reason if isinstance(reason, str) else None
    return False, None


class GraphQLGrammar:
    """Productions for names, type references, directives and values."""

    tokens = GraphQLLexer.tokens

    def __init__(self) -> None:
        self.lexer = GraphQLLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self._errors: list[str] = []

    def p_name_no_on(self, p: yacc.YaccProduction) -> None:
        """name_no_on : IDENTIFIER
                      | FRAGMENT
                      | TYPE
                      | INTERFACE
                      | UNION
                      | ENUM
                      | INPUT
                      | SCALAR
                      | SCHEMA
                      | IMPLEMENTS
                      | DIRECTIVE"""
        p[0] = p[1]

    def p_name(self, p: yacc.YaccProduction) -> None:
        """name : name_no_on
                | ON"""
        p[0] = p[1]

    def p_type_ref_named(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = TypeReference.named(p[1], nullable=True)

    def p_type_ref_named_non_null(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER BANG"""
        p[0] = TypeReference.named(p[1], nullable=False)

    def p_type_ref_list(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACKET type_ref RBRACKET"""
        p[0] = TypeReference.list_of(p[2], nullable=True)

    def p_type_ref_list_non_null(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACKET type_ref RBRACKET BANG"""
        p[0] = TypeReference.list_of(p[2], nullable=False)

    def p_directives_opt(self, p: yacc.YaccProduction) -> None:
        """directives_opt : directive_list
                          | empty"""
        p[0] = p[1] if p[1] is not None else []

    def p_directive_list_single(self, p: yacc.YaccProduction) -> None:
        """directive_list : directive"""
        p[0] = [p[1]]

    def p_directive_list_multiple(self, p: yacc.YaccProduction) -> None:
        """directive_list : directive_list directive"""
        p[0] = p[1] + [p[2]]

    def p_directive(self, p: yacc.YaccProduction) -> None:
        """directive : AT name arguments_opt"""
        p[0] = Directive(p[2], p[3])

    def p_arguments_opt(self, p: yacc.YaccProduction) -> None:
        """arguments_opt : LPAREN argument_list RPAREN
                         | empty"""
        p[0] = p[2] if len(p) == 4 else {}

    def p_argument_list_single(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument"""
        p[0] = dict([p[1]])

    def p_argument_list_multiple(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument_list argument"""
        p[0] = p[1]
        p[0][p[2][0]] = p[2][1]

    def p_argument(self, p: yacc.YaccProduction) -> None:
        """argument : name COLON value"""
        p[0] = (p[1], p[3])

    def p_default_value_opt(self, p: yacc.YaccProduction) -> None:
        """default_value_opt : EQUALS value
                             | empty"""
        p[0] = p[2] if len(p) == 3 else None

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING
                 | BLOCK_STRING"""
        p[0] = p[1]

    def p_value_variable(self, p: yacc.YaccProduction) -> None:
        """value : VARIABLE"""
        p[0] = f"${p[1]}"

    def p_value_name(self, p: yacc.YaccProduction) -> None:
        """value : name"""
        # Booleans and null are plain names at the token level
        p[0] = {"true": True, "false": False, "null": None}.get(p[1], p[1])

    def p_value_list_empty(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET RBRACKET"""
        p[0] = []

    def p_value_list(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET value_list RBRACKET"""
        p[0] = p[2]

    def p_value_object_empty(self, p: yacc.YaccProduction) -> None:
        """value : LBRACE RBRACE"""
        p[0] = {}

    def p_value_object(self, p: yacc.YaccProduction) -> None:
        """value : LBRACE object_field_list RBRACE"""
        p[0] = p[2]

    def p_value_list_items_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_items_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list value"""
        p[0] = p[1] + [p[2]]

    def p_object_field_list_single(self, p: yacc.YaccProduction) -> None:
        """object_field_list : argument"""
        p[0] = dict([p[1]])

    def p_object_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """object_field_list : object_field_list argument"""
        p[0] = p[1]
        p[0][p[2][0]] = p[2][1]

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        kwargs.setdefault("errorlog", yacc.NullLogger())
        self.parser = yacc.yacc(module=self, **kwargs)

    def _reject(self, message: str) -> None:
        """Record an error found inside a grammar action.

        ply treats a SyntaxError raised from an action as a request for error
        recovery, so such errors are collected and raised once parsing ends.
        """
        self._errors.append(message)

    def _parse(self, data: str) -> Any:
        if self.parser is None:
            self.build(debug=False, write_tables=False)
        self._errors = []
        self.lexer.input(data)
        result = self.parser.parse(data, lexer=self.lexer.lexer)
        if self._errors:
            raise SyntaxError(self._errors[0])
        return result
