"""Parser for GraphQL schema definition language (SDL) documents."""

from __future__ import annotations

from typing import Any

import ply.yacc as yacc

from typed_fragments.parsing.graphql_grammar import GraphQLGrammar, deprecation_from
from typed_fragments.types import (
    EnumTypeDefinition,
    EnumValueDefinition,
    FieldDefinition,
    InputTypeDefinition,
    InputValueDefinition,
    InterfaceTypeDefinition,
    ObjectTypeDefinition,
    ScalarTypeDefinition,
    TypeDefinition,
    TypeRegistry,
    UnionTypeDefinition,
)


class _SchemaRoots:
    """Root operation types declared by a `schema { }` block."""

    def __init__(self, operations: dict[str, str]) -> None:
        self.operations = operations


class SchemaParser(GraphQLGrammar):
    """Parser for schema definitions.

    Directive definitions are accepted and discarded; directive usages are
    kept only for `@deprecated`.
    """

    start = "document"

    def p_document(self, p: yacc.YaccProduction) -> None:
        """document : definition_list
                    | empty"""
        p[0] = p[1] or []

    def p_definition_list_single(self, p: yacc.YaccProduction) -> None:
        """definition_list : definition"""
        p[0] = [p[1]] if p[1] is not None else []

    def p_definition_list_multiple(self, p: yacc.YaccProduction) -> None:
        """definition_list : definition_list definition"""
        p[0] = p[1] + ([p[2]] if p[2] is not None else [])

    def p_definition(self, p: yacc.YaccProduction) -> None:
        """definition : schema_definition
                      | object_definition
                      | interface_definition
                      | union_definition
                      | enum_definition
                      | input_definition
                      | scalar_definition
                      | directive_definition"""
        p[0] = p[1]

    def p_description_opt(self, p: yacc.YaccProduction) -> None:
        """description_opt : STRING
                           | BLOCK_STRING
                           | empty"""
        p[0] = p[1]

    # ---- schema { query: Query } ----

    def p_schema_definition(self, p: yacc.YaccProduction) -> None:
        """schema_definition : description_opt SCHEMA directives_opt LBRACE operation_type_list RBRACE"""
        p[0] = _SchemaRoots(dict(p[5]))

    def p_operation_type_list_single(self, p: yacc.YaccProduction) -> None:
        """operation_type_list : operation_type"""
        p[0] = [p[1]]

    def p_operation_type_list_multiple(self, p: yacc.YaccProduction) -> None:
        """operation_type_list : operation_type_list operation_type"""
        p[0] = p[1] + [p[2]]

    def p_operation_type(self, p: yacc.YaccProduction) -> None:
        """operation_type : IDENTIFIER COLON IDENTIFIER"""
        if p[1] not in ("query", "mutation", "subscription"):
            self._reject(f"Unknown operation type '{p[1]}' (line {p.lineno(1)})")
        p[0] = (p[1], p[3])

    # ---- object types and interfaces ----

    def p_object_definition(self, p: yacc.YaccProduction) -> None:
        """object_definition : description_opt TYPE IDENTIFIER implements_opt directives_opt fields_definition_opt"""
        p[0] = ObjectTypeDefinition(
            name=p[3], description=p[1], interfaces=p[4], fields=p[6]
        )

    def p_interface_definition(self, p: yacc.YaccProduction) -> None:
        """interface_definition : description_opt INTERFACE IDENTIFIER implements_opt directives_opt fields_definition_opt"""
        p[0] = InterfaceTypeDefinition(
            name=p[3], description=p[1], interfaces=p[4], fields=p[6]
        )

    def p_implements_opt(self, p: yacc.YaccProduction) -> None:
        """implements_opt : IMPLEMENTS implements_list
                          | empty"""
        p[0] = p[2] if len(p) == 3 else []

    def p_implements_list_first(self, p: yacc.YaccProduction) -> None:
        """implements_list : IDENTIFIER
                           | AMP IDENTIFIER"""
        p[0] = [p[len(p) - 1]]

    def p_implements_list_more(self, p: yacc.YaccProduction) -> None:
        """implements_list : implements_list AMP IDENTIFIER
                           | implements_list IDENTIFIER"""
        p[0] = p[1] + [p[len(p) - 1]]

    def p_fields_definition_opt(self, p: yacc.YaccProduction) -> None:
        """fields_definition_opt : LBRACE field_definition_list RBRACE
                                 | LBRACE RBRACE
                                 | empty"""
        fields: dict[str, FieldDefinition] = {}
        if len(p) == 4:
            for fd in p[2]:
                if fd.name in fields:
                    self._reject(f"Duplicate field '{fd.name}' (line {p.lineno(1)})")
                    continue
                fields[fd.name] = fd
        p[0] = fields

    def p_field_definition_list_single(self, p: yacc.YaccProduction) -> None:
        """field_definition_list : field_definition"""
        p[0] = [p[1]]

    def p_field_definition_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_definition_list : field_definition_list field_definition"""
        p[0] = p[1] + [p[2]]

    def p_field_definition(self, p: yacc.YaccProduction) -> None:
        """field_definition : description_opt name arguments_definition_opt COLON type_ref directives_opt"""
        is_deprecated, reason = deprecation_from(p[6])
        p[0] = FieldDefinition(
            name=p[2],
            type=p[5],
            is_deprecated=is_deprecated,
            deprecation_reason=reason,
            description=p[1],
            arguments={arg.name: arg for arg in p[3]},
        )

    def p_arguments_definition_opt(self, p: yacc.YaccProduction) -> None:
        """arguments_definition_opt : LPAREN input_value_list RPAREN
                                    | empty"""
        p[0] = p[2] if len(p) == 4 else []

    def p_input_value_list_single(self, p: yacc.YaccProduction) -> None:
        """input_value_list : input_value"""
        p[0] = [p[1]]

    def p_input_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """input_value_list : input_value_list input_value"""
        p[0] = p[1] + [p[2]]

    def p_input_value(self, p: yacc.YaccProduction) -> None:
        """input_value : description_opt name COLON type_ref default_value_opt directives_opt"""
        p[0] = InputValueDefinition(
            name=p[2], type=p[4], default_value=p[5], description=p[1]
        )

    # ---- unions ----

    def p_union_definition(self, p: yacc.YaccProduction) -> None:
        """union_definition : description_opt UNION IDENTIFIER directives_opt union_members_opt"""
        p[0] = UnionTypeDefinition(name=p[3], description=p[1], possible_types=p[5])

    def p_union_members_opt(self, p: yacc.YaccProduction) -> None:
        """union_members_opt : EQUALS union_members
                             | empty"""
        p[0] = p[2] if len(p) == 3 else []

    def p_union_members_first(self, p: yacc.YaccProduction) -> None:
        """union_members : IDENTIFIER
                         | PIPE IDENTIFIER"""
        p[0] = [p[len(p) - 1]]

    def p_union_members_more(self, p: yacc.YaccProduction) -> None:
        """union_members : union_members PIPE IDENTIFIER"""
        p[0] = p[1] + [p[3]]

    # ---- enums, inputs, scalars ----

    def p_enum_definition(self, p: yacc.YaccProduction) -> None:
        """enum_definition : description_opt ENUM IDENTIFIER directives_opt enum_values_opt"""
        p[0] = EnumTypeDefinition(name=p[3], description=p[1], values=p[5])

    def p_enum_values_opt(self, p: yacc.YaccProduction) -> None:
        """enum_values_opt : LBRACE enum_value_list RBRACE
                           | LBRACE RBRACE
                           | empty"""
        p[0] = p[2] if len(p) == 4 else []

    def p_enum_value_list_single(self, p: yacc.YaccProduction) -> None:
        """enum_value_list : enum_value"""
        p[0] = [p[1]]

    def p_enum_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """enum_value_list : enum_value_list enum_value"""
        p[0] = p[1] + [p[2]]

    def p_enum_value(self, p: yacc.YaccProduction) -> None:
        """enum_value : description_opt name directives_opt"""
        is_deprecated, reason = deprecation_from(p[3])
        p[0] = EnumValueDefinition(
            name=p[2],
            description=p[1],
            is_deprecated=is_deprecated,
            deprecation_reason=reason,
        )

    def p_input_definition(self, p: yacc.YaccProduction) -> None:
        """input_definition : description_opt INPUT IDENTIFIER directives_opt input_fields_opt"""
        p[0] = InputTypeDefinition(
            name=p[3],
            description=p[1],
            input_fields={iv.name: iv for iv in p[5]},
        )

    def p_input_fields_opt(self, p: yacc.YaccProduction) -> None:
        """input_fields_opt : LBRACE input_value_list RBRACE
                            | LBRACE RBRACE
                            | empty"""
        p[0] = p[2] if len(p) == 4 else []

    def p_scalar_definition(self, p: yacc.YaccProduction) -> None:
        """scalar_definition : description_opt SCALAR IDENTIFIER directives_opt"""
        p[0] = ScalarTypeDefinition(name=p[3], description=p[1])

    # ---- directive definitions (discarded) ----

    def p_directive_definition(self, p: yacc.YaccProduction) -> None:
        """directive_definition : description_opt DIRECTIVE AT name arguments_definition_opt repeatable_opt ON directive_locations"""
        p[0] = None

    def p_repeatable_opt(self, p: yacc.YaccProduction) -> None:
        """repeatable_opt : IDENTIFIER
                          | empty"""
        if p[1] is not None and p[1] != "repeatable":
            self._reject(f"Syntax error at '{p[1]}' (line {p.lineno(1)})")
        p[0] = p[1] is not None

    def p_directive_locations(self, p: yacc.YaccProduction) -> None:
        """directive_locations : IDENTIFIER
                               | PIPE IDENTIFIER
                               | directive_locations PIPE IDENTIFIER"""
        p[0] = None

    def parse(self, data: str, registry: TypeRegistry | None = None) -> TypeRegistry:
        """Parse schema definitions into a TypeRegistry.

        Definitions are added to `registry` when one is given, so several
        documents can build one index. Duplicate type names raise ValueError.
        """
        if registry is None:
            registry = TypeRegistry()

        definitions: list[Any] = self._parse(data) or []
        for definition in definitions:
            if isinstance(definition, _SchemaRoots):
                self._apply_roots(registry, definition.operations)
            elif isinstance(definition, TypeDefinition):
                registry.register(definition)

        return registry

    def _apply_roots(self, registry: TypeRegistry, operations: dict[str, str]) -> None:
        registry.query_type = operations.get("query", registry.query_type)
        registry.mutation_type = operations.get("mutation", registry.mutation_type)
        registry.subscription_type = operations.get(
            "subscription", registry.subscription_type
        )
