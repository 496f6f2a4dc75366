"""Parser for the record declaration DSL."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from typed_records.parsing.type_lexer import TypeLexer
from typed_records.roles import RoleDescriptor, make_role
from typed_records.types import (
    AliasTypeDefinition,
    DynamicRecordTypeDefinition,
    EnumTypeDefinition,
    FieldDefinition,
    RecordTypeDefinition,
    RoleEntry,
    TypeDefinition,
    TypeRegistry,
)


@dataclass
class TypeRef:
    """Reference to a type with its ``[]`` and ``?`` suffixes, innermost first."""

    name: str
    suffixes: list[str] = field(default_factory=list)


@dataclass
class RoleSpec:
    """A ``@kind(arg=value)`` annotation before resolution."""

    kind: str
    arguments: dict[str, Any]
    lineno: int


@dataclass
class FieldSpec:
    """Specification for a record field before resolution."""

    name: str
    type_ref: TypeRef
    roles: list[RoleSpec]
    index_params: list[FieldSpec] = field(default_factory=list)


@dataclass
class RecordSpec:
    """Specification for a record type before resolution."""

    name: str
    fields: list[FieldSpec]


@dataclass
class DynamicFieldSpec:
    """A dynamic record key with its roles."""

    name: str
    roles: list[RoleSpec]


@dataclass
class DynamicSpec:
    """Specification for a dynamic record's role table."""

    name: str
    fields: list[DynamicFieldSpec]


@dataclass
class EnumSpec:
    """Specification for an enum type before resolution."""

    name: str
    variants: list[tuple[str, int | None]]


@dataclass
class AliasSpec:
    """Specification for an alias before resolution."""

    name: str
    base_type_ref: TypeRef


Spec = AliasSpec | EnumSpec | RecordSpec | DynamicSpec


class TypeParser:
    """Parser for the record declaration DSL."""

    tokens = TypeLexer.tokens

    def __init__(self) -> None:
        self.lexer = TypeLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.registry: TypeRegistry = TypeRegistry()
        self._specs: list[Spec] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : statement_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema : empty"""
        p[0] = []

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list statement"""
        p[0] = p[1] + [p[2]]

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : alias_def
                     | enum_def
                     | record_def
                     | dynamic_def"""
        p[0] = p[1]

    def p_alias_def(self, p: yacc.YaccProduction) -> None:
        """alias_def : DEFINE IDENTIFIER AS type_ref"""
        p[0] = AliasSpec(name=p[2], base_type_ref=p[4])

    def p_enum_def(self, p: yacc.YaccProduction) -> None:
        """enum_def : ENUM IDENTIFIER LBRACE enum_variant_list RBRACE
                    | ENUM IDENTIFIER LBRACE enum_variant_list COMMA RBRACE"""
        p[0] = EnumSpec(name=p[2], variants=p[4])

    def p_enum_variant_list_single(self, p: yacc.YaccProduction) -> None:
        """enum_variant_list : enum_variant"""
        p[0] = [p[1]]

    def p_enum_variant_list_multiple(self, p: yacc.YaccProduction) -> None:
        """enum_variant_list : enum_variant_list COMMA enum_variant"""
        p[0] = p[1] + [p[3]]

    def p_enum_variant_bare(self, p: yacc.YaccProduction) -> None:
        """enum_variant : IDENTIFIER"""
        p[0] = (p[1], None)

    def p_enum_variant_value(self, p: yacc.YaccProduction) -> None:
        """enum_variant : IDENTIFIER EQUALS INTEGER"""
        p[0] = (p[1], p[3])

    def p_record_def(self, p: yacc.YaccProduction) -> None:
        """record_def : RECORD IDENTIFIER LBRACE field_list RBRACE
                      | RECORD IDENTIFIER LBRACE field_list COMMA RBRACE"""
        p[0] = RecordSpec(name=p[2], fields=p[4])

    def p_record_def_empty(self, p: yacc.YaccProduction) -> None:
        """record_def : RECORD IDENTIFIER LBRACE RBRACE"""
        p[0] = RecordSpec(name=p[2], fields=[])

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list COMMA field"""
        p[0] = p[1] + [p[3]]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref role_list"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3], roles=p[4])

    def p_field_indexed(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER LBRACKET param_list RBRACKET COLON type_ref role_list"""
        p[0] = FieldSpec(name=p[1], type_ref=p[6], roles=p[7], index_params=p[3])

    def p_param_list_single(self, p: yacc.YaccProduction) -> None:
        """param_list : param"""
        p[0] = [p[1]]

    def p_param_list_multiple(self, p: yacc.YaccProduction) -> None:
        """param_list : param_list COMMA param"""
        p[0] = p[1] + [p[3]]

    def p_param(self, p: yacc.YaccProduction) -> None:
        """param : IDENTIFIER COLON type_ref"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3], roles=[])

    def p_dynamic_def(self, p: yacc.YaccProduction) -> None:
        """dynamic_def : DYNAMIC IDENTIFIER LBRACE dynamic_field_list RBRACE
                       | DYNAMIC IDENTIFIER LBRACE dynamic_field_list COMMA RBRACE"""
        p[0] = DynamicSpec(name=p[2], fields=p[4])

    def p_dynamic_def_empty(self, p: yacc.YaccProduction) -> None:
        """dynamic_def : DYNAMIC IDENTIFIER LBRACE RBRACE"""
        p[0] = DynamicSpec(name=p[2], fields=[])

    def p_dynamic_field_list_single(self, p: yacc.YaccProduction) -> None:
        """dynamic_field_list : dynamic_field"""
        p[0] = [p[1]]

    def p_dynamic_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """dynamic_field_list : dynamic_field_list COMMA dynamic_field"""
        p[0] = p[1] + [p[3]]

    def p_dynamic_field(self, p: yacc.YaccProduction) -> None:
        """dynamic_field : IDENTIFIER role_list"""
        p[0] = DynamicFieldSpec(name=p[1], roles=p[2])

    def p_role_list_empty(self, p: yacc.YaccProduction) -> None:
        """role_list : empty"""
        p[0] = []

    def p_role_list_multiple(self, p: yacc.YaccProduction) -> None:
        """role_list : role_list role"""
        p[0] = p[1] + [p[2]]

    def p_role_bare(self, p: yacc.YaccProduction) -> None:
        """role : AT IDENTIFIER
                | AT IDENTIFIER LPAREN RPAREN"""
        p[0] = RoleSpec(kind=p[2], arguments={}, lineno=p.lineno(2))

    def p_role_arguments(self, p: yacc.YaccProduction) -> None:
        """role : AT IDENTIFIER LPAREN argument_list RPAREN"""
        arguments: dict[str, Any] = {}
        for name, value in p[4]:
            if name in arguments:
                raise SyntaxError(f"Duplicate argument '{name}' for role '{p[2]}' (line {p.lineno(2)})")
            arguments[name] = value
        p[0] = RoleSpec(kind=p[2], arguments=arguments, lineno=p.lineno(2))

    def p_argument_list_single(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument"""
        p[0] = [p[1]]

    def p_argument_list_multiple(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument_list COMMA argument"""
        p[0] = p[1] + [p[3]]

    def p_argument(self, p: yacc.YaccProduction) -> None:
        """argument : IDENTIFIER EQUALS literal"""
        p[0] = (p[1], p[3])

    def p_literal(self, p: yacc.YaccProduction) -> None:
        """literal : STRING
                   | INTEGER"""
        p[0] = p[1]

    def p_literal_true(self, p: yacc.YaccProduction) -> None:
        """literal : TRUE"""
        p[0] = True

    def p_literal_false(self, p: yacc.YaccProduction) -> None:
        """literal : FALSE"""
        p[0] = False

    def p_type_ref_simple(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = TypeRef(name=p[1])

    def p_type_ref_array(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref LBRACKET RBRACKET"""
        p[0] = TypeRef(name=p[1].name, suffixes=p[1].suffixes + ["[]"])

    def p_type_ref_nullable(self, p: yacc.YaccProduction) -> None:
        """type_ref : type_ref QUESTION"""
        p[0] = TypeRef(name=p[1].name, suffixes=p[1].suffixes + ["?"])

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse(self, data: str, registry: TypeRegistry | None = None) -> TypeRegistry:
        """Parse declarations and return a populated TypeRegistry.

        Args:
            data: DSL source text.
            registry: Registry to add the declared types to. A new one is
                created when omitted.

        Raises:
            SyntaxError: If the text is not valid DSL.
            ValueError: If a declaration cannot be resolved or registered.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.registry = registry if registry is not None else TypeRegistry()
        self.lexer.lexer.lineno = 1
        self._specs = self.parser.parse(data, lexer=self.lexer.lexer) or []

        self._resolve_specs()
        return self.registry

    def _resolve_type_ref(self, type_ref: TypeRef) -> TypeDefinition:
        """Resolve a type reference to a type definition."""
        type_def = self.registry.get_or_raise(type_ref.name)
        for suffix in type_ref.suffixes:
            if suffix == "[]":
                type_def = self.registry.get_array_type(type_def)
            else:
                type_def = self.registry.get_nullable_type(type_def)
        return type_def

    def _resolve_roles(self, owner: str, specs: list[RoleSpec]) -> list[RoleDescriptor]:
        roles = []
        for spec in specs:
            try:
                roles.append(make_role(spec.kind, **spec.arguments))
            except ValueError as exc:
                raise ValueError(f"{owner} (line {spec.lineno}): {exc}") from exc
        return roles

    def _resolve_field(self, record_name: str, spec: FieldSpec) -> FieldDefinition:
        return FieldDefinition(
            name=spec.name,
            type_def=self._resolve_type_ref(spec.type_ref),
            roles=self._resolve_roles(f"{record_name}.{spec.name}", spec.roles),
            index_params=[self._resolve_field(record_name, param) for param in spec.index_params],
        )

    def _resolve_spec(self, spec: Spec) -> TypeDefinition:
        if isinstance(spec, AliasSpec):
            return AliasTypeDefinition(name=spec.name, base_type=self._resolve_type_ref(spec.base_type_ref))
        if isinstance(spec, EnumSpec):
            variants: dict[str, int] = {}
            next_value = 0
            for name, explicit in spec.variants:
                if name in variants:
                    raise ValueError(f"Duplicate variant '{name}' in enum '{spec.name}'")
                value = explicit if explicit is not None else next_value
                variants[name] = value
                next_value = value + 1
            return EnumTypeDefinition(name=spec.name, variants=variants)
        if isinstance(spec, RecordSpec):
            return RecordTypeDefinition(
                name=spec.name,
                fields=[self._resolve_field(spec.name, f) for f in spec.fields],
            )
        return DynamicRecordTypeDefinition(
            name=spec.name,
            role_table=[
                RoleEntry(name=f.name, roles=self._resolve_roles(f"{spec.name}.{f.name}", f.roles))
                for f in spec.fields
            ],
        )

    def _resolve_specs(self) -> None:
        """Resolve all specs into type definitions.

        Specs may refer to types declared later in the text, so resolution is
        repeated until every spec resolves. Self-referential and mutually
        referential types never resolve and are reported.
        """
        unresolved: list[Spec] = list(self._specs)

        max_iterations = len(unresolved) + 1
        for _ in range(max_iterations):
            if not unresolved:
                break

            still_unresolved: list[Spec] = []
            progress = False

            for spec in unresolved:
                try:
                    type_def = self._resolve_spec(spec)
                except KeyError:
                    # Dependency not yet resolved
                    still_unresolved.append(spec)
                    continue
                self.registry.register(type_def)
                progress = True

            unresolved = still_unresolved

            if not progress and unresolved:
                remaining = [s.name for s in unresolved]
                raise ValueError(f"Cannot resolve types: {remaining}")
