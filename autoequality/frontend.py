#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/frontend.py
========================

Declaration-level C# front end.

Only the shape of type declarations matters to the generator, so the
grammar reads ``using`` directives, namespaces (block or file-scoped),
attributed ``class`` / ``struct`` / ``interface`` / ``enum`` declarations,
fields, properties and their accessors.  Method, constructor, operator and
indexer bodies are matched as balanced bracket groups and discarded.

Usage::

    from autoequality.frontend import load_compilation

    compilation = load_compilation({"Pair.cs": '''
        [AutoEquality]
        partial class Pair
        {
            public int First;
            public string Second { get; set; }
        }
    '''})

Type references are bound after every file is parsed, in this order:

1. language keywords (``int``, ``string``, ...)
2. type parameters of the enclosing declaration
3. the enclosing namespace and each of its parents
4. the file's ``using`` namespaces
5. the name as written (fully qualified or global namespace)
6. the SDK's implicit usings (``System``, ``System.Collections.Generic``,
   ``System.Linq``)

A reference that binds to nothing becomes an opaque ``UNKNOWN`` symbol.

Depends on:
    - parsimonious (PEG parser)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Type,
    Union,
)

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from autoequality.errors import (
    AutoEqualityError,
    ErrorCodes,
    ErrorReporter,
    FrontEndSyntaxError,
    SourceSpan,
)
from autoequality.model import TypeKind
from autoequality.symbols import (
    KEYWORD_TYPES,
    AttributeData,
    Compilation,
    MemberSymbol,
    TypeSymbol,
)

__all__ = [
    "CSHARP_GRAMMAR",
    "IMPLICIT_USINGS",
    "TypeRef",
    "MemberDeclaration",
    "TypeDeclaration",
    "SourceFile",
    "parse_source",
    "read_sources",
    "load_compilation",
]

_log = logging.getLogger(__name__)

IMPLICIT_USINGS: Tuple[str, ...] = ("System", "System.Collections.Generic", "System.Linq")


# ═══════════════════════════════════════════════════════════════════════════
# GRAMMAR
# ═══════════════════════════════════════════════════════════════════════════

CSHARP_GRAMMAR = Grammar(r'''
    # ─────────────────────────────────────────────────────────────
    # Compilation unit
    # ─────────────────────────────────────────────────────────────

    compilation_unit    = _ using_directive* namespace_member* _

    using_directive     = ~r"(global\s+)?using\b" _ using_static? using_alias? qualified_name _ ";" _
    using_static        = ~r"static\b" _
    using_alias         = identifier _ "=" _

    namespace_member    = namespace_decl / delegate_decl / enum_decl / type_decl
    namespace_decl      = ~r"namespace\b" _ qualified_name _ namespace_body
    namespace_body      = block_namespace / file_namespace
    block_namespace     = "{" _ using_directive* namespace_member* "}" _
    file_namespace      = ";" _ using_directive* namespace_member*

    # ─────────────────────────────────────────────────────────────
    # Type declarations
    # ─────────────────────────────────────────────────────────────

    type_decl           = attribute_section* modifiers type_keyword _ identifier _ type_parameter_list? _ base_list? _ constraint_clause* type_body
    type_keyword        = ~r"(class|struct|interface)\b"
    type_parameter_list = "<" _ type_parameter _ ("," _ type_parameter _)* ">"
    type_parameter      = attribute_section* variance? identifier
    variance            = ~r"(in|out)\b" _
    base_list           = ":" _ type_ref _ ("," _ type_ref _)*
    constraint_clause   = ~r"where\b[^{]*"
    type_body           = "{" _ member_decl* "}" _ (";" _)?

    enum_decl           = attribute_section* modifiers ~r"enum\b" _ identifier _ (":" _ type_ref _)? "{" ~r"[^}]*" "}" _ (";" _)?
    delegate_decl       = attribute_section* modifiers ~r"delegate\b" ~r"[^;]*" ";" _

    modifiers           = modifier*
    modifier            = ~r"(public|private|protected|internal|static|readonly|const|sealed|abstract|partial|virtual|override|new|unsafe|volatile|required|extern|async|file|fixed|ref)\b" _

    # ─────────────────────────────────────────────────────────────
    # Members
    # ─────────────────────────────────────────────────────────────

    member_decl         = delegate_decl / enum_decl / type_decl / property_decl / field_decl / other_member

    property_decl       = attribute_section* modifiers type_ref _ identifier _ property_body
    property_body       = accessor_block / expression_body
    accessor_block      = "{" _ accessor* "}" _ property_initializer?
    accessor            = attribute_section* accessor_modifier* accessor_keyword _ accessor_body
    accessor_modifier   = ~r"(private|protected|internal)\b" _
    accessor_keyword    = ~r"(get|set|init)\b"
    accessor_body       = ";" _ / "=>" _ expr_text ";" _ / brace_group _
    property_initializer = "=" _ expr_text ";" _
    expression_body     = "=>" _ expr_text ";" _

    field_decl          = attribute_section* modifiers type_ref _ variable_declarator (_ "," _ variable_declarator)* _ ";" _
    variable_declarator = identifier _ variable_initializer?
    variable_initializer = "=" _ expr_text

    other_member        = attribute_section* member_head member_tail
    member_head         = (paren_group / bracket_group / ~r"[^;{}()\[\]=]+" / ~r"=(?!>)")+
    member_tail         = ";" _ / "=>" _ expr_text ";" _ / brace_group _

    # ─────────────────────────────────────────────────────────────
    # Attributes
    # ─────────────────────────────────────────────────────────────

    attribute_section   = "[" _ attribute_target? attribute _ ("," _ attribute _)* ("," _)? "]" _
    attribute_target    = ~r"(field|property|return|type|assembly|module|method|param|event)\s*:(?!:)" _
    attribute           = qualified_name _ attribute_arguments?
    attribute_arguments = "(" _ (attribute_argument _ ("," _ attribute_argument _)*)? ")" _
    attribute_argument  = named_argument / attribute_value
    named_argument      = identifier _ ~r"[=:]" _ attribute_value
    attribute_value     = string_literal / bool_literal / null_literal / cast_value / number / typeof_value / qualified_name
    cast_value          = "(" _ qualified_name _ ")" _ number
    typeof_value        = ~r"(typeof|nameof)\s*\([^)]*\)"
    bool_literal        = ~r"(true|false)\b"
    null_literal        = ~r"null\b"
    number              = ~r"[-+]?\d+"

    # ─────────────────────────────────────────────────────────────
    # Type references
    # ─────────────────────────────────────────────────────────────

    type_ref            = qualified_type type_suffix*
    qualified_type      = global_alias? type_segment (_ "." _ type_segment)*
    global_alias        = ~r"global\s*::\s*"
    type_segment        = identifier _ type_argument_list?
    type_argument_list  = "<" _ type_ref _ ("," _ type_ref _)* ">"
    type_suffix         = _ (nullable_mark / array_rank)
    nullable_mark       = "?"
    array_rank          = "[" _ ("," _)* "]"

    # ─────────────────────────────────────────────────────────────
    # Skipped expression text
    # ─────────────────────────────────────────────────────────────

    expr_text           = expr_chunk+
    expr_chunk          = comment / string_literal / char_literal / paren_group / bracket_group / brace_group / angle_group / ~r"[^;,{}()\[\]<\"'/]+" / ~r"[/<]"
    group_chunk         = comment / string_literal / char_literal / paren_group / bracket_group / brace_group / ~r"[^{}()\[\]\"'/]+" / "/"
    angle_chunk         = angle_group / paren_group / bracket_group / ~r"[^<>;{}()\[\]\"'=]+"
    paren_group         = "(" group_chunk* ")"
    bracket_group       = "[" group_chunk* "]"
    brace_group         = "{" group_chunk* "}"
    angle_group         = "<" angle_chunk* ">"

    # ─────────────────────────────────────────────────────────────
    # Lexical
    # ─────────────────────────────────────────────────────────────

    qualified_name      = ~r"(global\s*::\s*)?@?[A-Za-z_][A-Za-z0-9_]*(\s*\.\s*@?[A-Za-z_][A-Za-z0-9_]*)*"
    identifier          = !reserved ~r"@?[A-Za-z_][A-Za-z0-9_]*"
    reserved            = ~r"(class|struct|interface|enum|namespace|using|where|operator|this|event|delegate|record|implicit|explicit)\b"
    string_literal      = ~r"[@$]*\"(?:[^\"\\]|\\.)*\""
    char_literal        = ~r"'(?:[^'\\]|\\.)*'"

    _                   = (~r"\s+" / comment / preprocessor)*
    comment             = ~r"//[^\n]*" / ~r"/\*.*?\*/"s
    preprocessor        = ~r"#[^\n]*"
''')


# ═══════════════════════════════════════════════════════════════════════════
# DECLARATIONS
# ═══════════════════════════════════════════════════════════════════════════

TypeSuffix = Union[str, int]


@dataclass(frozen=True)
class TypeRef:
    """A type as written: ``name<arguments>`` followed by ``?`` / ``[]`` suffixes.

    *suffixes* holds ``"?"`` for a nullable mark and the rank (``1`` for
    ``[]``, ``2`` for ``[,]``) for each array specifier, in source order.
    """

    name: str
    arguments: Tuple["TypeRef", ...] = ()
    suffixes: Tuple[TypeSuffix, ...] = ()
    is_global: bool = False
    written: str = ""
    span: Optional[SourceSpan] = None


@dataclass
class MemberDeclaration:
    name: str
    type_ref: TypeRef
    is_property: bool = False
    has_getter: bool = True
    has_setter: bool = True
    modifiers: FrozenSet[str] = frozenset()
    attributes: Tuple[AttributeData, ...] = ()
    span: Optional[SourceSpan] = None


@dataclass
class TypeDeclaration:
    """One ``class`` / ``struct`` / ``interface`` / ``enum`` declaration.

    *namespace* is filled in on the way out of the enclosing namespace
    declarations.  Nested types are kept in *nested* but never registered.
    """

    name: str
    keyword: str
    namespace: Optional[str] = None
    modifiers: FrozenSet[str] = frozenset()
    type_parameters: Tuple[str, ...] = ()
    bases: Tuple[TypeRef, ...] = ()
    members: List[MemberDeclaration] = field(default_factory=list)
    nested: List["TypeDeclaration"] = field(default_factory=list)
    attributes: Tuple[AttributeData, ...] = ()
    span: Optional[SourceSpan] = None

    @property
    def is_partial(self) -> bool:
        return "partial" in self.modifiers

    @property
    def full_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}.{self.name}"
        return self.name


@dataclass
class SourceFile:
    filename: str
    usings: Tuple[str, ...] = ()
    types: List[TypeDeclaration] = field(default_factory=list)


# Visitor-internal carriers
@dataclass(frozen=True)
class _Using:
    name: str


@dataclass(frozen=True)
class _Argument:
    name: Optional[str]
    value: Any


@dataclass(frozen=True)
class _Segment:
    name: str
    arguments: Tuple[TypeRef, ...]


@dataclass(frozen=True)
class _Accessors:
    has_getter: bool
    has_setter: bool


@dataclass(frozen=True)
class _Declarator:
    name: str
    offset: int


def _collect(value: Any, kind: Union[Type[Any], Tuple[Type[Any], ...]]) -> Iterator[Any]:
    """Yield every *kind* instance found in nested visitor output lists."""
    if isinstance(value, kind):
        yield value
    elif isinstance(value, list):
        for item in value:
            yield from _collect(item, kind)


def _normalize(text: str) -> str:
    text = re.sub(r"\s+", "", text)
    return text.replace(",", ", ")


def _unquote(text: str) -> str:
    body = text.lstrip("@$")[1:-1]
    if text.startswith("@") or text.startswith("$@"):
        return body.replace('""', '"')
    return re.sub(r"\\(.)", r"\1", body)


# ═══════════════════════════════════════════════════════════════════════════
# PARSE TREE → DECLARATIONS
# ═══════════════════════════════════════════════════════════════════════════

class _DeclarationBuilder(NodeVisitor):
    """Transforms the parsimonious parse tree into :class:`SourceFile`."""

    def __init__(self, text: str, filename: str) -> None:
        self._text = text
        self._filename = filename

    def _span(self, node: Node) -> SourceSpan:
        return SourceSpan.from_offset(self._text, node.start, self._filename)

    def generic_visit(self, node: Node, visited_children: List[Any]) -> Any:
        return visited_children or node

    # ── compilation unit ──────────────────────────────────────────────

    def visit_compilation_unit(self, node: Node, visited_children: List[Any]) -> SourceFile:
        usings = tuple(u.name for u in _collect(visited_children, _Using))
        types = list(_collect(visited_children, TypeDeclaration))
        return SourceFile(self._filename, usings, types)

    def visit_using_directive(self, node: Node, visited_children: List[Any]) -> Optional[_Using]:
        _, _, static, alias, name, *_ = node.children
        if static.text or alias.text:
            return None
        return _Using(visited_children[4])

    def visit_namespace_decl(self, node: Node, visited_children: List[Any]) -> List[Any]:
        _, _, name, _, body = visited_children
        items = list(_collect(body, (_Using, TypeDeclaration)))
        for item in items:
            if isinstance(item, TypeDeclaration):
                item.namespace = f"{name}.{item.namespace}" if item.namespace else name
        return items

    # ── types ─────────────────────────────────────────────────────────

    def visit_type_decl(self, node: Node, visited_children: List[Any]) -> TypeDeclaration:
        attrs, modifiers, keyword, _, name, _, tparams, _, bases, _, _, body = visited_children
        members, nested = body
        return TypeDeclaration(
            name=name,
            keyword=keyword,
            modifiers=modifiers,
            type_parameters=tuple(_collect(tparams, str)),
            bases=tuple(_collect(bases, TypeRef)),
            members=members,
            nested=nested,
            attributes=tuple(_collect(attrs, AttributeData)),
            span=self._span(node),
        )

    def visit_type_keyword(self, node: Node, visited_children: List[Any]) -> str:
        return node.text

    def visit_type_parameter_list(self, node: Node, visited_children: List[Any]) -> List[str]:
        return list(_collect(visited_children, str))

    def visit_type_parameter(self, node: Node, visited_children: List[Any]) -> str:
        return visited_children[2]

    def visit_base_list(self, node: Node, visited_children: List[Any]) -> List[TypeRef]:
        return list(_collect(visited_children, TypeRef))

    def visit_type_body(
        self, node: Node, visited_children: List[Any]
    ) -> Tuple[List[MemberDeclaration], List[TypeDeclaration]]:
        members = visited_children[2]
        return (
            list(_collect(members, MemberDeclaration)),
            list(_collect(members, TypeDeclaration)),
        )

    def visit_enum_decl(self, node: Node, visited_children: List[Any]) -> TypeDeclaration:
        attrs, modifiers, _, _, name, *_ = visited_children
        return TypeDeclaration(
            name=name,
            keyword="enum",
            modifiers=modifiers,
            attributes=tuple(_collect(attrs, AttributeData)),
            span=self._span(node),
        )

    def visit_delegate_decl(self, node: Node, visited_children: List[Any]) -> None:
        return None

    def visit_modifiers(self, node: Node, visited_children: List[Any]) -> FrozenSet[str]:
        return frozenset(_collect(visited_children, str))

    def visit_modifier(self, node: Node, visited_children: List[Any]) -> str:
        return node.children[0].text

    # ── members ───────────────────────────────────────────────────────

    def visit_property_decl(self, node: Node, visited_children: List[Any]) -> MemberDeclaration:
        attrs, modifiers, type_ref, _, name, _, accessors = visited_children
        return MemberDeclaration(
            name=name,
            type_ref=type_ref,
            is_property=True,
            has_getter=accessors.has_getter,
            has_setter=accessors.has_setter,
            modifiers=modifiers,
            attributes=tuple(_collect(attrs, AttributeData)),
            span=self._span(node),
        )

    def visit_property_body(self, node: Node, visited_children: List[Any]) -> _Accessors:
        return visited_children[0]

    def visit_accessor_block(self, node: Node, visited_children: List[Any]) -> _Accessors:
        kinds = set(_collect(visited_children[2], str))
        return _Accessors("get" in kinds, bool(kinds & {"set", "init"}))

    def visit_accessor(self, node: Node, visited_children: List[Any]) -> str:
        return visited_children[2]

    def visit_accessor_keyword(self, node: Node, visited_children: List[Any]) -> str:
        return node.text

    def visit_expression_body(self, node: Node, visited_children: List[Any]) -> _Accessors:
        return _Accessors(True, False)

    def visit_field_decl(self, node: Node, visited_children: List[Any]) -> List[MemberDeclaration]:
        attrs, modifiers, type_ref, _, first, rest, *_ = visited_children
        attributes = tuple(_collect(attrs, AttributeData))
        return [
            MemberDeclaration(
                name=declarator.name,
                type_ref=type_ref,
                modifiers=modifiers,
                attributes=attributes,
                span=SourceSpan.from_offset(self._text, declarator.offset, self._filename),
            )
            for declarator in _collect([first, rest], _Declarator)
        ]

    def visit_variable_declarator(self, node: Node, visited_children: List[Any]) -> _Declarator:
        return _Declarator(visited_children[0], node.start)

    def visit_other_member(self, node: Node, visited_children: List[Any]) -> None:
        return None

    # ── attributes ────────────────────────────────────────────────────

    def visit_attribute_section(self, node: Node, visited_children: List[Any]) -> List[AttributeData]:
        return list(_collect(visited_children, AttributeData))

    def visit_attribute(self, node: Node, visited_children: List[Any]) -> AttributeData:
        name, _, arguments = visited_children
        positional: List[Any] = []
        named: Dict[str, Any] = {}
        for argument in _collect(arguments, _Argument):
            if argument.name is None:
                positional.append(argument.value)
            else:
                named[argument.name] = argument.value
        return AttributeData(name, tuple(positional), named)

    def visit_attribute_argument(self, node: Node, visited_children: List[Any]) -> _Argument:
        value = visited_children[0]
        if isinstance(value, _Argument):
            return value
        return _Argument(None, value)

    def visit_named_argument(self, node: Node, visited_children: List[Any]) -> _Argument:
        return _Argument(visited_children[0], visited_children[4])

    def visit_attribute_value(self, node: Node, visited_children: List[Any]) -> Any:
        child = node.children[0]
        kind = child.expr_name
        text = child.text
        if kind == "string_literal":
            return _unquote(text)
        if kind == "bool_literal":
            return text == "true"
        if kind == "null_literal":
            return None
        if kind == "number":
            return int(text)
        if kind == "cast_value":
            return int(re.search(r"[-+]?\d+\s*$", text).group().strip())
        return _normalize(text)

    # ── type references ───────────────────────────────────────────────

    def visit_type_ref(self, node: Node, visited_children: List[Any]) -> TypeRef:
        qualified, suffixes = visited_children
        segments, is_global, written = qualified
        return TypeRef(
            name=".".join(s.name for s in segments),
            arguments=segments[-1].arguments,
            suffixes=tuple(_collect(suffixes, (str, int))),
            is_global=is_global,
            written=written,
            span=self._span(node),
        )

    def visit_qualified_type(
        self, node: Node, visited_children: List[Any]
    ) -> Tuple[List[_Segment], bool, str]:
        segments = list(_collect(visited_children, _Segment))
        return segments, bool(node.children[0].text), _normalize(node.text)

    def visit_type_segment(self, node: Node, visited_children: List[Any]) -> _Segment:
        name, _, arguments = visited_children
        return _Segment(name, tuple(_collect(arguments, TypeRef)))

    def visit_type_argument_list(self, node: Node, visited_children: List[Any]) -> List[TypeRef]:
        return list(_collect(visited_children, TypeRef))

    def visit_type_suffix(self, node: Node, visited_children: List[Any]) -> TypeSuffix:
        return next(_collect(visited_children[1], (str, int)))

    def visit_nullable_mark(self, node: Node, visited_children: List[Any]) -> str:
        return "?"

    def visit_array_rank(self, node: Node, visited_children: List[Any]) -> int:
        return node.text.count(",") + 1

    # ── lexical ───────────────────────────────────────────────────────

    def visit_qualified_name(self, node: Node, visited_children: List[Any]) -> str:
        text = re.sub(r"\s+", "", node.text)
        if text.startswith("global::"):
            text = text[len("global::"):]
        return text.replace("@", "")

    def visit_identifier(self, node: Node, visited_children: List[Any]) -> str:
        return node.text.lstrip("@")


def _excerpt(text: str, offset: int, width: int = 24) -> str:
    line = text[offset:].split("\n", 1)[0]
    return line[:width]


def parse_source(text: str, filename: str = "<source>") -> SourceFile:
    """Parse one C# file into its type declarations.

    Raises
    ------
    FrontEndSyntaxError
        If the text is outside the supported subset.  The span points at
        the first unconsumed character.
    """
    try:
        tree = CSHARP_GRAMMAR.parse(text)
    except ParseError as exc:
        span = SourceSpan.from_offset(text, exc.pos, filename)
        raise FrontEndSyntaxError(
            f"cannot parse declaration near {_excerpt(text, exc.pos)!r}",
            span=span,
            hint="only type, field and property declarations are interpreted",
        ) from exc

    try:
        source = _DeclarationBuilder(text, filename).visit(tree)
    except VisitationError as exc:
        raise AutoEqualityError(
            f"failed to build declarations for {filename}: {exc}",
            code=ErrorCodes.INTERNAL_ERROR,
        ) from exc

    _log.debug("%s: %d type declaration(s)", filename, len(source.types))
    return source


def read_sources(paths: Iterable[Path]) -> List[Tuple[str, str]]:
    """Read ``(filename, text)`` pairs for :func:`load_compilation`."""
    return [(str(path), path.read_text(encoding="utf-8")) for path in paths]


# ═══════════════════════════════════════════════════════════════════════════
# BINDING
# ═══════════════════════════════════════════════════════════════════════════

_KIND_BY_KEYWORD: Dict[str, TypeKind] = {
    "class": TypeKind.REFERENCE_AGGREGATE,
    "interface": TypeKind.REFERENCE_AGGREGATE,
    "struct": TypeKind.VALUE_AGGREGATE,
    "enum": TypeKind.ENUM,
}


@dataclass(frozen=True)
class _Scope:
    namespace: Optional[str]
    usings: Tuple[str, ...]
    type_parameters: Tuple[str, ...]

    def candidates(self, metadata_name: str, is_global: bool) -> Iterator[str]:
        if is_global:
            yield metadata_name
            return
        namespace = self.namespace
        while namespace:
            yield f"{namespace}.{metadata_name}"
            namespace = namespace.rpartition(".")[0]
        for using in self.usings:
            yield f"{using}.{metadata_name}"
        yield metadata_name
        for using in IMPLICIT_USINGS:
            yield f"{using}.{metadata_name}"


class _Binder:
    """Binds :class:`TypeRef` values to symbols of one compilation."""

    def __init__(self, compilation: Compilation, reporter: Optional[ErrorReporter]) -> None:
        self._compilation = compilation
        self._reporter = reporter

    def bind(self, ref: TypeRef, scope: _Scope) -> TypeSymbol:
        symbol = self._bind_named(ref, scope)
        for suffix in ref.suffixes:
            if suffix == "?":
                symbol = self._nullable(symbol)
            else:
                symbol = self._compilation.array_type(symbol, int(suffix))
        return symbol

    def _nullable(self, symbol: TypeSymbol) -> TypeSymbol:
        if not symbol.kind.is_value_like:
            return symbol
        if symbol.original_definition.full_metadata_name == "System.Nullable`1":
            return symbol
        nullable = self._compilation.get_type_by_metadata_name("System.Nullable`1")
        if nullable is None:
            return symbol
        return nullable.construct(symbol)

    def _bind_named(self, ref: TypeRef, scope: _Scope) -> TypeSymbol:
        arguments = tuple(self.bind(arg, scope) for arg in ref.arguments)

        if not arguments and not ref.is_global:
            keyword = KEYWORD_TYPES.get(ref.name)
            if keyword is not None:
                special = self._compilation.get_type_by_metadata_name(keyword)
                if special is not None:
                    return special
            if ref.name in scope.type_parameters:
                return TypeSymbol(ref.name, kind=TypeKind.UNKNOWN)

        metadata_name = f"{ref.name}`{len(arguments)}" if arguments else ref.name
        for candidate in scope.candidates(metadata_name, ref.is_global):
            definition = self._compilation.get_type_by_metadata_name(candidate)
            if definition is not None:
                return definition.construct(*arguments) if arguments else definition

        _log.debug("unresolved type reference %s", ref.written)
        if self._reporter is not None:
            self._reporter.report(
                ErrorCodes.UNRESOLVED_TYPE,
                f"type '{ref.written}' could not be resolved; treated as opaque",
                span=ref.span,
            )
        return TypeSymbol(ref.written or ref.name, kind=TypeKind.UNKNOWN)


def _as_pairs(sources: Union[Mapping[str, str], Iterable[Tuple[str, str]]]) -> Sequence[Tuple[str, str]]:
    if isinstance(sources, Mapping):
        return list(sources.items())
    return list(sources)


def _declare(
    compilation: Compilation,
    decl: TypeDeclaration,
    seen: Dict[str, Tuple[TypeDeclaration, TypeSymbol]],
) -> TypeSymbol:
    symbol = TypeSymbol(
        name=decl.name,
        namespace=decl.namespace,
        kind=_KIND_BY_KEYWORD[decl.keyword],
        is_interface=decl.keyword == "interface",
        type_parameters=decl.type_parameters,
        attributes=decl.attributes,
        span=decl.span,
    )
    key = symbol.full_metadata_name

    previous = seen.get(key)
    if previous is not None:
        first_decl, existing = previous
        if first_decl.is_partial and decl.is_partial and first_decl.keyword == decl.keyword:
            existing.attributes = existing.attributes + decl.attributes
            return existing
        raise FrontEndSyntaxError(
            f"type '{key}' is declared more than once",
            code=ErrorCodes.DUPLICATE_TYPE,
            span=decl.span,
            hint="mark every part 'partial' to split a declaration",
        )

    try:
        compilation.add_type(symbol, declared=True)
    except ValueError as exc:
        raise FrontEndSyntaxError(str(exc), code=ErrorCodes.DUPLICATE_TYPE, span=decl.span) from exc
    seen[key] = (decl, symbol)
    return symbol


def _bind_declaration(
    binder: _Binder,
    compilation: Compilation,
    decl: TypeDeclaration,
    symbol: TypeSymbol,
    scope: _Scope,
) -> None:
    if decl.keyword == "enum":
        symbol.declared_base_type = compilation.get_type_by_metadata_name("System.Enum")
        return

    for index, base_ref in enumerate(decl.bases):
        base = binder.bind(base_ref, scope)
        if (
            decl.keyword == "class"
            and index == 0
            and not base.is_interface
            and base.kind is TypeKind.REFERENCE_AGGREGATE
        ):
            symbol.declared_base_type = base
        else:
            symbol.declared_interfaces.append(base)

    if symbol.declared_base_type is None and not symbol.is_interface:
        default_base = "System.ValueType" if decl.keyword == "struct" else "System.Object"
        symbol.declared_base_type = compilation.get_type_by_metadata_name(default_base)

    for member in decl.members:
        symbol.members.append(MemberSymbol(
            name=member.name,
            type=binder.bind(member.type_ref, scope),
            is_property=member.is_property,
            has_getter=member.has_getter,
            has_setter=member.has_setter,
            is_static="static" in member.modifiers,
            is_const="const" in member.modifiers,
            attributes=member.attributes,
            span=member.span,
        ))

    for nested in decl.nested:
        _log.debug("skipping nested type %s.%s", decl.full_name, nested.name)


def load_compilation(
    sources: Union[Mapping[str, str], Iterable[Tuple[str, str]]],
    hash_combinator_arity: int = 8,
    reporter: Optional[ErrorReporter] = None,
    name: str = "compilation",
) -> Compilation:
    """Parse *sources* and bind them into a :class:`Compilation`.

    *sources* maps file names to their text (or is a sequence of
    ``(filename, text)`` pairs).  Partial declarations of one type across
    several files are merged.
    """
    compilation = Compilation.with_core_library(hash_combinator_arity, name)
    files = [parse_source(text, filename) for filename, text in _as_pairs(sources)]

    seen: Dict[str, Tuple[TypeDeclaration, TypeSymbol]] = {}
    declared: List[Tuple[SourceFile, TypeDeclaration, TypeSymbol]] = []
    for source in files:
        for decl in source.types:
            declared.append((source, decl, _declare(compilation, decl, seen)))

    binder = _Binder(compilation, reporter)
    for source, decl, symbol in declared:
        scope = _Scope(decl.namespace, source.usings, decl.type_parameters)
        _bind_declaration(binder, compilation, decl, symbol, scope)

    _log.info(
        "loaded %d file(s), %d declared type(s)",
        len(files),
        len(compilation.declared_types),
    )
    return compilation
