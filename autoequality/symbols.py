#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/symbols.py
=======================

A small symbol table standing in for the host compiler's semantic model.

The strategy resolver and the capability probe only ever ask three kinds
of question of a compilation:

1. *What is this member's declared type?*  (``MemberSymbol.type``)
2. *Does this type implement a given generic interface definition?*
   (:func:`is_or_implements_original`)
3. *Does the standard library expose a given type / method?*
   (:meth:`Compilation.get_type_by_metadata_name`)

Types are identified by their metadata name, ``Namespace.Name`` with a
backtick arity suffix for generic definitions (``List`1``).  A closed
generic such as ``List<int>`` is a *constructed* symbol whose
``original_definition`` is the open ``List`1`` definition; base types and
interfaces are always read from the original definition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from autoequality.errors import SourceSpan
from autoequality.model import TypeKind

__all__ = [
    "SpecialType",
    "AttributeData",
    "MethodSymbol",
    "MemberSymbol",
    "TypeSymbol",
    "Compilation",
    "is_or_implements_original",
    "KEYWORD_TYPES",
]


# ═══════════════════════════════════════════════════════════════════════════
# SPECIAL TYPES
# ═══════════════════════════════════════════════════════════════════════════

@unique
class SpecialType(Enum):
    """Built-in types the language gives a keyword to."""

    NONE = ""
    OBJECT = "System.Object"
    BOOLEAN = "System.Boolean"
    CHAR = "System.Char"
    SBYTE = "System.SByte"
    BYTE = "System.Byte"
    INT16 = "System.Int16"
    UINT16 = "System.UInt16"
    INT32 = "System.Int32"
    UINT32 = "System.UInt32"
    INT64 = "System.Int64"
    UINT64 = "System.UInt64"
    INTPTR = "System.IntPtr"
    UINTPTR = "System.UIntPtr"
    SINGLE = "System.Single"
    DOUBLE = "System.Double"
    DECIMAL = "System.Decimal"
    STRING = "System.String"

    @property
    def keyword(self) -> str:
        return _KEYWORDS.get(self, "")


_KEYWORDS: Dict[SpecialType, str] = {
    SpecialType.OBJECT: "object",
    SpecialType.BOOLEAN: "bool",
    SpecialType.CHAR: "char",
    SpecialType.SBYTE: "sbyte",
    SpecialType.BYTE: "byte",
    SpecialType.INT16: "short",
    SpecialType.UINT16: "ushort",
    SpecialType.INT32: "int",
    SpecialType.UINT32: "uint",
    SpecialType.INT64: "long",
    SpecialType.UINT64: "ulong",
    SpecialType.INTPTR: "nint",
    SpecialType.UINTPTR: "nuint",
    SpecialType.SINGLE: "float",
    SpecialType.DOUBLE: "double",
    SpecialType.DECIMAL: "decimal",
    SpecialType.STRING: "string",
}

#: C# keyword → metadata name of the aliased type.
KEYWORD_TYPES: Dict[str, str] = {kw: st.value for st, kw in _KEYWORDS.items()}


# ═══════════════════════════════════════════════════════════════════════════
# ATTRIBUTES, METHODS, MEMBERS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AttributeData:
    """One attribute application: ``[Name(arg, ..., Key = value)]``."""

    name: str
    arguments: Tuple[Any, ...] = ()
    named_arguments: Dict[str, Any] = field(default_factory=dict)

    @property
    def short_name(self) -> str:
        """Name without namespace qualifier or ``Attribute`` suffix."""
        name = self.name.rsplit(".", 1)[-1]
        if name.endswith("Attribute") and name != "Attribute":
            name = name[: -len("Attribute")]
        return name

    def matches(self, name: str) -> bool:
        return self.short_name == AttributeData(name).short_name

    def get(self, name: str, position: Optional[int] = None, default: Any = None) -> Any:
        """Look an argument up by name (either initial case), then position."""
        for key in (name, name[:1].lower() + name[1:], name[:1].upper() + name[1:]):
            if key in self.named_arguments:
                return self.named_arguments[key]
        if position is not None and position < len(self.arguments):
            return self.arguments[position]
        return default


@dataclass(frozen=True)
class MethodSymbol:
    name: str
    parameter_count: int = 0
    is_static: bool = True


@dataclass(eq=False)
class MemberSymbol:
    """A field or property declared on a type.

    ``type`` is ``None`` when the declared type could not be bound at all.
    """

    name: str
    type: Optional["TypeSymbol"]
    is_property: bool = False
    has_getter: bool = True
    has_setter: bool = True
    is_static: bool = False
    is_const: bool = False
    attributes: Tuple[AttributeData, ...] = ()
    span: Optional[SourceSpan] = None

    @classmethod
    def of_field(cls, name: str, type_: Optional["TypeSymbol"], **kwargs: Any) -> "MemberSymbol":
        return cls(name, type_, is_property=False, **kwargs)

    @classmethod
    def of_property(
        cls,
        name: str,
        type_: Optional["TypeSymbol"],
        getter: bool = True,
        setter: bool = True,
        **kwargs: Any,
    ) -> "MemberSymbol":
        return cls(name, type_, is_property=True, has_getter=getter, has_setter=setter, **kwargs)

    def find_attribute(self, name: str) -> Optional[AttributeData]:
        for attr in self.attributes:
            if attr.matches(name):
                return attr
        return None


# ═══════════════════════════════════════════════════════════════════════════
# TYPES
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(eq=False)
class TypeSymbol:
    """A named type, a constructed generic, or an array."""

    name: str
    namespace: Optional[str] = None
    kind: TypeKind = TypeKind.REFERENCE_AGGREGATE
    special_type: SpecialType = SpecialType.NONE
    is_interface: bool = False
    type_parameters: Tuple[str, ...] = ()
    declared_base_type: Optional["TypeSymbol"] = None
    declared_interfaces: List["TypeSymbol"] = field(default_factory=list)
    members: List[MemberSymbol] = field(default_factory=list)
    methods: List[MethodSymbol] = field(default_factory=list)
    attributes: Tuple[AttributeData, ...] = ()
    type_arguments: Tuple["TypeSymbol", ...] = ()
    element_type: Optional["TypeSymbol"] = None
    array_rank: int = 0
    definition: Optional["TypeSymbol"] = None
    span: Optional[SourceSpan] = None

    # ── identity ──────────────────────────────────────────────────────

    @property
    def original_definition(self) -> "TypeSymbol":
        return self.definition if self.definition is not None else self

    @property
    def metadata_name(self) -> str:
        """``Name`` or ``Name`N`` for generic definitions."""
        arity = len(self.original_definition.type_parameters)
        if arity:
            return f"{self.name}`{arity}"
        return self.name

    @property
    def full_metadata_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}.{self.metadata_name}"
        return self.metadata_name

    def same_definition(self, other: "TypeSymbol") -> bool:
        """Compare original definitions by metadata name."""
        mine = self.original_definition
        theirs = other.original_definition
        if mine is theirs:
            return True
        if mine.is_array or theirs.is_array:
            return False
        return mine.full_metadata_name == theirs.full_metadata_name

    # ── shape ─────────────────────────────────────────────────────────

    @property
    def is_array(self) -> bool:
        return self.element_type is not None

    @property
    def is_value_type(self) -> bool:
        return self.kind.is_value_like

    @property
    def is_class_or_struct(self) -> bool:
        if self.is_interface or self.is_array:
            return False
        return self.kind in (TypeKind.REFERENCE_AGGREGATE, TypeKind.VALUE_AGGREGATE)

    @property
    def base_type(self) -> Optional["TypeSymbol"]:
        return self.original_definition.declared_base_type

    @property
    def interfaces(self) -> List["TypeSymbol"]:
        return self.original_definition.declared_interfaces

    def construct(self, *type_arguments: "TypeSymbol") -> "TypeSymbol":
        """Close this generic definition over *type_arguments*."""
        if not self.type_parameters:
            raise ValueError(f"{self.full_metadata_name} is not a generic definition")
        if len(type_arguments) != len(self.type_parameters):
            raise ValueError(
                f"{self.full_metadata_name} expects {len(self.type_parameters)} "
                f"type argument(s), got {len(type_arguments)}"
            )
        return TypeSymbol(
            name=self.name,
            namespace=self.namespace,
            kind=self.kind,
            special_type=self.special_type,
            is_interface=self.is_interface,
            type_arguments=tuple(type_arguments),
            definition=self,
        )

    def find_attribute(self, name: str) -> Optional[AttributeData]:
        for attr in self.attributes:
            if attr.matches(name):
                return attr
        return None

    def find_methods(self, name: str) -> List[MethodSymbol]:
        return [m for m in self.original_definition.methods if m.name == name]

    # ── display ───────────────────────────────────────────────────────

    def display_name(self) -> str:
        """Fully qualified name suitable for use in emitted source."""
        if self.special_type is not SpecialType.NONE:
            return self.special_type.keyword
        if self.element_type is not None:
            return f"{self.element_type.display_name()}[{',' * (self.array_rank - 1)}]"
        original = self.original_definition
        if original.full_metadata_name == "System.Nullable`1" and self.type_arguments:
            return f"{self.type_arguments[0].display_name()}?"
        if self.kind is TypeKind.UNKNOWN:
            base = self.name
        elif self.namespace:
            base = f"global::{self.namespace}.{self.name}"
        else:
            base = f"global::{self.name}"
        if self.type_arguments:
            args = ", ".join(a.display_name() for a in self.type_arguments)
            return f"{base}<{args}>"
        if original.type_parameters:
            return f"{base}<{', '.join(original.type_parameters)}>"
        return base

    def __repr__(self) -> str:
        return f"TypeSymbol({self.display_name()!r}, kind={self.kind.name})"


def is_or_implements_original(type_symbol: TypeSymbol, interface_symbol: TypeSymbol) -> bool:
    """Is *type_symbol* (or anything it inherits) the definition *interface_symbol*?

    The walk runs over original definitions only: the type's own definition,
    its base-type chain, and the transitive closure of every interface
    declared along the way.  Matching the closed form instead would miss
    capabilities inherited through generic base interfaces.
    """
    target = interface_symbol.original_definition
    seen: Set[int] = set()

    def walk(symbol: TypeSymbol) -> bool:
        current: Optional[TypeSymbol] = symbol.original_definition
        if current.same_definition(target):
            return True
        while current is not None:
            if id(current) in seen:
                break
            seen.add(id(current))
            for iface in current.interfaces:
                original = iface.original_definition
                if original.same_definition(target) or walk(original):
                    return True
            base = current.base_type
            current = base.original_definition if base is not None else None
        return False

    return walk(type_symbol)


# ═══════════════════════════════════════════════════════════════════════════
# COMPILATION
# ═══════════════════════════════════════════════════════════════════════════

class Compilation:
    """A set of type symbols addressable by metadata name.

    One instance corresponds to one build session; the generator keys its
    per-session caches on it.
    """

    def __init__(self, name: str = "compilation") -> None:
        self.name = name
        self._types: Dict[str, TypeSymbol] = {}
        self._arrays: Dict[str, TypeSymbol] = {}
        self._declared: List[TypeSymbol] = []

    @classmethod
    def with_core_library(
        cls,
        hash_combinator_arity: int = 8,
        name: str = "compilation",
    ) -> "Compilation":
        """A compilation pre-populated with the standard library surface.

        *hash_combinator_arity* is the largest ``HashCode.Combine`` overload
        the target runtime provides; ``0`` omits ``System.HashCode``.
        """
        compilation = cls(name)
        _install_core_library(compilation, hash_combinator_arity)
        return compilation

    def add_type(self, symbol: TypeSymbol, declared: bool = False) -> TypeSymbol:
        key = symbol.full_metadata_name
        if key in self._types:
            raise ValueError(f"type already defined: {key}")
        self._types[key] = symbol
        if declared:
            self._declared.append(symbol)
        return symbol

    def get_type_by_metadata_name(self, name: str) -> Optional[TypeSymbol]:
        return self._types.get(name)

    def get_special_type(self, special: SpecialType) -> Optional[TypeSymbol]:
        return self._types.get(special.value)

    def array_type(self, element: TypeSymbol, rank: int = 1) -> TypeSymbol:
        """The array of *element* with *rank* dimensions.

        Only single-dimensional arrays implement the generic list interfaces.
        """
        brackets = f"[{',' * (rank - 1)}]"
        key = element.display_name() + brackets
        cached = self._arrays.get(key)
        if cached is not None:
            return cached
        interfaces = [] if rank != 1 else [
            t for t in (
                self._types.get("System.Collections.Generic.IList`1"),
                self._types.get("System.Collections.Generic.IReadOnlyList`1"),
            )
            if t is not None
        ]
        array = TypeSymbol(
            name=element.name + brackets,
            kind=TypeKind.REFERENCE_AGGREGATE,
            declared_base_type=self._types.get("System.Array"),
            declared_interfaces=interfaces,
            element_type=element,
            array_rank=rank,
        )
        self._arrays[key] = array
        return array

    @property
    def declared_types(self) -> List[TypeSymbol]:
        """User types in declaration order (excludes the core library)."""
        return list(self._declared)

    def types_with_attribute(self, name: str) -> List[TypeSymbol]:
        return [t for t in self._declared if t.find_attribute(name) is not None]

    def __iter__(self) -> Iterator[TypeSymbol]:
        return iter(self._types.values())

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __repr__(self) -> str:
        return f"Compilation({self.name!r}, types={len(self._types)})"


# ───────────────────────────────────────────────────────────────────────────
# Core library
# ───────────────────────────────────────────────────────────────────────────

_PRIMITIVES: Sequence[SpecialType] = (
    SpecialType.BOOLEAN, SpecialType.CHAR,
    SpecialType.SBYTE, SpecialType.BYTE,
    SpecialType.INT16, SpecialType.UINT16,
    SpecialType.INT32, SpecialType.UINT32,
    SpecialType.INT64, SpecialType.UINT64,
    SpecialType.INTPTR, SpecialType.UINTPTR,
    SpecialType.SINGLE, SpecialType.DOUBLE, SpecialType.DECIMAL,
)

_SCG = "System.Collections.Generic"


def _install_core_library(compilation: Compilation, hash_combinator_arity: int) -> None:
    add = compilation.add_type

    def split(special: SpecialType) -> Tuple[str, str]:
        ns, _, name = special.value.rpartition(".")
        return ns, name

    ns, name = split(SpecialType.OBJECT)
    obj = add(TypeSymbol(name, ns, special_type=SpecialType.OBJECT))
    value_type = add(TypeSymbol("ValueType", "System", declared_base_type=obj))
    add(TypeSymbol("Enum", "System", declared_base_type=value_type))

    for special in _PRIMITIVES:
        ns, name = split(special)
        add(TypeSymbol(
            name, ns, TypeKind.PRIMITIVE,
            special_type=special,
            declared_base_type=value_type,
        ))
    for name in ("Guid", "DateTime", "DateTimeOffset", "TimeSpan"):
        add(TypeSymbol(name, "System", TypeKind.VALUE_AGGREGATE, declared_base_type=value_type))

    def interface(name: str, ns: str, params: Tuple[str, ...] = (), bases: Iterable[TypeSymbol] = ()) -> TypeSymbol:
        return add(TypeSymbol(
            name, ns, is_interface=True,
            type_parameters=params,
            declared_interfaces=list(bases),
        ))

    def klass(
        name: str,
        ns: str,
        params: Tuple[str, ...] = (),
        bases: Iterable[TypeSymbol] = (),
        kind: TypeKind = TypeKind.REFERENCE_AGGREGATE,
    ) -> TypeSymbol:
        return add(TypeSymbol(
            name, ns, kind,
            type_parameters=params,
            declared_base_type=value_type if kind.is_value_like else obj,
            declared_interfaces=list(bases),
        ))

    ienumerable = interface("IEnumerable", "System.Collections")
    ienumerable_t = interface("IEnumerable", _SCG, ("T",), [ienumerable])
    icollection_t = interface("ICollection", _SCG, ("T",), [ienumerable_t])
    ilist_t = interface("IList", _SCG, ("T",), [icollection_t])
    ireadonly_collection_t = interface("IReadOnlyCollection", _SCG, ("T",), [ienumerable_t])
    ireadonly_list_t = interface("IReadOnlyList", _SCG, ("T",), [ireadonly_collection_t])
    iset_t = interface("ISet", _SCG, ("T",), [icollection_t])
    idictionary = interface("IDictionary", _SCG, ("TKey", "TValue"), [icollection_t])
    interface("IEquatable", "System", ("T",))

    ns, name = split(SpecialType.STRING)
    add(TypeSymbol(
        name, ns, special_type=SpecialType.STRING,
        declared_base_type=obj,
        declared_interfaces=[ienumerable_t, ienumerable],
    ))

    klass("Array", "System", bases=[ienumerable])
    klass("List", _SCG, ("T",), [ilist_t, ireadonly_list_t])
    klass("HashSet", _SCG, ("T",), [iset_t, ireadonly_collection_t])
    klass("Queue", _SCG, ("T",), [ireadonly_collection_t])
    klass("Stack", _SCG, ("T",), [ireadonly_collection_t])
    klass("Dictionary", _SCG, ("TKey", "TValue"), [idictionary])
    klass("KeyValuePair", _SCG, ("TKey", "TValue"), kind=TypeKind.VALUE_AGGREGATE)
    klass("ImmutableArray", "System.Collections.Immutable", ("T",),
          [ireadonly_list_t], kind=TypeKind.VALUE_AGGREGATE)
    klass("Nullable", "System", ("T",), kind=TypeKind.VALUE_AGGREGATE)

    if hash_combinator_arity > 0:
        hash_code = klass("HashCode", "System", kind=TypeKind.VALUE_AGGREGATE)
        hash_code.methods.extend(
            MethodSymbol("Combine", n) for n in range(1, hash_combinator_arity + 1)
        )
        hash_code.methods.append(MethodSymbol("Add", 1, is_static=False))
        hash_code.methods.append(MethodSymbol("ToHashCode", 0, is_static=False))
