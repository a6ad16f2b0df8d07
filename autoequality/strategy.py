#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/strategy.py
========================

Decides which :class:`~autoequality.model.EqualityStrategy` governs each
data member of a type, and assembles the resulting
:class:`~autoequality.model.TypeDescriptor`.

Resolution precedence (highest first)
-------------------------------------
1. An explicit ``[AutoEqualityMember(kind)]`` annotation, ``None`` included.
2. The type-based default:

   * fixed-width and pointer-sized integers → ``OPERATOR_EQUALITY``
   * ``string`` → ``STRING_ORDINAL``, or ``STRING_ORDINAL_IGNORE_CASE``
     when the type carries ``[AutoEquality(CaseInsensitive = true)]``
   * anything implementing ``IEnumerable<T>`` → ``SEQUENCE_EQUAL``

3. ``GENERIC_DEFAULT``.

Nothing here raises for an unexpected type or annotation: unknown shapes
fall through to ``GENERIC_DEFAULT``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterator, List, Optional

from autoequality.capability import GenerationContext
from autoequality.errors import ErrorCodes, ErrorReporter, GenerationCancelled
from autoequality.model import EqualityStrategy, MemberDescriptor, TypeDescriptor, TypeKind
from autoequality.symbols import MemberSymbol, SpecialType, TypeSymbol, is_or_implements_original

__all__ = [
    "AUTO_EQUALITY_ATTRIBUTE",
    "AUTO_EQUALITY_MEMBER_ATTRIBUTE",
    "strategy_for_special_type",
    "strategy_for_type",
    "strategy_from_annotation",
    "resolve_strategy",
    "data_members",
    "type_kind_of",
    "is_case_insensitive",
    "build_descriptor",
]

_log = logging.getLogger(__name__)

AUTO_EQUALITY_ATTRIBUTE = "AutoEquality"
AUTO_EQUALITY_MEMBER_ATTRIBUTE = "AutoEqualityMember"

CancelCheck = Callable[[], bool]

_OPERATOR_TYPES = frozenset({
    SpecialType.INT16,
    SpecialType.INT32,
    SpecialType.INT64,
    SpecialType.UINT16,
    SpecialType.UINT32,
    SpecialType.UINT64,
    SpecialType.INTPTR,
    SpecialType.UINTPTR,
})


def strategy_for_special_type(
    special: SpecialType,
    case_insensitive: bool = False,
) -> Optional[EqualityStrategy]:
    if special in _OPERATOR_TYPES:
        return EqualityStrategy.OPERATOR_EQUALITY
    if special is SpecialType.STRING:
        if case_insensitive:
            return EqualityStrategy.STRING_ORDINAL_IGNORE_CASE
        return EqualityStrategy.STRING_ORDINAL
    return None


def strategy_for_type(
    type_symbol: TypeSymbol,
    context: GenerationContext,
    case_insensitive: bool = False,
) -> EqualityStrategy:
    """Default strategy for a declared type, ignoring annotations."""
    special = strategy_for_special_type(type_symbol.special_type, case_insensitive)
    if special is not None:
        return special

    enumerable = context.enumerable_definition
    if enumerable is not None and is_or_implements_original(type_symbol, enumerable):
        return EqualityStrategy.SEQUENCE_EQUAL

    return EqualityStrategy.GENERIC_DEFAULT


def strategy_from_annotation(
    member: MemberSymbol,
    reporter: Optional[ErrorReporter] = None,
) -> Optional[EqualityStrategy]:
    """Strategy named by the member's ``AutoEqualityMember`` annotation.

    Returns ``None`` when there is no annotation.  An annotation naming a
    value outside the vocabulary is reported and treated as
    ``GENERIC_DEFAULT``.
    """
    attr = member.find_attribute(AUTO_EQUALITY_MEMBER_ATTRIBUTE)
    if attr is None:
        return None

    value = attr.get("kind", position=0)
    strategy = EqualityStrategy.from_annotation(value)
    if strategy is None:
        _log.warning("member %s: invalid AutoEqualityMember kind %r", member.name, value)
        if reporter is not None:
            reporter.warning(
                ErrorCodes.INVALID_ANNOTATION,
                f"member '{member.name}' names unknown equality kind {value!r}",
                span=member.span,
                hint="falling back to AutoEqualityKind.Default",
            )
        return EqualityStrategy.GENERIC_DEFAULT
    return strategy


def resolve_strategy(
    member: MemberSymbol,
    context: GenerationContext,
    case_insensitive: bool = False,
    reporter: Optional[ErrorReporter] = None,
) -> EqualityStrategy:
    annotated = strategy_from_annotation(member, reporter)
    if annotated is not None:
        return annotated
    if member.type is None:
        return EqualityStrategy.GENERIC_DEFAULT
    return strategy_for_type(member.type, context, case_insensitive)


def data_members(type_symbol: TypeSymbol) -> Iterator[MemberSymbol]:
    """Members that represent primary state.

    Instance fields always qualify.  A property qualifies when it can be
    read and either written or explicitly annotated; a read-only property
    without an annotation is assumed to be derived.
    """
    for member in type_symbol.members:
        if member.is_static or member.is_const:
            continue
        if not member.is_property:
            yield member
        elif member.has_getter and (
            member.has_setter
            or member.find_attribute(AUTO_EQUALITY_MEMBER_ATTRIBUTE) is not None
        ):
            yield member


def type_kind_of(type_symbol: Optional[TypeSymbol]) -> TypeKind:
    if type_symbol is None:
        return TypeKind.UNKNOWN
    if type_symbol.is_interface or type_symbol.is_array:
        return TypeKind.REFERENCE_AGGREGATE
    return type_symbol.kind


def is_case_insensitive(type_symbol: TypeSymbol) -> bool:
    """Read ``CaseInsensitive`` off the type's ``AutoEquality`` annotation."""
    attr = type_symbol.find_attribute(AUTO_EQUALITY_ATTRIBUTE)
    if attr is None:
        return False
    value = attr.get("CaseInsensitive", position=0, default=False)
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def build_descriptor(
    type_symbol: TypeSymbol,
    context: GenerationContext,
    case_insensitive: bool = False,
    cancel: Optional[CancelCheck] = None,
    reporter: Optional[ErrorReporter] = None,
) -> Optional[TypeDescriptor]:
    """Resolve every data member of *type_symbol* into a descriptor.

    Returns ``None`` for symbols that are not classes or structs.
    *cancel* is polled between members; when it returns true the
    resolution is abandoned with :class:`GenerationCancelled` and nothing
    is produced.
    """
    if not type_symbol.is_class_or_struct:
        _log.warning("%s is not a class or struct; skipped", type_symbol.name)
        if reporter is not None:
            reporter.warning(
                ErrorCodes.NOT_A_DATA_TYPE,
                f"'{type_symbol.name}' is not a class or struct; skipped",
                span=type_symbol.span,
            )
        return None

    members: List[MemberDescriptor] = []
    for member in data_members(type_symbol):
        if cancel is not None and cancel():
            raise GenerationCancelled(f"resolution of '{type_symbol.name}' cancelled")
        strategy = resolve_strategy(member, context, case_insensitive, reporter)
        members.append(MemberDescriptor(
            name=member.name,
            type_kind=type_kind_of(member.type),
            type_full_name=member.type.display_name() if member.type is not None else "",
            strategy=strategy,
        ))

    if _log.isEnabledFor(logging.DEBUG):
        summary: Dict[str, str] = {m.name: m.strategy.annotation_name for m in members}
        _log.debug("resolved %s: %s", type_symbol.name, summary)

    return TypeDescriptor(
        namespace=type_symbol.namespace or None,
        name=type_symbol.name,
        type_parameters=type_symbol.type_parameters,
        is_reference_type=type_symbol.kind is TypeKind.REFERENCE_AGGREGATE,
        hashing_mode_available=context.has_hash_combinator,
        members=tuple(members),
    )
