#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/writer.py
======================

Emits the C# compilation unit implementing ``IEquatable<T>`` for one
resolved :class:`~autoequality.model.TypeDescriptor`.

The unit contains, in this order:

1. ``operator ==``: null-aware for classes, plain ``Equals`` for structs
2. ``operator !=``: the negation of (1)
3. ``Equals(object?)``: type test, then (4)
4. ``Equals(T?)``: member-wise ``&&`` chain in declaration order, preceded
   by a single ``other is null`` guard for classes
5. ``GetHashCode()``: ``HashCode.Combine`` when the runtime has a
   combinator taking seven or more arguments, otherwise a running
   ``hash = (hash * 23) + ...`` seeded at 17

Both (4) and (5) walk :meth:`TypeDescriptor.retained_members`, so equal
instances always hash equal.  Output is a pure function of the descriptor
and the configuration.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from autoequality.builder import CodeBuilder
from autoequality.config import GeneratorConfig
from autoequality.errors import (
    DuplicateMemberError,
    EmissionError,
    ErrorCodes,
    GenerationCancelled,
)
from autoequality.model import EqualityStrategy, MemberDescriptor, TypeDescriptor

__all__ = [
    "HEADER",
    "MAX_COMBINE_ARGUMENTS",
    "HASH_SEED",
    "HASH_MULTIPLIER",
    "hint_name",
    "escape_identifier",
    "equals_expression",
    "hash_contribution",
    "write_equality",
    "write_attribute_source",
    "ATTRIBUTE_HINT_NAME",
]

_log = logging.getLogger(__name__)

HEADER = "// <auto-generated/>"
ATTRIBUTE_HINT_NAME = "AutoEqualityAttribute.g.cs"

#: Arguments per ``HashCode.Combine`` call; longer lists nest.
MAX_COMBINE_ARGUMENTS = 7
HASH_SEED = 17
HASH_MULTIPLIER = 23

#: C# reserved words; identifiers spelled like these need the ``@`` prefix.
RESERVED_WORDS = frozenset("""
    abstract as base bool break byte case catch char checked class const
    continue decimal default delegate do double else enum event explicit
    extern false finally fixed float for foreach goto if implicit in int
    interface internal is lock long namespace new null object operator out
    override params private protected public readonly ref return sbyte
    sealed short sizeof stackalloc static string struct switch this throw
    true try typeof uint ulong unchecked unsafe ushort using virtual void
    volatile while
""".split())

CancelCheck = Callable[[], bool]


# ═══════════════════════════════════════════════════════════════════════════
# PER-MEMBER EXPRESSIONS
# ═══════════════════════════════════════════════════════════════════════════

def escape_identifier(name: str) -> str:
    """Prefix *name* with ``@`` when it collides with a reserved word."""
    return f"@{name}" if name in RESERVED_WORDS else name


def _this(member: MemberDescriptor) -> str:
    return f"this.{escape_identifier(member.name)}"


def _other(member: MemberDescriptor) -> str:
    return f"other.{escape_identifier(member.name)}"


def equals_expression(member: MemberDescriptor) -> str:
    """The boolean expression comparing *member* on ``this`` and ``other``."""
    strategy = member.strategy
    left, right = _this(member), _other(member)

    if strategy in (EqualityStrategy.OPERATOR_EQUALITY, EqualityStrategy.STRING_ORDINAL):
        return f"{left} == {right}"
    if strategy.is_string:
        return f"{strategy.comparer_name}.Equals({left}, {right})"
    if strategy is EqualityStrategy.SEQUENCE_EQUAL:
        sequence_equal = f"Enumerable.SequenceEqual({left}, {right})"
        if member.type_kind.is_value_like:
            return sequence_equal
        return f"({left} is null ? {right} is null : {right} is not null && {sequence_equal})"
    if strategy is EqualityStrategy.GENERIC_DEFAULT:
        type_name = member.type_full_name or "object"
        return f"EqualityComparer<{type_name}>.Default.Equals({left}, {right})"
    raise EmissionError(f"member '{member.name}' has no equality expression for {strategy.name}")


def hash_contribution(member: MemberDescriptor, combinator: bool) -> str:
    """The integer (or combinator argument) *member* contributes to the hash.

    Non-ordinal string members hash through their comparer and sequence
    members hash their element count, so the hash agrees with
    :func:`equals_expression`.
    """
    strategy = member.strategy
    value = _this(member)
    value_like = member.type_kind.is_value_like

    if strategy.is_string and strategy is not EqualityStrategy.STRING_ORDINAL:
        return f"({value} is null ? 0 : {strategy.comparer_name}.GetHashCode({value}))"
    if strategy is EqualityStrategy.SEQUENCE_EQUAL:
        if value_like:
            return f"Enumerable.Count({value})"
        return f"({value} is null ? 0 : Enumerable.Count({value}))"
    if combinator:
        return value
    if value_like:
        return f"{value}.GetHashCode()"
    return f"({value}?.GetHashCode() ?? 0)"


# ═══════════════════════════════════════════════════════════════════════════
# UNIT EMISSION
# ═══════════════════════════════════════════════════════════════════════════

def hint_name(descriptor: TypeDescriptor, placeholder: str = "global") -> str:
    """Deterministic identifier of the unit emitted for *descriptor*.

    Generic types carry their arity (``Box`1``) so they never share a
    name with a non-generic type of the same name.
    """
    return f"AutoEquality.{descriptor.namespace or placeholder}.{descriptor.metadata_name}.g.cs"


def _check_invariants(descriptor: TypeDescriptor) -> None:
    if not descriptor.name:
        raise EmissionError(
            "cannot emit equality for a type without a name",
            code=ErrorCodes.EMPTY_TYPE_NAME,
        )
    seen = set()
    for member in descriptor.members:
        if member.name in seen:
            raise DuplicateMemberError(descriptor.qualified_name, member.name)
        seen.add(member.name)


def _poll(cancel: Optional[CancelCheck], descriptor: TypeDescriptor) -> None:
    if cancel is not None and cancel():
        raise GenerationCancelled(f"emission of '{descriptor.qualified_name}' cancelled")


def write_equality(
    descriptor: TypeDescriptor,
    config: Optional[GeneratorConfig] = None,
    cancel: Optional[CancelCheck] = None,
) -> str:
    """Render the full compilation unit for *descriptor*.

    Raises
    ------
    EmissionError
        If the descriptor violates an emission invariant (empty name,
        duplicate member names).  Nothing is returned in that case.
    GenerationCancelled
        If *cancel* reports true between members.
    """
    config = config or GeneratorConfig()
    _check_invariants(descriptor)

    members = descriptor.retained_members()
    builder = CodeBuilder(config.indent)

    if config.emit_header:
        builder.emit(HEADER)
    builder.emit("using System;")
    builder.emit("using System.Collections.Generic;")
    if any(m.strategy is EqualityStrategy.SEQUENCE_EQUAL for m in members):
        builder.emit("using System.Linq;")
    builder.emit_blank()
    builder.emit("#nullable enable")
    builder.emit_blank()
    if descriptor.namespace:
        builder.emit(f"namespace {descriptor.namespace};")
        builder.emit_blank()

    name = _declared_name(descriptor)
    annotated = f"{name}?" if descriptor.is_reference_type else name
    keyword = "class" if descriptor.is_reference_type else "struct"

    with builder.block(f"partial {keyword} {name} : IEquatable<{annotated}>"):
        _write_operators(builder, descriptor, annotated)
        builder.emit_blank()
        _write_equals(builder, descriptor, annotated, members, cancel)
        builder.emit_blank()
        if descriptor.hashing_mode_available:
            _write_hash_combinator(builder, descriptor, members, cancel)
        else:
            _write_hash_manual(builder, descriptor, members, cancel)

    _log.debug(
        "emitted %s (%d member(s), %s hashing, %d line(s))",
        descriptor.qualified_name,
        len(members),
        "combinator" if descriptor.hashing_mode_available else "manual",
        builder.line_count,
    )
    return builder.get_code()


def _declared_name(descriptor: TypeDescriptor) -> str:
    name = escape_identifier(descriptor.name)
    if descriptor.type_parameters:
        parameters = ", ".join(escape_identifier(p) for p in descriptor.type_parameters)
        return f"{name}<{parameters}>"
    return name


def _write_operators(builder: CodeBuilder, descriptor: TypeDescriptor, annotated: str) -> None:
    if descriptor.is_reference_type:
        op_equals = "left is not null ? left.Equals(right) : right is null"
    else:
        op_equals = "left.Equals(right)"

    builder.emit(f"public static bool operator ==({annotated} left, {annotated} right) =>")
    with builder.indented():
        builder.emit(f"{op_equals};")
    builder.emit_blank()
    builder.emit(f"public static bool operator !=({annotated} left, {annotated} right) =>")
    with builder.indented():
        builder.emit("!(left == right);")
    builder.emit_blank()
    builder.emit("public override bool Equals(object? obj) =>")
    with builder.indented():
        builder.emit(f"obj is {_declared_name(descriptor)} other && Equals(other);")


def _write_equals(
    builder: CodeBuilder,
    descriptor: TypeDescriptor,
    annotated: str,
    members: Sequence[MemberDescriptor],
    cancel: Optional[CancelCheck],
) -> None:
    with builder.block(f"public bool Equals({annotated} other)"):
        if descriptor.is_reference_type:
            builder.emit("if (other is null)")
            with builder.indented():
                builder.emit("return false;")
            builder.emit_blank()

        if not members:
            builder.emit("return true;")
            return

        expressions: List[str] = []
        for member in members:
            _poll(cancel, descriptor)
            expressions.append(equals_expression(member))

        builder.emit("return")
        with builder.indented():
            builder.emit_joined(expressions, " &&", ";")


def _write_hash_combinator(
    builder: CodeBuilder,
    descriptor: TypeDescriptor,
    members: Sequence[MemberDescriptor],
    cancel: Optional[CancelCheck],
) -> None:
    contributions: List[str] = []
    for member in members:
        _poll(cancel, descriptor)
        contributions.append(hash_contribution(member, combinator=True))

    builder.emit("public override int GetHashCode() =>")
    with builder.indented():
        if not contributions:
            builder.emit("0;")
        else:
            _emit_combine(builder, contributions, ";")


def _emit_combine(builder: CodeBuilder, items: Sequence[str], terminator: str) -> None:
    builder.emit("HashCode.Combine(")
    with builder.indented():
        if len(items) <= MAX_COMBINE_ARGUMENTS:
            builder.emit_joined(items, ",", ")" + terminator)
            return
        split = MAX_COMBINE_ARGUMENTS - 1
        for item in items[:split]:
            builder.emit(item + ",")
        _emit_combine(builder, items[split:], ")" + terminator)


def _write_hash_manual(
    builder: CodeBuilder,
    descriptor: TypeDescriptor,
    members: Sequence[MemberDescriptor],
    cancel: Optional[CancelCheck],
) -> None:
    with builder.block("public override int GetHashCode()"):
        builder.emit(f"int hash = {HASH_SEED};")
        for member in members:
            _poll(cancel, descriptor)
            contribution = hash_contribution(member, combinator=False)
            builder.emit(f"hash = (hash * {HASH_MULTIPLIER}) + {contribution};")
        builder.emit("return hash;")


# ═══════════════════════════════════════════════════════════════════════════
# ANNOTATION VOCABULARY
# ═══════════════════════════════════════════════════════════════════════════

def write_attribute_source(config: Optional[GeneratorConfig] = None) -> str:
    """The once-per-build unit declaring the annotations and their vocabulary."""
    config = config or GeneratorConfig()
    builder = CodeBuilder(config.indent)

    if config.emit_header:
        builder.emit(HEADER)
    builder.emit("using System;")
    builder.emit_blank()
    builder.emit("#nullable enable")
    builder.emit_blank()

    builder.emit(
        "[AttributeUsage(AttributeTargets.Class | AttributeTargets.Struct, "
        "Inherited = false, AllowMultiple = false)]"
    )
    with builder.block("internal sealed class AutoEqualityAttribute : Attribute"):
        builder.emit("public bool CaseInsensitive { get; set; }")
        builder.emit_blank()
        with builder.block("public AutoEqualityAttribute()"):
            pass
        builder.emit_blank()
        with builder.block("public AutoEqualityAttribute(bool caseInsensitive)"):
            builder.emit("CaseInsensitive = caseInsensitive;")
    builder.emit_blank()

    builder.emit(
        "[AttributeUsage(AttributeTargets.Field | AttributeTargets.Property, "
        "Inherited = false, AllowMultiple = false)]"
    )
    with builder.block("internal sealed class AutoEqualityMemberAttribute : Attribute"):
        builder.emit("public AutoEqualityKind Kind { get; set; }")
        builder.emit_blank()
        with builder.block("public AutoEqualityMemberAttribute(AutoEqualityKind kind)"):
            builder.emit("Kind = kind;")
    builder.emit_blank()

    with builder.block("internal enum AutoEqualityKind"):
        for strategy in EqualityStrategy:
            builder.emit(f"{strategy.annotation_name} = {strategy.value},")

    return builder.get_code()
