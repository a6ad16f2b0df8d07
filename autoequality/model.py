#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/model.py
=====================

Immutable descriptors consumed by the emitter.

A :class:`TypeDescriptor` is built once per extraction pass and never
mutated; resolution produces new descriptors.  Member order is the
emission order and must be stable across runs.

Suppressed members stay in ``members`` so they remain visible when a
descriptor is dumped, and are filtered lazily by
:meth:`TypeDescriptor.retained_members` at emission time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, unique
from typing import Any, Dict, Optional, Tuple

__all__ = [
    "EqualityStrategy",
    "TypeKind",
    "MemberDescriptor",
    "TypeDescriptor",
]


# ═══════════════════════════════════════════════════════════════════════════
# STRATEGY VOCABULARY
# ═══════════════════════════════════════════════════════════════════════════

@unique
class EqualityStrategy(Enum):
    """How one member participates in equality and hashing.

    The value is the ordinal of the matching ``AutoEqualityKind`` enumerant
    in the emitted annotation vocabulary, so annotations written as integers
    map back without a lookup table.
    """

    SUPPRESSED = 0
    GENERIC_DEFAULT = 1
    OPERATOR_EQUALITY = 2
    SEQUENCE_EQUAL = 3
    STRING_ORDINAL = 4
    STRING_ORDINAL_IGNORE_CASE = 5
    STRING_CURRENT_CULTURE = 6
    STRING_CURRENT_CULTURE_IGNORE_CASE = 7
    STRING_INVARIANT_CULTURE = 8
    STRING_INVARIANT_CULTURE_IGNORE_CASE = 9

    @property
    def annotation_name(self) -> str:
        """Name of the enumerant in the emitted ``AutoEqualityKind`` enum."""
        return _ANNOTATION_NAMES[self]

    @property
    def is_string(self) -> bool:
        return self in _STRING_STRATEGIES

    @property
    def is_suppressed(self) -> bool:
        return self is EqualityStrategy.SUPPRESSED

    @property
    def comparer_name(self) -> str:
        """The ``StringComparer`` member implementing this strategy."""
        if not self.is_string:
            raise ValueError(f"not a string equality strategy: {self.name}")
        return f"StringComparer.{self.annotation_name}"

    @classmethod
    def from_annotation(cls, value: Any) -> Optional["EqualityStrategy"]:
        """Map an annotation argument onto the vocabulary.

        Accepts the ordinal, the bare enumerant name or the qualified
        ``AutoEqualityKind.Name`` form.  Anything else yields ``None``.
        """
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return None
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls.from_annotation(int(text))
            if "." in text:
                prefix, _, text = text.rpartition(".")
                if prefix.split(".")[-1] != "AutoEqualityKind":
                    return None
            return _BY_ANNOTATION_NAME.get(text)
        return None


_ANNOTATION_NAMES: Dict[EqualityStrategy, str] = {
    EqualityStrategy.SUPPRESSED: "None",
    EqualityStrategy.GENERIC_DEFAULT: "Default",
    EqualityStrategy.OPERATOR_EQUALITY: "Operator",
    EqualityStrategy.SEQUENCE_EQUAL: "SequenceEqual",
    EqualityStrategy.STRING_ORDINAL: "Ordinal",
    EqualityStrategy.STRING_ORDINAL_IGNORE_CASE: "OrdinalIgnoreCase",
    EqualityStrategy.STRING_CURRENT_CULTURE: "CurrentCulture",
    EqualityStrategy.STRING_CURRENT_CULTURE_IGNORE_CASE: "CurrentCultureIgnoreCase",
    EqualityStrategy.STRING_INVARIANT_CULTURE: "InvariantCulture",
    EqualityStrategy.STRING_INVARIANT_CULTURE_IGNORE_CASE: "InvariantCultureIgnoreCase",
}

_BY_ANNOTATION_NAME: Dict[str, EqualityStrategy] = {
    name: strategy for strategy, name in _ANNOTATION_NAMES.items()
}

_STRING_STRATEGIES = frozenset({
    EqualityStrategy.STRING_ORDINAL,
    EqualityStrategy.STRING_ORDINAL_IGNORE_CASE,
    EqualityStrategy.STRING_CURRENT_CULTURE,
    EqualityStrategy.STRING_CURRENT_CULTURE_IGNORE_CASE,
    EqualityStrategy.STRING_INVARIANT_CULTURE,
    EqualityStrategy.STRING_INVARIANT_CULTURE_IGNORE_CASE,
})


@unique
class TypeKind(Enum):
    """Coarse classification of a member's declared type."""

    PRIMITIVE = "primitive"
    ENUM = "enum"
    VALUE_AGGREGATE = "value_aggregate"
    REFERENCE_AGGREGATE = "reference_aggregate"
    UNKNOWN = "unknown"

    @property
    def is_value_like(self) -> bool:
        """True for kinds that can never hold a null reference."""
        return self in (TypeKind.PRIMITIVE, TypeKind.ENUM, TypeKind.VALUE_AGGREGATE)


# ═══════════════════════════════════════════════════════════════════════════
# DESCRIPTORS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class MemberDescriptor:
    """One comparable data member."""

    name: str
    type_kind: TypeKind
    type_full_name: str
    strategy: EqualityStrategy


@dataclass(frozen=True, slots=True, eq=False)
class TypeDescriptor:
    """One user type eligible for generated equality.

    Equality is object identity; use
    :class:`autoequality.comparer.DescriptorComparer` for the structural
    comparison that drives regeneration decisions.
    """

    namespace: Optional[str]
    name: str
    is_reference_type: bool
    hashing_mode_available: bool
    members: Tuple[MemberDescriptor, ...] = ()
    type_parameters: Tuple[str, ...] = ()

    @property
    def declared_name(self) -> str:
        """The name as written in C#, with its type parameter list."""
        if self.type_parameters:
            return f"{self.name}<{', '.join(self.type_parameters)}>"
        return self.name

    @property
    def metadata_name(self) -> str:
        """``Name`` or ``Name`N``; distinct for each generic arity."""
        if self.type_parameters:
            return f"{self.name}`{len(self.type_parameters)}"
        return self.name

    @property
    def qualified_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}.{self.metadata_name}"
        return self.metadata_name

    def retained_members(self) -> Tuple[MemberDescriptor, ...]:
        """Members that take part in equality and hashing, in order."""
        return tuple(m for m in self.members if not m.strategy.is_suppressed)

    def with_hashing_mode(self, available: bool) -> "TypeDescriptor":
        if available == self.hashing_mode_available:
            return self
        return replace(self, hashing_mode_available=available)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "namespace": self.namespace,
            "name": self.name,
            "type_parameters": list(self.type_parameters),
            "is_reference_type": self.is_reference_type,
            "hashing_mode_available": self.hashing_mode_available,
            "members": [
                {
                    "name": m.name,
                    "type_kind": m.type_kind.value,
                    "type_full_name": m.type_full_name,
                    "strategy": m.strategy.annotation_name,
                }
                for m in self.members
            ],
        }
