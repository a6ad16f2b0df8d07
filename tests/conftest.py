# tests/conftest.py
"""
Shared fixtures: compilations, symbol factories and sample C# sources.
"""

from typing import Any, Callable, Optional

import pytest

from autoequality.capability import GenerationContext
from autoequality.model import TypeKind
from autoequality.symbols import (
    KEYWORD_TYPES,
    AttributeData,
    Compilation,
    MemberSymbol,
    TypeSymbol,
)


PERSON_SOURCE = '''\
using System;
using System.Collections.Generic;

#nullable enable

namespace Demo.Models;

public enum Color { Red, Green }

[AutoEquality(CaseInsensitive = true)]
public partial class Person
{
    public const int MaxAge = 150;
    public static int Count;

    private readonly int _id;
    public string Name { get; set; } = "";
    public string? Nickname { get; init; }
    public int? Age { get; set; }
    public List<string> Tags { get; } = new List<string>();
    [AutoEqualityMember(AutoEqualityKind.None)]
    public DateTime LastSeen { get; set; }
    [AutoEqualityMember(AutoEqualityKind.SequenceEqual)]
    public int[] Scores { get; }
    public Color Favorite;
    public string Display => $"{Name} ({Age})";

    public Person(int id) { _id = id; }

    // not a data member
    public override string ToString() => Name;
}
'''

POINT_SOURCE = '''\
namespace Demo
{
    /* block-scoped namespace */
    [AutoEquality]
    public readonly struct Point
    {
        public readonly int X, Y;
        public IReadOnlyList<double> Weights { get; init; }

        public static bool operator <(Point a, Point b) => a.X < b.X;
        public static bool operator >(Point a, Point b) => a.X > b.X;
    }
}
'''


@pytest.fixture
def compilation() -> Compilation:
    return Compilation.with_core_library()


@pytest.fixture
def legacy_compilation() -> Compilation:
    """A runtime without ``System.HashCode``."""
    return Compilation.with_core_library(hash_combinator_arity=0)


@pytest.fixture
def context(compilation: Compilation) -> GenerationContext:
    return GenerationContext(compilation)


@pytest.fixture
def core(compilation: Compilation) -> Callable[[str], TypeSymbol]:
    """Look a core-library type up by keyword or metadata name."""

    def _lookup(name: str) -> TypeSymbol:
        symbol = compilation.get_type_by_metadata_name(KEYWORD_TYPES.get(name, name))
        assert symbol is not None, name
        return symbol

    return _lookup


@pytest.fixture
def declare(compilation: Compilation) -> Callable[..., TypeSymbol]:
    """Register a user type with the given members."""

    def _declare(
        name: str,
        *members: MemberSymbol,
        namespace: Optional[str] = "Demo",
        kind: TypeKind = TypeKind.REFERENCE_AGGREGATE,
        attributes: Any = (AttributeData("AutoEquality"),),
    ) -> TypeSymbol:
        base = "System.ValueType" if kind is TypeKind.VALUE_AGGREGATE else "System.Object"
        symbol = TypeSymbol(
            name,
            namespace,
            kind,
            declared_base_type=compilation.get_type_by_metadata_name(base),
            members=list(members),
            attributes=tuple(attributes),
        )
        return compilation.add_type(symbol, declared=True)

    return _declare


@pytest.fixture
def person_source() -> str:
    return PERSON_SOURCE


@pytest.fixture
def point_source() -> str:
    return POINT_SOURCE
