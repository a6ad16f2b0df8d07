"""autoequality — generated value equality for C# types.

Types annotated with ``[AutoEquality]`` get an ``IEquatable<T>``
implementation (``==``, ``!=``, ``Equals`` and ``GetHashCode``) whose
per-member comparison is chosen from the member's declared type or an
explicit ``[AutoEqualityMember(kind)]`` annotation.

Submodules
----------
model
    ``EqualityStrategy``, ``TypeKind``, and the immutable
    ``MemberDescriptor`` / ``TypeDescriptor`` records the emitter consumes.

symbols
    Minimal semantic model: ``TypeSymbol``, ``MemberSymbol``,
    ``Compilation`` with a built-in standard library surface.

strategy
    Per-member strategy resolution and descriptor assembly.

capability
    Hash-combinator probe and the per-compilation ``GenerationContext``.

builder / writer
    Indentation-aware text builder and the C# unit emitter.

comparer
    Structural descriptor comparison driving incremental regeneration.

generator
    ``AutoEqualityGenerator``: extraction, caching and emission per build.

frontend
    parsimonious-based reader for the declaration subset of C#.

errors / config / main
    Diagnostics (``AEQ-NNNN``), ``GeneratorConfig``, and the CLI.

Usage
-----
Command-line::

    python -m autoequality generate Models/*.cs -o obj/generated
    python -m autoequality --help

Programmatic::

    from autoequality.frontend import load_compilation
    from autoequality.generator import AutoEqualityGenerator

    compilation = load_compilation({"Pair.cs": source_text})
    result = AutoEqualityGenerator().run(compilation)
    for unit in result.sources:
        print(unit.hint_name)
"""

from __future__ import annotations

__version__: str = "0.1.0"
__all__: list[str] = [
    "__version__",
    "model",
    "symbols",
    "strategy",
    "capability",
    "builder",
    "writer",
    "comparer",
    "generator",
    "frontend",
    "errors",
    "config",
    "main",
]
