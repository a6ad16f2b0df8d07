#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/capability.py
==========================

Per-compilation facts shared by every type in one build.

The only runtime capability the emitter cares about is whether the target
standard library has an order-sensitive hash combinator taking seven or
more arguments (``System.HashCode.Combine``).  It does not vary across
types, so it is computed once per :class:`GenerationContext` and the
context itself is looked up through a :class:`ContextCache` keyed weakly
on the compilation.
"""

from __future__ import annotations

import logging
import threading
import weakref
from typing import Any, Callable, Optional, TypeVar

from autoequality.errors import ErrorCodes, ErrorReporter
from autoequality.symbols import Compilation, TypeSymbol

__all__ = [
    "HASH_COMBINATOR_TYPE",
    "HASH_COMBINATOR_METHOD",
    "MIN_COMBINATOR_ARITY",
    "probe_hash_combinator",
    "GenerationContext",
    "ContextCache",
]

_log = logging.getLogger(__name__)

HASH_COMBINATOR_TYPE = "System.HashCode"
HASH_COMBINATOR_METHOD = "Combine"
MIN_COMBINATOR_ARITY = 7

ENUMERABLE_DEFINITION = "System.Collections.Generic.IEnumerable`1"

_T = TypeVar("_T")
_UNSET: Any = object()


def probe_hash_combinator(compilation: Any, reporter: Optional[ErrorReporter] = None) -> bool:
    """Does *compilation* expose a ``Combine`` taking >= 7 arguments?

    Any failure while inspecting the library surface is logged and treated
    as "not available" so the build falls back to the manual hash path.
    """
    try:
        hash_code = compilation.get_type_by_metadata_name(HASH_COMBINATOR_TYPE)
        if hash_code is None:
            return False
        return any(
            method.parameter_count >= MIN_COMBINATOR_ARITY
            for method in hash_code.find_methods(HASH_COMBINATOR_METHOD)
        )
    except Exception as exc:
        _log.warning("hash combinator probe failed, using manual hashing: %s", exc)
        if reporter is not None:
            reporter.warning(
                ErrorCodes.CAPABILITY_PROBE_FAILED,
                f"could not inspect {HASH_COMBINATOR_TYPE}: {exc}",
            )
        return False


class GenerationContext:
    """Explicit per-compilation state passed to the resolver and emitter.

    Every lazily computed value is initialised at most once, even when
    several threads ask for it at the same time.
    The compilation is held weakly so a cached context never keeps its
    compilation alive.
    """

    def __init__(
        self,
        compilation: Compilation,
        probe: Callable[..., bool] = probe_hash_combinator,
    ) -> None:
        self._compilation = weakref.ref(compilation)
        self._probe = probe
        self._lock = threading.Lock()
        self._hash_combinator: Any = _UNSET
        self._enumerable: Any = _UNSET

    def _once(self, attr: str, factory: Callable[[], _T]) -> _T:
        value = getattr(self, attr)
        if value is not _UNSET:
            return value
        with self._lock:
            value = getattr(self, attr)
            if value is _UNSET:
                value = factory()
                setattr(self, attr, value)
        return value

    @property
    def compilation(self) -> Compilation:
        compilation = self._compilation()
        if compilation is None:
            raise ReferenceError("the compilation behind this context no longer exists")
        return compilation

    @property
    def has_hash_combinator(self) -> bool:
        return self._once(
            "_hash_combinator",
            lambda: bool(self._probe(self.compilation)),
        )

    @property
    def enumerable_definition(self) -> Optional[TypeSymbol]:
        """The open ``IEnumerable`1`` symbol, if the compilation has one."""
        return self._once(
            "_enumerable",
            lambda: self.compilation.get_type_by_metadata_name(ENUMERABLE_DEFINITION),
        )

    def __repr__(self) -> str:
        return f"GenerationContext({self.compilation!r})"


class ContextCache:
    """Read-through cache from compilation to :class:`GenerationContext`.

    Entries disappear with their compilation.  Owned by a generator
    instance, so its lifetime is that of one host session.
    """

    def __init__(self, probe: Callable[..., bool] = probe_hash_combinator) -> None:
        self._probe = probe
        self._lock = threading.Lock()
        self._contexts: "weakref.WeakKeyDictionary[Any, GenerationContext]" = (
            weakref.WeakKeyDictionary()
        )

    def get_or_create(self, compilation: Compilation) -> GenerationContext:
        with self._lock:
            context = self._contexts.get(compilation)
            if context is None:
                _log.debug("creating generation context for %r", compilation)
                context = GenerationContext(compilation, self._probe)
                self._contexts[compilation] = context
            return context

    def __len__(self) -> int:
        return len(self._contexts)
