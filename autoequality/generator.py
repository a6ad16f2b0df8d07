#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/generator.py
=========================

Host-side pipeline: finds annotated types in a compilation, resolves them
into descriptors and emits one compilation unit per type.

Units are cached per generator instance.  A type whose freshly built
descriptor compares equal (:class:`~autoequality.comparer.DescriptorComparer`)
to the one behind a cached unit is not re-emitted.  The cache is replaced
only after a whole batch finishes; a cancelled batch leaves it untouched.

Failure policy
--------------
* Resolution never raises for odd types or annotations; it reports
  diagnostics and degrades to ``GENERIC_DEFAULT``.
* An :class:`~autoequality.errors.EmissionError` aborts the unit for that
  one type.  It is recorded in :attr:`GenerationResult.failures` and the
  batch carries on.
* :class:`~autoequality.errors.GenerationCancelled` propagates to the
  caller.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from autoequality.capability import ContextCache, GenerationContext, probe_hash_combinator
from autoequality.comparer import DEFAULT_COMPARER, DescriptorComparer
from autoequality.config import GeneratorConfig, HashingMode
from autoequality.errors import (
    EmissionError,
    ErrorMessage,
    ErrorReporter,
    GenerationCancelled,
)
from autoequality.model import TypeDescriptor
from autoequality.strategy import AUTO_EQUALITY_ATTRIBUTE, build_descriptor, is_case_insensitive
from autoequality.symbols import Compilation, TypeSymbol
from autoequality.writer import ATTRIBUTE_HINT_NAME, hint_name, write_attribute_source, write_equality

__all__ = [
    "GeneratedSource",
    "GenerationResult",
    "AutoEqualityGenerator",
    "attribute_source",
]

_log = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]
Target = Tuple[TypeSymbol, bool]


@dataclass(frozen=True, slots=True)
class GeneratedSource:
    """One emitted compilation unit."""

    hint_name: str
    text: str


@dataclass
class GenerationResult:
    """Outcome of one :meth:`AutoEqualityGenerator.run` batch."""

    sources: List[GeneratedSource] = field(default_factory=list)
    regenerated: List[str] = field(default_factory=list)
    reused: List[str] = field(default_factory=list)
    failures: List[EmissionError] = field(default_factory=list)
    diagnostics: List[ErrorMessage] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures and not any(
            m.severity is not None and m.severity.is_error() for m in self.diagnostics
        )


def attribute_source(config: Optional[GeneratorConfig] = None) -> GeneratedSource:
    """The once-per-build unit declaring the annotation vocabulary."""
    return GeneratedSource(ATTRIBUTE_HINT_NAME, write_attribute_source(config))


class _EmissionCache:
    """Emitted units bucketed by :meth:`DescriptorComparer.hash`."""

    def __init__(self, comparer: DescriptorComparer) -> None:
        self._comparer = comparer
        self._buckets: Dict[int, List[Tuple[TypeDescriptor, GeneratedSource]]] = {}

    def lookup(self, descriptor: TypeDescriptor) -> Optional[GeneratedSource]:
        for cached, source in self._buckets.get(self._comparer.hash(descriptor), ()):
            if self._comparer.equals(cached, descriptor):
                return source
        return None

    def store(self, descriptor: TypeDescriptor, source: GeneratedSource) -> None:
        bucket = self._buckets.setdefault(self._comparer.hash(descriptor), [])
        bucket.append((descriptor, source))

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._buckets.values())


class AutoEqualityGenerator:
    """Incremental equality generator for one host session."""

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        probe: Callable[..., bool] = probe_hash_combinator,
        comparer: DescriptorComparer = DEFAULT_COMPARER,
    ) -> None:
        self.config = config or GeneratorConfig()
        self._contexts = ContextCache(probe)
        self._comparer = comparer
        self._lock = threading.Lock()
        self._cache = _EmissionCache(comparer)

    # ── once per build ────────────────────────────────────────────────

    def post_initialization_source(self) -> GeneratedSource:
        return attribute_source(self.config)

    def context_for(self, compilation: Compilation) -> GenerationContext:
        return self._contexts.get_or_create(compilation)

    @property
    def cached_units(self) -> int:
        with self._lock:
            return len(self._cache)

    # ── extraction ────────────────────────────────────────────────────

    @staticmethod
    def targets(compilation: Compilation) -> List[Target]:
        """Annotated types with the ``CaseInsensitive`` flag of each."""
        return [
            (type_symbol, is_case_insensitive(type_symbol))
            for type_symbol in compilation.types_with_attribute(AUTO_EQUALITY_ATTRIBUTE)
        ]

    def _hashing_mode_for(self, context: GenerationContext) -> bool:
        mode = self.config.hashing_mode
        if mode is HashingMode.COMBINATOR:
            return True
        if mode is HashingMode.MANUAL:
            return False
        return context.has_hash_combinator

    def descriptors(
        self,
        compilation: Compilation,
        targets: Optional[Iterable[Target]] = None,
        cancel: Optional[CancelCheck] = None,
        reporter: Optional[ErrorReporter] = None,
    ) -> Iterator[TypeDescriptor]:
        """Resolve each target into a descriptor, skipping non-data types."""
        context = self.context_for(compilation)
        if targets is None:
            targets = self.targets(compilation)
        for type_symbol, case_insensitive in targets:
            descriptor = build_descriptor(
                type_symbol,
                context,
                case_insensitive,
                cancel=cancel,
                reporter=reporter,
            )
            if descriptor is None:
                continue
            yield descriptor.with_hashing_mode(self._hashing_mode_for(context))

    # ── emission ──────────────────────────────────────────────────────

    def emit(
        self,
        descriptor: TypeDescriptor,
        cancel: Optional[CancelCheck] = None,
    ) -> GeneratedSource:
        text = write_equality(descriptor, self.config, cancel)
        return GeneratedSource(hint_name(descriptor, self.config.namespace_placeholder), text)

    def run(
        self,
        compilation: Compilation,
        targets: Optional[Iterable[Target]] = None,
        cancel: Optional[CancelCheck] = None,
    ) -> GenerationResult:
        """Emit a unit for every annotated type in *compilation*.

        Raises
        ------
        GenerationCancelled
            If *cancel* reports true at any poll point.  No partial result
            is returned and the unit cache keeps its previous contents.
        """
        reporter = ErrorReporter()
        result = GenerationResult()
        with self._lock:
            previous = self._cache
        staged = _EmissionCache(self._comparer)

        for descriptor in self.descriptors(compilation, targets, cancel, reporter):
            if cancel is not None and cancel():
                raise GenerationCancelled(f"generation for {compilation!r} cancelled")

            source = previous.lookup(descriptor)
            if source is not None:
                _log.debug("reusing unit for %s", descriptor.qualified_name)
                result.reused.append(descriptor.qualified_name)
            else:
                try:
                    source = self.emit(descriptor, cancel)
                except EmissionError as exc:
                    _log.error("cannot emit %s: %s", descriptor.qualified_name, exc.error_message.message)
                    reporter.report(exc.code, exc.error_message.message, hint=exc.error_message.hint)
                    result.failures.append(exc)
                    continue
                result.regenerated.append(descriptor.qualified_name)

            staged.store(descriptor, source)
            result.sources.append(source)

        with self._lock:
            self._cache = staged

        result.diagnostics = reporter.messages
        _log.info(
            "%d unit(s): %d regenerated, %d reused, %d failed",
            len(result.sources),
            len(result.regenerated),
            len(result.reused),
            len(result.failures),
        )
        return result
