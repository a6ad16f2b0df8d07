#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
autoequality/builder.py
=======================

Line-oriented text builder with indentation tracking.

Every emission goes through ordered ``emit`` calls, so two builders fed
the same calls always produce identical text.  Lines are terminated by
``\\n`` regardless of platform.
"""

from __future__ import annotations

from io import StringIO
from typing import Any, Sequence

__all__ = ["CodeBuilder"]


class CodeBuilder:
    """Low-level source emission with indentation management.

    Provides:
    - Automatic indentation tracking
    - Brace-block context managers
    - Joined item lists (``a &&`` / ``b,`` style continuation lines)
    """

    def __init__(self, indent_str: str = "    ") -> None:
        self._buffer = StringIO()
        self._indent_str = indent_str
        self._indent_level = 0
        self._line_count = 0

    def emit(self, code: str = "") -> None:
        """Emit a line of code at the current indentation."""
        if code.strip():
            self._buffer.write(self._indent_str * self._indent_level)
            self._buffer.write(code)
        self._buffer.write("\n")
        self._line_count += 1

    def emit_blank(self, count: int = 1) -> None:
        for _ in range(count):
            self._buffer.write("\n")
            self._line_count += 1

    def emit_joined(self, items: Sequence[str], separator: str, terminator: str) -> None:
        """Emit one item per line.

        The first item is written as-is, every later line is preceded by
        *separator* on the line before it, and the last item carries
        *terminator*.
        """
        last = len(items) - 1
        for index, item in enumerate(items):
            self.emit(item + (terminator if index == last else separator))

    def indent(self) -> None:
        self._indent_level += 1

    def dedent(self) -> None:
        self._indent_level = max(0, self._indent_level - 1)

    @property
    def indent_level(self) -> int:
        return self._indent_level

    @property
    def line_count(self) -> int:
        return self._line_count

    def block(self, header: str, closer: str = "}") -> "CodeBuilder._BlockContext":
        """Context manager for a ``header { ... }`` block."""
        return self._BlockContext(self, header, closer)

    def indented(self) -> "CodeBuilder._IndentContext":
        """Context manager that indents without emitting braces."""
        return self._IndentContext(self)

    class _BlockContext:

        def __init__(self, builder: "CodeBuilder", header: str, closer: str) -> None:
            self._builder = builder
            self._header = header
            self._closer = closer

        def __enter__(self) -> "CodeBuilder":
            self._builder.emit(self._header)
            self._builder.emit("{")
            self._builder.indent()
            return self._builder

        def __exit__(self, *args: Any) -> None:
            self._builder.dedent()
            self._builder.emit(self._closer)

    class _IndentContext:

        def __init__(self, builder: "CodeBuilder") -> None:
            self._builder = builder

        def __enter__(self) -> "CodeBuilder":
            self._builder.indent()
            return self._builder

        def __exit__(self, *args: Any) -> None:
            self._builder.dedent()

    def get_code(self) -> str:
        return self._buffer.getvalue()

    def __str__(self) -> str:
        return self.get_code()
