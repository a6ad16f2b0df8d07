# autoequality/errors.py
"""
Error Types and Reporting for the AutoEquality generator.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────┐
│  AutoEqualityError (base)                                               │
│  ├── FrontEndSyntaxError  - declaration text could not be parsed        │
│  ├── EmissionError        - a single unit cannot be emitted             │
│  │   └── DuplicateMemberError                                           │
│  ├── ConfigError          - configuration file is unusable              │
│  └── GenerationCancelled  - the host abandoned the batch                │
└─────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Every diagnostic carries a code ``AEQ-NNNN``:
  - 1000-1999: Front-end (syntax) errors
  - 2000-2999: Strategy resolution
  - 4000-4999: Code emission
  - 5000-5999: Pipeline
  - 9000-9999: Internal errors

Recoverable conditions (invalid annotation values, probe failures) are
*reported* through an :class:`ErrorReporter` and degrade to a safe default.
Only emission invariant violations raise, and the generator confines them
to the unit being emitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, Iterator, List, Optional


# ═══════════════════════════════════════════════════════════════════════════
# SEVERITY AND PHASE
# ═══════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for generator diagnostics."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    def __lt__(self, other: "ErrorSeverity") -> bool:
        order = [
            ErrorSeverity.INFO,
            ErrorSeverity.WARNING,
            ErrorSeverity.ERROR,
            ErrorSeverity.FATAL,
        ]
        return order.index(self) < order.index(other)

    def is_error(self) -> bool:
        """Check if this severity represents an error (not warning/info)."""
        return self in (ErrorSeverity.FATAL, ErrorSeverity.ERROR)


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the diagnostic originated."""

    SYNTAX = "syntax"
    RESOLUTION = "resolution"
    EMISSION = "emission"
    PIPELINE = "pipeline"
    INTERNAL = "internal"


# ═══════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """A structured ``PREFIX-NNNN`` diagnostic code."""

    __slots__ = ("prefix", "number", "phase", "default_severity", "title")

    def __init__(
        self,
        number: int,
        phase: ErrorPhase,
        title: str,
        default_severity: ErrorSeverity = ErrorSeverity.ERROR,
        prefix: str = "AEQ",
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.phase = phase
        self.title = title
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.title!r})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class ErrorCodes:
    """Predefined diagnostic codes."""

    # Front end (1000-1999)
    SYNTAX_ERROR = ErrorCode(1000, ErrorPhase.SYNTAX, "declaration text does not parse")
    UNRESOLVED_TYPE = ErrorCode(
        1001, ErrorPhase.SYNTAX, "type reference could not be resolved",
        ErrorSeverity.INFO,
    )
    DUPLICATE_TYPE = ErrorCode(1002, ErrorPhase.SYNTAX, "type declared more than once")

    # Resolution (2000-2999)
    INVALID_ANNOTATION = ErrorCode(
        2001, ErrorPhase.RESOLUTION, "AutoEqualityMember kind is not a known value",
        ErrorSeverity.WARNING,
    )
    NOT_A_DATA_TYPE = ErrorCode(
        2002, ErrorPhase.RESOLUTION, "AutoEquality applied to a type that is not a class or struct",
        ErrorSeverity.WARNING,
    )

    # Emission (4000-4999)
    DUPLICATE_MEMBER = ErrorCode(4001, ErrorPhase.EMISSION, "duplicate member name")
    EMPTY_TYPE_NAME = ErrorCode(4002, ErrorPhase.EMISSION, "type name is empty")

    # Pipeline (5000-5999)
    CAPABILITY_PROBE_FAILED = ErrorCode(
        5001, ErrorPhase.PIPELINE, "hash combinator probe failed",
        ErrorSeverity.WARNING,
    )
    CANCELLED = ErrorCode(5002, ErrorPhase.PIPELINE, "generation cancelled", ErrorSeverity.FATAL)
    INVALID_CONFIG = ErrorCode(5003, ErrorPhase.PIPELINE, "configuration is invalid")

    # Internal (9000-9999)
    INTERNAL_ERROR = ErrorCode(9000, ErrorPhase.INTERNAL, "internal error", ErrorSeverity.FATAL)


# ═══════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class SourceSpan:
    """A position in a declaration source file."""

    file: str = ""
    line: int = 0
    column: int = 0

    @classmethod
    def from_offset(cls, text: str, offset: int, file: str = "") -> "SourceSpan":
        """Translate a character offset in *text* into a line/column span."""
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        return cls(file=file, line=line, column=column)

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            return "<unknown location>"
        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))
        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════
# ERROR MESSAGES
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorMessage:
    """A diagnostic with its code, location and optional hint."""

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    hint: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def to_gcc_format(self) -> str:
        """Format as a GCC-style ``file:line:col: severity: message [code]``."""
        severity = self.severity.value if self.severity else "error"
        main = f"{self.span}: {severity}: {self.message} [{self.code}]"
        if self.hint:
            return f"{main}\nhint: {self.hint}"
        return main

    def to_json(self) -> Dict[str, Any]:
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "location": {
                "file": self.span.file,
                "line": self.span.line,
                "column": self.span.column,
            },
            "phase": self.code.phase.value,
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════

class AutoEqualityError(Exception):
    """Base exception for all generator errors."""

    default_code: ErrorCode = ErrorCodes.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or self.default_code,
            message=message,
            span=span or SourceSpan(),
            hint=hint,
        )

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def severity(self) -> ErrorSeverity:
        return self.error_message.severity or ErrorSeverity.ERROR

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def __str__(self) -> str:
        return self.to_gcc_format()


class FrontEndSyntaxError(AutoEqualityError):
    """Declaration text could not be parsed by the front end."""

    default_code = ErrorCodes.SYNTAX_ERROR


class EmissionError(AutoEqualityError):
    """Emission invariant violated; fatal to the single unit being emitted."""

    default_code = ErrorCodes.INTERNAL_ERROR

    def __init__(self, message: str, type_name: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.type_name = type_name


class DuplicateMemberError(EmissionError):
    """Two retained members share a name."""

    default_code = ErrorCodes.DUPLICATE_MEMBER

    def __init__(self, type_name: str, member_name: str) -> None:
        super().__init__(
            f"type '{type_name}' declares member '{member_name}' more than once",
            type_name=type_name,
            hint="member names must be unique within one type",
        )
        self.member_name = member_name


class ConfigError(AutoEqualityError):
    """The generator configuration cannot be loaded."""

    default_code = ErrorCodes.INVALID_CONFIG


class GenerationCancelled(AutoEqualityError):
    """The host pipeline abandoned an in-flight resolution or emission."""

    default_code = ErrorCodes.CANCELLED


# ═══════════════════════════════════════════════════════════════════════════
# REPORTER
# ═══════════════════════════════════════════════════════════════════════════

class ErrorReporter:
    """Collects non-fatal diagnostics produced while generating.

    The reporter never raises; callers decide what to do with errors by
    inspecting :meth:`has_errors` once a batch completes.
    """

    def __init__(self, source_file: str = "") -> None:
        self.source_file = source_file
        self._messages: List[ErrorMessage] = []

    def report(
        self,
        code: ErrorCode,
        message: str,
        span: Optional[SourceSpan] = None,
        severity: Optional[ErrorSeverity] = None,
        hint: str = "",
    ) -> ErrorMessage:
        msg = ErrorMessage(
            code=code,
            message=message,
            span=span or SourceSpan(file=self.source_file),
            severity=severity,
            hint=hint,
        )
        self._messages.append(msg)
        return msg

    def warning(self, code: ErrorCode, message: str, **kwargs: Any) -> ErrorMessage:
        return self.report(code, message, severity=ErrorSeverity.WARNING, **kwargs)

    def error(self, code: ErrorCode, message: str, **kwargs: Any) -> ErrorMessage:
        return self.report(code, message, severity=ErrorSeverity.ERROR, **kwargs)

    def extend(self, messages: List[ErrorMessage]) -> None:
        self._messages.extend(messages)

    @property
    def messages(self) -> List[ErrorMessage]:
        return list(self._messages)

    def has_errors(self) -> bool:
        return any(m.severity is not None and m.severity.is_error() for m in self._messages)

    def __iter__(self) -> Iterator[ErrorMessage]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)
