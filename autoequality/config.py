"""Generator configuration (defaults, JSON loading, validation)."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping

from autoequality.errors import ConfigError

__all__ = ["HashingMode", "GeneratorConfig", "load_config"]


class HashingMode(Enum):
    """Which ``GetHashCode`` code path to emit."""

    AUTO = "auto"                # follow the capability probe
    COMBINATOR = "combinator"    # always HashCode.Combine
    MANUAL = "manual"            # always the 17/23 running hash


@dataclass
class GeneratorConfig:
    """Tuning knobs for one generator session."""

    hashing_mode: HashingMode = HashingMode.AUTO
    namespace_placeholder: str = "global"
    indent: str = "    "
    emit_header: bool = True
    hash_combinator_arity: int = 8

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not self.namespace_placeholder or not self.namespace_placeholder.isidentifier():
            warnings.append("namespace_placeholder must be a non-empty identifier")
        if self.indent.strip(" \t"):
            warnings.append("indent must contain only spaces or tabs")
        if not self.indent:
            warnings.append("indent must not be empty")
        if self.hash_combinator_arity < 0:
            warnings.append("hash_combinator_arity must be non-negative")
        return warnings

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GeneratorConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown configuration key(s): {', '.join(unknown)}")

        kwargs: Dict[str, Any] = dict(data)
        if "hashing_mode" in kwargs:
            try:
                kwargs["hashing_mode"] = HashingMode(str(kwargs["hashing_mode"]).lower())
            except ValueError as exc:
                choices = ", ".join(m.value for m in HashingMode)
                raise ConfigError(
                    f"hashing_mode must be one of {choices}, got {kwargs['hashing_mode']!r}"
                ) from exc
        if "hash_combinator_arity" in kwargs and not isinstance(kwargs["hash_combinator_arity"], int):
            raise ConfigError("hash_combinator_arity must be an integer")
        if "emit_header" in kwargs and not isinstance(kwargs["emit_header"], bool):
            raise ConfigError("emit_header must be a boolean")

        config = cls(**kwargs)
        problems = config.validate()
        if problems:
            raise ConfigError("; ".join(problems))
        return config


def load_config(path: Path) -> GeneratorConfig:
    """Load a JSON configuration file; a missing file yields the defaults."""
    path = path.expanduser()
    if not path.exists():
        return GeneratorConfig()

    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return GeneratorConfig()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a JSON object at the root")
    return GeneratorConfig.from_mapping(data)
