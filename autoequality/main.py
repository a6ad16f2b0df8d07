#!/usr/bin/env python3
"""autoequality/main.py — CLI entry-point for the equality generator.

Usage examples
--------------
    # Emit IEquatable<T> implementations for every [AutoEquality] type
    python -m autoequality generate Models/*.cs -o obj/generated

    # Force the manual 17/23 hash path regardless of the runtime
    python -m autoequality generate Models/*.cs --hashing manual

    # Print the annotation declarations the generated code relies on
    python -m autoequality attributes -o AutoEqualityAttribute.g.cs

    # Show how each member of each annotated type will be compared
    python -m autoequality describe Models/Pair.cs --format json

Exit codes
----------
    0   Success.
    1   A declaration did not parse or a unit could not be emitted.
    2   Infrastructure failure (missing file, bad configuration, etc.).

The module doubles as ``python -m autoequality`` via the companion
``autoequality/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from autoequality import __version__
from autoequality.config import GeneratorConfig, HashingMode, load_config
from autoequality.errors import (
    AutoEqualityError,
    ConfigError,
    ErrorMessage,
    ErrorReporter,
    FrontEndSyntaxError,
)
from autoequality.frontend import load_compilation, read_sources
from autoequality.generator import AutoEqualityGenerator
from autoequality.symbols import Compilation

_log = logging.getLogger("autoequality")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``autoequality`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("autoequality")
    root.setLevel(level)
    if any(getattr(h, "_autoequality_cli", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler._autoequality_cli = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _emit_diagnostics(diagnostics: Sequence[ErrorMessage], stream: TextIO) -> int:
    """Write *diagnostics* GCC-style to *stream*; return the error count."""
    error_count = 0
    for diag in diagnostics:
        if diag.severity is not None and diag.severity.is_error():
            error_count += 1
        stream.write(diag.to_gcc_format() + "\n")
    return error_count


def _build_config(args: argparse.Namespace) -> GeneratorConfig:
    """Load ``--config`` (if any), then apply command-line overrides."""
    if args.config:
        config = load_config(_resolve_path(args.config, "configuration file"))
    else:
        config = GeneratorConfig()
    if args.hashing is not None:
        config.hashing_mode = HashingMode(args.hashing)
    if args.combinator_arity is not None:
        config.hash_combinator_arity = args.combinator_arity
    problems = config.validate()
    if problems:
        raise ConfigError("; ".join(problems))
    return config


def _load(args: argparse.Namespace, config: GeneratorConfig, reporter: ErrorReporter) -> Compilation:
    paths = [_resolve_path(raw, "source file") for raw in args.sources]
    return load_compilation(
        read_sources(paths),
        hash_combinator_arity=config.hash_combinator_arity,
        reporter=reporter,
    )


# ===========================================================================
# Sub-commands
# ===========================================================================

# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

def cmd_generate(args: argparse.Namespace) -> int:
    """Emit one ``.g.cs`` file per annotated type into ``--output``."""
    config = _build_config(args)
    reporter = ErrorReporter()
    try:
        compilation = _load(args, config, reporter)
    except FrontEndSyntaxError as exc:
        sys.stderr.write(exc.to_gcc_format() + "\n")
        return EXIT_ERROR

    generator = AutoEqualityGenerator(config)
    result = generator.run(compilation)

    out_dir = Path(args.output).expanduser().resolve()
    out_dir.mkdir(parents=True, exist_ok=True)
    units = list(result.sources)
    if not args.no_attributes:
        units.insert(0, generator.post_initialization_source())
    for unit in units:
        (out_dir / unit.hint_name).write_text(unit.text, encoding="utf-8")
        _log.info("wrote %s", unit.hint_name)

    error_count = _emit_diagnostics(reporter.messages + result.diagnostics, sys.stderr)
    _log.info("%d file(s) written to %s", len(units), out_dir)
    return EXIT_ERROR if error_count or result.failures else EXIT_OK


# ---------------------------------------------------------------------------
# attributes
# ---------------------------------------------------------------------------

def cmd_attributes(args: argparse.Namespace) -> int:
    """Print the once-per-build annotation declarations."""
    generator = AutoEqualityGenerator(_build_config(args))
    out = _open_output(args.output)
    try:
        out.write(generator.post_initialization_source().text)
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ---------------------------------------------------------------------------
# describe
# ---------------------------------------------------------------------------

def _describe_text(descriptors: List[dict]) -> str:
    lines: List[str] = []
    for data in descriptors:
        name = data["name"]
        if data["type_parameters"]:
            name += "<" + ", ".join(data["type_parameters"]) + ">"
        qualified = f"{data['namespace']}.{name}" if data["namespace"] else name
        keyword = "class" if data["is_reference_type"] else "struct"
        hashing = "combinator" if data["hashing_mode_available"] else "manual"
        lines.append(f"{qualified} ({keyword}, {hashing} hashing)")
        if not data["members"]:
            lines.append("  (no data members)")
        width = max((len(m["name"]) for m in data["members"]), default=0)
        for member in data["members"]:
            type_name = member["type_full_name"] or "?"
            lines.append(f"  {member['name']:<{width}}  {member['strategy']:<26}  {type_name}")
    return "\n".join(lines) + ("\n" if lines else "")


def cmd_describe(args: argparse.Namespace) -> int:
    """Resolve annotated types and print their descriptors."""
    config = _build_config(args)
    reporter = ErrorReporter()
    try:
        compilation = _load(args, config, reporter)
    except FrontEndSyntaxError as exc:
        sys.stderr.write(exc.to_gcc_format() + "\n")
        return EXIT_ERROR

    generator = AutoEqualityGenerator(config)
    descriptors = [d.to_dict() for d in generator.descriptors(compilation, reporter=reporter)]

    out = _open_output(args.output)
    try:
        if args.format == "json":
            out.write(json.dumps(descriptors, indent=2) + "\n")
        else:
            out.write(_describe_text(descriptors))
    finally:
        if out is not sys.stdout:
            out.close()

    error_count = _emit_diagnostics(reporter.messages, sys.stderr)
    return EXIT_ERROR if error_count else EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="autoequality",
        description=(
            "Generate IEquatable<T> implementations for C# types annotated\n"
            "with [AutoEquality]."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              autoequality generate Models/*.cs -o obj/generated
              autoequality describe Models/Pair.cs --format json
              autoequality attributes -o AutoEqualityAttribute.g.cs
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_generator_args(p: argparse.ArgumentParser) -> None:
        g = p.add_argument_group("generator tuning")
        g.add_argument(
            "--config",
            default=None,
            metavar="FILE",
            help="JSON configuration file (default: built-in defaults).",
        )
        g.add_argument(
            "--hashing",
            choices=[m.value for m in HashingMode],
            default=None,
            help="GetHashCode code path (default: auto, follow the runtime).",
        )
        g.add_argument(
            "--combinator-arity",
            type=int,
            default=None,
            metavar="N",
            help="Largest HashCode.Combine overload of the target runtime (default: 8).",
        )

    # --- generate ----------------------------------------------------------
    p_generate = subparsers.add_parser(
        "generate",
        help="Emit equality units for annotated types.",
        description="Parse C# sources and write one .g.cs unit per [AutoEquality] type.",
    )
    p_generate.add_argument("sources", nargs="+", metavar="FILE", help="C# source files.")
    p_generate.add_argument(
        "-o", "--output",
        default="generated",
        metavar="DIR",
        help="Directory for generated units (default: ./generated).",
    )
    p_generate.add_argument(
        "--no-attributes",
        action="store_true",
        help="Do not write the AutoEqualityAttribute.g.cs unit.",
    )
    _add_generator_args(p_generate)
    p_generate.set_defaults(func=cmd_generate)

    # --- attributes --------------------------------------------------------
    p_attributes = subparsers.add_parser(
        "attributes",
        help="Print the annotation declarations.",
    )
    p_attributes.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    _add_generator_args(p_attributes)
    p_attributes.set_defaults(func=cmd_attributes)

    # --- describe ----------------------------------------------------------
    p_describe = subparsers.add_parser(
        "describe",
        help="Show the resolved equality strategy of every member.",
    )
    p_describe.add_argument("sources", nargs="+", metavar="FILE", help="C# source files.")
    p_describe.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    p_describe.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    _add_generator_args(p_describe)
    p_describe.set_defaults(func=cmd_describe)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the autoequality CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except ConfigError as exc:
        _log.error("%s", exc.error_message.message)
        return EXIT_INFRA
    except OSError as exc:
        _log.error("I/O error: %s", exc)
        return EXIT_INFRA
    except AutoEqualityError as exc:
        _log.error("%s", exc)
        return EXIT_ERROR
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
