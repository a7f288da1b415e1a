#!/usr/bin/env python3
"""missing_exports/main.py — CLI entry-point.

Usage examples
--------------
    # Resolve a model and print a per-module summary
    python -m missing_exports resolve model.json

    # Resolve and write the completed tree as JSON
    python -m missing_exports resolve model.json -f json -o out.json

    # Link to documented types only, never synthesise internals
    python -m missing_exports resolve model.json --no-missing-exports

    # List unresolved symbols per module without changing anything
    python -m missing_exports check model.json

Exit codes
----------
    0   Success.
    1   ``check`` found missing symbols.
    2   Infrastructure failure (missing file, bad model, bad option).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from missing_exports import __version__
from missing_exports.application import Application
from missing_exports.collector import discover_missing_exports
from missing_exports.errors import MissingExportsError
from missing_exports.loader import load_model_file
from missing_exports.models import ReflectionKind
from missing_exports.resolver import (
    OPTION_INTERNAL_NAMESPACE,
    OPTION_NO_MISSING_EXPORTS,
    load,
)
from missing_exports.serialization import project_to_dict, report_to_dict

_log = logging.getLogger("missing_exports")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_MISSING: int = 1
EXIT_INFRA: int = 2


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``missing_exports`` logger.

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

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("missing_exports")
    for old in list(root.handlers):
        root.removeHandler(old)
    root.setLevel(level)
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream (``None`` or ``"-"`` → stdout)."""
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _write(dest: Optional[str], text: str) -> None:
    stream = _open_output(dest)
    try:
        stream.write(text)
        if not text.endswith("\n"):
            stream.write("\n")
    finally:
        if stream is not sys.stdout:
            stream.close()


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2, sort_keys=False)


def _override(app: Application, name: str, value: Any) -> None:
    """Apply a command-line flag on top of the model file's options."""
    if app.options.is_set(name):
        _log.info(
            "command line overrides %s=%r from the model",
            name, app.options.get_value(name),
        )
    app.options.set_value(name, value)


def _prepare(args: argparse.Namespace):
    """Build the application, install the plugin and load the model."""
    app = Application()
    plugin = load(app)
    model = load_model_file(_resolve_path(args.model, "model"), app)
    if getattr(args, "internal_namespace", None) is not None:
        _override(app, OPTION_INTERNAL_NAMESPACE, args.internal_namespace)
    if getattr(args, "no_missing_exports", False):
        _override(app, OPTION_NO_MISSING_EXPORTS, True)
    return app, plugin, model


# ===========================================================================
# Subcommands
# ===========================================================================

def cmd_resolve(args: argparse.Namespace) -> int:
    app, plugin, model = _prepare(args)
    app.resolve(model.context)
    report = plugin.last_report

    if args.format == "json":
        _write(args.output, _dump(project_to_dict(model.project)))
    elif args.format == "report":
        _write(args.output, _dump(report_to_dict(report)))
    else:
        _write(args.output, report.summary())
    return EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    _, _, model = _prepare(args)
    project = model.project
    modules = project.get_children_by_kind(ReflectionKind.MODULE) or [project]

    lines = []
    found = 0
    for mod in modules:
        missing = discover_missing_exports(mod)
        found += len(missing)
        for symbol in missing:
            lines.append(f"{mod.name}: {symbol.name} ({symbol.kind.label})")

    _write(args.output, "\n".join(lines) if lines else "no missing exports")
    _log.info("%d missing symbol(s)", found)
    return EXIT_MISSING if found else EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="missing-exports",
        description="Resolve type references to undocumented symbols in a "
                    "documentation model.",
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
        help="Increase log verbosity (-v info, -vv debug).",
    )
    subparsers = parser.add_subparsers(title="commands", metavar="COMMAND")

    # --- resolve -----------------------------------------------------------
    p_resolve = subparsers.add_parser(
        "resolve",
        help="Resolve missing exports and print the result.",
        description="Load MODEL, run the resolution pass and emit a summary, "
                    "the resolution report, or the completed tree.",
    )
    p_resolve.add_argument("model", help="Path to a JSON model file.")
    p_resolve.add_argument(
        "--internal-namespace",
        default=None,
        metavar="NAME",
        help="Name of the namespace holding synthesized declarations "
             "(default: internal).",
    )
    p_resolve.add_argument(
        "--no-missing-exports",
        action="store_true",
        help="Only alias documented reflections; never synthesize.",
    )
    p_resolve.add_argument(
        "-f", "--format",
        choices=["summary", "report", "json"],
        default="summary",
        help="Output format (default: summary).",
    )
    p_resolve.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p_resolve.set_defaults(func=cmd_resolve)

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="List unresolved symbols without modifying the model.",
    )
    p_check.add_argument("model", help="Path to a JSON model file.")
    p_check.add_argument(
        "-o", "--output",
        default=None,
        metavar="FILE",
        help='Output file ("-" or omit for stdout).',
    )
    p_check.set_defaults(func=cmd_check)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return its exit code."""
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
    except MissingExportsError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
