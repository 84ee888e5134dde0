# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Model Slim CLI: slim and rules commands.

Usage:
    python -m modelslim.cli slim INPUT [-o OUTPUT] [--config FILE] [toggles] [--compact | --indent] [--crlf] [--dry-run]
    python -m modelslim.cli rules [--config FILE] [toggles]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# (flag, option field, argparse action, help). store_false flags turn a default-on toggle off.
_TOGGLE_FLAGS: tuple[tuple[str, str, str, str], ...] = (
    ("--keep-annotations", "remove_annotations", "store_false", "Keep annotations and extended properties"),
    ("--keep-lineage", "remove_lineage", "store_false", "Keep lineageTag / sourceLineageTag"),
    ("--keep-language-data", "remove_language_data", "store_false", "Keep cultures and linguistic metadata"),
    ("--keep-column-defaults", "remove_column_defaults", "store_false", "Keep summarizeBy=none and similar defaults"),
    ("--keep-inferred", "remove_inferred_metadata", "store_false", "Keep isNameInferred / changedProperties"),
    ("--remove-presentation", "remove_presentation", "store_true", "Remove displayFolder / queryGroup metadata"),
    ("--keep-redundant-names", "collapse_redundant_names", "store_false", "Keep sourceColumn equal to name"),
    ("--keep-empty", "prune_empty", "store_false", "Keep empty objects, arrays and blank strings"),
    ("--keep-format-strings", "remove_format_strings", "store_false", "Keep formatString literals"),
)


def _add_option_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, metavar="FILE", help="YAML option file")
    toggles = parser.add_argument_group("removal toggles")
    for flag, dest, action, help_text in _TOGGLE_FLAGS:
        toggles.add_argument(flag, dest=dest, action=action, default=None, help=help_text)


def _resolve_options(args: argparse.Namespace):
    """Defaults → ``--config`` file → CLI flags."""
    from .config import SlimOptions, load_options

    options = load_options(args.config) if args.config else SlimOptions()
    overrides = {dest: getattr(args, dest, None) for _, dest, _, _ in _TOGGLE_FLAGS}
    if getattr(args, "compact", False):
        overrides["compact_output"] = True
    elif getattr(args, "indent", False):
        overrides["compact_output"] = False
    if getattr(args, "crlf", False):
        overrides["line_terminator"] = "\r\n"
    return options.with_overrides(**overrides)


def cmd_slim(args: argparse.Namespace) -> None:
    """Slim a model.bim file or a TMDL definition folder."""
    from ._progress import format_elapsed, print_step, status_spinner
    from .capabilities import AtomicFileWriter, ConsoleNotifier, FileSystemReader, StaticSelector
    from .slimming.pipeline import run

    options = _resolve_options(args)
    selector = StaticSelector(args.input, args.output)

    with status_spinner(f"Slimming {args.input}..."):
        result = run(
            selector,
            FileSystemReader(),
            AtomicFileWriter(),
            ConsoleNotifier(),
            options,
            dry_run=args.dry_run,
        )
    print_step(f"Elapsed: {format_elapsed(result.elapsed_ms)}")

    if args.report_json:
        report_path = Path(args.report_json)
        payload = {
            "source": result.source,
            "mode": str(result.mode),
            "destination": result.destination,
            "elapsed_ms": round(result.elapsed_ms, 1),
            "options": options.model_dump(),
            "stats": result.stats.to_dict(),
        }
        report_path.parent.mkdir(parents=True, exist_ok=True)
        report_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        print(f"Report saved to {report_path}", file=sys.stderr)


def cmd_rules(args: argparse.Namespace) -> None:
    """List the rules active under the resolved options."""
    from tabulate import tabulate

    from .rules import configure

    rules = configure(_resolve_options(args))
    rows = [(r.id, str(r.category), "tree", r.kind.name.lower(), "") for r in rules.tree_rules]
    rows += [
        (r.id, str(r.category), "line", "block" if r.block_starting else "line", r.pattern.pattern)
        for r in rules.line_rules
    ]
    if not rows and not rules.language_data_prefixes:
        print("No rules active.")
        return
    print(tabulate(rows, headers=["Rule", "Category", "Mode", "Kind", "Pattern"], tablefmt="simple"))
    if rules.language_data_prefixes:
        print(f"\nSkipped document prefixes: {', '.join(rules.language_data_prefixes)}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Strip engine/UI metadata from semantic model definitions",
        prog="modelslim",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--log-json", action="store_true", help="Emit log records as JSON lines")
    subparsers = parser.add_subparsers(dest="command", required=True)

    _slim_epilog = """\
examples:
  %(prog)s model.bim                          Writes model.slim.bim next to the input
  %(prog)s model.bim -o out.bim --compact     Compact JSON output
  %(prog)s model.bim --indent                 Indented JSON whatever the input layout
  %(prog)s definition/ -o model.tmdl          Concatenate a TMDL folder
  %(prog)s definition/ --dry-run              Report only, write nothing
"""
    p_slim = subparsers.add_parser(
        "slim",
        help="Slim a model.bim file or TMDL folder",
        epilog=_slim_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_slim.add_argument("input", type=str, metavar="INPUT", help="model.bim / .json file or TMDL folder")
    p_slim.add_argument("-o", "--output", type=str, metavar="PATH", help="Artifact path (default: <input>.slim.*)")
    layout = p_slim.add_mutually_exclusive_group()
    layout.add_argument("--compact", action="store_true", help="Compact JSON output (tree mode)")
    layout.add_argument("--indent", action="store_true", help="Indented JSON output (tree mode)")
    p_slim.add_argument("--crlf", action="store_true", help="Join TMDL output with CRLF")
    p_slim.add_argument("--dry-run", action="store_true", help="Report without writing the artifact")
    p_slim.add_argument("--report-json", type=str, metavar="PATH", help="Also save the stats as JSON")
    _add_option_arguments(p_slim)

    p_rules = subparsers.add_parser("rules", help="List the active removal rules")
    _add_option_arguments(p_rules)

    commands = {"slim": cmd_slim, "rules": cmd_rules}

    args = parser.parse_args(argv)

    from .errors import ConfigError, ModelSlimError
    from .logging_config import configure

    configure(json_output=args.log_json, level="DEBUG" if args.verbose else "INFO")

    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ModelSlimError:
        # Already reported through the notifier.
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        logging.getLogger(__name__).debug("unexpected failure", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
