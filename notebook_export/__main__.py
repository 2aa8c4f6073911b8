"""CLI entry point for incremental notebook exports.

Usage:
    python -m notebook_export run ./work_notebooks.yaml
    python -m notebook_export run ./work_notebooks.yaml --full
    python -m notebook_export state show --root ./export
    python -m notebook_export state forget 0-8F4B6A --root ./export
    python -m notebook_export state reset --root ./export

The export root defaults to $NOTEBOOK_EXPORT_ROOT (a .env file in the
current directory is honoured).
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from notebook_export.lib.config_loader import load_run_config
from notebook_export.lib.env import EXPORT_ROOT_ENV, get_export_root, load_env_file
from notebook_export.lib.errors import ExportError
from notebook_export.lib.observability import setup_logging
from notebook_export.lib.runner import run_incremental_export
from notebook_export.lib.service import load_export_service
from notebook_export.lib.state import ExportStateStore, format_timestamp

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _resolve_root(args: argparse.Namespace) -> Optional[str]:
    root = get_export_root(args.root)
    if root is None:
        print(
            f"ERROR: No export root given. Use --root or set {EXPORT_ROOT_ENV}.",
            file=sys.stderr,
        )
    return root


def run_command(args: argparse.Namespace) -> int:
    """Run an incremental export from a YAML config."""
    try:
        config = load_run_config(args.config)
        service = load_export_service(config.service_class, config.service_options)
    except ExportError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_FAILED

    result = run_incremental_export(
        service,
        config.notebooks,
        config.export_root,
        state_dir=config.state_dir,
        section_name_filter=config.section_name_filter,
        page_name_filter=config.page_name_filter,
        preserve_existing=config.preserve_existing,
        full_export=config.full_export or args.full,
        retry_config=config.retry,
    )

    summary = result.summary()
    print()
    print("=" * 60)
    print(f"EXPORT SUMMARY ({summary['export_format']})")
    print("=" * 60)
    print(f"  Exported:     {summary['exported']}")
    print(f"  Failed:       {summary['failed']}")
    print(f"  Skipped:      {summary['skipped']}")
    print(f"  Pages:        {summary['pages_exported']}")
    print(f"  State saved:  {'yes' if summary['state_saved'] else 'no'}")
    print(f"  Elapsed:      {summary['elapsed_seconds']}s")
    for notebook_id, reason in result.failed.items():
        print(f"  FAILED {notebook_id}: {reason}")
    print("=" * 60)

    return EXIT_OK if result.success else EXIT_FAILED


def state_show_command(args: argparse.Namespace) -> int:
    """Print the tracked notebooks and their last export time."""
    root = _resolve_root(args)
    if root is None:
        return EXIT_USAGE

    store = ExportStateStore.load(root)
    entries = store.to_dict()

    if args.json:
        print(json.dumps(entries, indent=2, sort_keys=True))
        return EXIT_OK

    if not entries:
        print(f"No export state recorded in {store.path}")
        return EXIT_OK

    width = max(max(len(k) for k in entries), len("Notebook"))
    print(f"Export state: {store.path}")
    print()
    print(f"  {'Notebook':<{width}}  Last export (UTC)")
    print(f"  {'-' * width}  {'-' * 27}")
    for notebook_id in sorted(entries):
        print(f"  {notebook_id:<{width}}  {entries[notebook_id]}")
    return EXIT_OK


def state_forget_command(args: argparse.Namespace) -> int:
    """Forget one notebook so its next export is a full one."""
    root = _resolve_root(args)
    if root is None:
        return EXIT_USAGE

    store = ExportStateStore.load(root)
    last = store.get_last_export(args.notebook_id)
    if not store.remove_last_export(args.notebook_id):
        print(f"Notebook {args.notebook_id} has no recorded export")
        return EXIT_OK

    if not store.save():
        print(f"ERROR: Could not write {store.path}", file=sys.stderr)
        return EXIT_FAILED

    print(f"Forgot {args.notebook_id} (last export {format_timestamp(last)})")
    return EXIT_OK


def state_reset_command(args: argparse.Namespace) -> int:
    """Forget every notebook."""
    root = _resolve_root(args)
    if root is None:
        return EXIT_USAGE

    store = ExportStateStore.load(root)
    removed = store.clear()
    if removed and not store.save():
        print(f"ERROR: Could not write {store.path}", file=sys.stderr)
        return EXIT_FAILED

    print(f"Cleared {removed} notebook(s) from {store.path}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notebook-export",
        description="Incremental notebook exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Export notebooks changed since the last run
    notebook-export run ./work_notebooks.yaml

    # Ignore recorded state and export everything
    notebook-export run ./work_notebooks.yaml --full

    # Inspect recorded export times
    notebook-export state show --root ./export

    # Force a full export of one notebook next run
    notebook-export state forget 0-8F4B6A --root ./export
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--json-log",
        action="store_true",
        help="Output logs in JSON format (for log aggregation systems)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to a file in addition to console",
    )

    commands = parser.add_subparsers(dest="command")

    run_parser = commands.add_parser("run", help="Run an incremental export")
    run_parser.add_argument("config", help="Path to the YAML run configuration")
    run_parser.add_argument(
        "--full",
        action="store_true",
        help="Ignore recorded export times and export everything",
    )
    run_parser.set_defaults(handler=run_command)

    state_parser = commands.add_parser("state", help="Inspect or edit recorded export state")
    state_commands = state_parser.add_subparsers(dest="state_command")

    root_help = f"Export root holding the state file (default: ${EXPORT_ROOT_ENV})"

    show_parser = state_commands.add_parser("show", help="List recorded export times")
    show_parser.add_argument("--root", help=root_help)
    show_parser.add_argument("--json", action="store_true", help="Print raw JSON")
    show_parser.set_defaults(handler=state_show_command)

    forget_parser = state_commands.add_parser("forget", help="Forget one notebook")
    forget_parser.add_argument("notebook_id", help="Notebook id to forget")
    forget_parser.add_argument("--root", help=root_help)
    forget_parser.set_defaults(handler=state_forget_command)

    reset_parser = state_commands.add_parser("reset", help="Forget every notebook")
    reset_parser.add_argument("--root", help=root_help)
    reset_parser.set_defaults(handler=state_reset_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return EXIT_USAGE

    load_env_file()
    setup_logging(verbose=args.verbose, json_format=args.json_log, log_file=args.log_file)
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
