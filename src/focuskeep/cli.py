# src/focuskeep/cli.py

"""
Command-line interface for focuskeep.

This module:
- defines argument parsing and subcommands,
- resolves storage configuration,
- delegates persistence and checks to engine modules.

Commands stay small; anything reusable lives in the engine.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from focuskeep.config import ConfigError, StorageConfig
from focuskeep.engine.integrity import check_integrity
from focuskeep.engine.snapshot import DailySnapshots
from focuskeep.engine.store import StateStore


# ---------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------

def _add_storage_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-d",
        "--data-dir",
        type=str,
        help="Data directory (default: $DATA_DIR or ./data)",
    )
    p.add_argument(
        "-c",
        "--config",
        type=str,
        help="YAML config file (overrides --data-dir)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="focuskeep")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ------------------------------------------------------------------
    # Read-only commands
    # ------------------------------------------------------------------

    p_info = sub.add_parser(
        "info",
        help="Show data file location, age and entity counts",
    )
    _add_storage_args(p_info)
    p_info.set_defaults(func=cmd_info)

    p_check = sub.add_parser(
        "check",
        help="Check the data file for invalid values",
    )
    p_check.add_argument(
        "--fix",
        action="store_true",
        help="Write the repaired state back",
    )
    _add_storage_args(p_check)
    p_check.set_defaults(func=cmd_check)

    p_export = sub.add_parser(
        "export",
        help="Print the raw data document",
    )
    p_export.add_argument(
        "-o",
        "--output",
        type=str,
        help="Write to this file instead of stdout",
    )
    _add_storage_args(p_export)
    p_export.set_defaults(func=cmd_export)

    p_snapshots = sub.add_parser(
        "snapshots",
        help="List daily snapshots",
    )
    _add_storage_args(p_snapshots)
    p_snapshots.set_defaults(func=cmd_snapshots)

    # ------------------------------------------------------------------
    # Mutating commands
    # ------------------------------------------------------------------

    p_import = sub.add_parser(
        "import",
        help="Replace the data file with a document",
    )
    p_import.add_argument(
        "file",
        type=str,
        help="Markdown data document to import",
    )
    _add_storage_args(p_import)
    p_import.set_defaults(func=cmd_import)

    return parser


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------

def cmd_info(args: argparse.Namespace) -> int:
    store = StateStore(_resolve_config(args))

    async def run() -> int:
        modified = await store.timestamp()
        print(f"file:     {store.path}")
        if modified is None:
            print("modified: never")
            return 0

        print(f"modified: {modified.isoformat()}")
        state = await store.load()
        if state is None:
            print("error: data file is not readable", file=sys.stderr)
            return 1

        for name, count in state.counts().items():
            print(f"{name + ':':<13} {count}")
        return 0

    return asyncio.run(run())


def cmd_check(args: argparse.Namespace) -> int:
    store = StateStore(_resolve_config(args))

    async def run() -> int:
        report = await check_integrity(store)
        if report.ok:
            print("OK")
            return 0

        for issue in report.issues:
            print(f"  - {issue}")

        if report.state is None:
            return 1

        if not args.fix:
            print(f"{len(report.fixed)} issue(s) can be fixed with --fix")
            return 1

        for fix in report.fixed:
            print(f"  fixed: {fix}")

        if report.fixed and not await store.save(report.state):
            print("error: could not write repaired data", file=sys.stderr)
            return 1

        return 1 if report.unfixed else 0

    return asyncio.run(run())


def cmd_export(args: argparse.Namespace) -> int:
    store = StateStore(_resolve_config(args))
    text = asyncio.run(store.read_text())
    if text is None:
        print(f"error: no data file at {store.path}", file=sys.stderr)
        return 1

    if args.output:
        out = Path(args.output)
        try:
            out.write_text(text, encoding="utf-8")
        except OSError as e:
            print(f"error: cannot write {out}: {e}", file=sys.stderr)
            return 1
    else:
        sys.stdout.write(text)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    src = Path(args.file)
    try:
        text = src.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"error: cannot read {src}: {e}", file=sys.stderr)
        return 1

    store = StateStore(_resolve_config(args))
    if not asyncio.run(store.import_text(text)):
        print(f"error: import of {src} failed", file=sys.stderr)
        return 1

    print(f"Imported {src} -> {store.path}")
    return 0


def cmd_snapshots(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    paths = DailySnapshots(config.backup_dir).list()
    if not paths:
        print("No snapshots")
        return 0

    for p in paths:
        print(p)
    return 0


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _resolve_config(args: argparse.Namespace) -> StorageConfig:
    """
    Pick the storage config.

    Order: --config, then --data-dir, then the environment.
    """
    if getattr(args, "config", None):
        return StorageConfig.from_yaml(args.config)
    if getattr(args, "data_dir", None):
        return StorageConfig(data_dir=Path(args.data_dir))
    return StorageConfig.from_env()


# ---------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 2

    try:
        return func(args)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
