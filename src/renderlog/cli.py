"""
renderlog command line: replay recorded lifecycle events through a kernel.

Usage:
    renderlog replay events.jsonl                       # JSON export to stdout
    renderlog replay events.jsonl --format csv -o out.csv
    renderlog replay events.jsonl --compact --chain     # compact JSON, then the render chain
    renderlog config [--config renderlog.toml]          # show resolved kernel options

Each line of an events file is one JSON object with a "kind" field and the
payload of that kind (see renderlog.kernel.schema).
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from .config import load_config
from .kernel.engine import Kernel, create_kernel
from .kernel.errors import ConfigError
from .kernel.schema import KernelEvent, parse_event
from .log_config import configure_logging
from .plugins import FileExporter, RenderChain, core_plugins


# =============================================================================
# Event input
# =============================================================================


def read_events(path: Path) -> Tuple[List[KernelEvent], List[str]]:
    """
    Parse a JSON-lines events file.

    Returns:
        (events, problems): the valid events in file order, and one message
        per line that could not be decoded or parsed. Blank lines are skipped.
    """
    events: List[KernelEvent] = []
    problems: List[str] = []
    with open(path, "rb") as f:
        for number, raw in enumerate(f, start=1):
            if not raw.strip():
                continue
            try:
                data = json.loads(raw.decode("utf-8"))
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                events.append(parse_event(data))
            except (ValueError, ValidationError) as e:
                problems.append(f"line {number}: {e}")
    return events, problems


def build_replay_kernel(args: argparse.Namespace) -> Tuple[Kernel, RenderChain, FileExporter]:
    options = load_config(args.config)
    chain = RenderChain()
    exporter = FileExporter(pretty=not args.compact)
    plugins = [chain, exporter]
    if args.core_plugins:
        plugins = core_plugins() + plugins
    return create_kernel(options, plugins=plugins), chain, exporter


# =============================================================================
# Commands
# =============================================================================


def cmd_replay(args: argparse.Namespace) -> int:
    """Replay an events file and print or write the export."""
    events_path = Path(args.events)
    if not events_path.is_file():
        print(f"✗ Events file not found: {events_path}", file=sys.stderr)
        return 1

    try:
        events, problems = read_events(events_path)
        kernel, chain, exporter = build_replay_kernel(args)
    except ConfigError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    for problem in problems:
        print(f"✗ {problem}", file=sys.stderr)

    with kernel:
        for event in events:
            kernel.emit(event)

        if args.output:
            if args.format == "csv":
                written = exporter.export_csv(args.output)
            else:
                written = exporter.export_json(args.output)
            print(f"✓ Exported {len(kernel.get_logs().entries)} logs to {written}", file=sys.stderr)
        elif args.format == "csv":
            sys.stdout.write(exporter.to_csv())
        else:
            print(exporter.to_json())

        if args.chain:
            print(chain.visualize_chain())

    return 1 if problems else 0


def cmd_config(args: argparse.Namespace) -> int:
    """Print the resolved kernel options."""
    try:
        options = load_config(args.config)
    except ConfigError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    print(json.dumps(options.model_dump(mode="json"), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="renderlog",
        description="renderlog - component lifecycle event kernel",
    )
    parser.add_argument(
        "--log-level", default="WARNING",
        help="Diagnostic log level on stderr (default: WARNING)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # replay command
    replay_parser = subparsers.add_parser("replay", help="Replay a JSON-lines events file")
    replay_parser.add_argument("events", help="Path to the events file")
    replay_parser.add_argument("--config", "-c", help="Config file (renderlog.toml or pyproject.toml)")
    replay_parser.add_argument(
        "--format", "-f", choices=["json", "csv"], default="json",
        help="Export format (default: json)"
    )
    replay_parser.add_argument("--compact", action="store_true", help="Compact JSON output")
    replay_parser.add_argument("--output", "-o", help="Write the export to this file")
    replay_parser.add_argument("--chain", action="store_true", help="Print the render chain")
    replay_parser.add_argument(
        "--core-plugins", action="store_true",
        help="Also install the core tracker plugins"
    )

    # config command
    config_parser = subparsers.add_parser("config", help="Show resolved kernel options")
    config_parser.add_argument("--config", "-c", help="Config file (renderlog.toml or pyproject.toml)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "replay":
        return cmd_replay(args)
    elif args.command == "config":
        return cmd_config(args)

    return 1


if __name__ == "__main__":
    sys.exit(main())
