"""Append lines from stdin (or ``--message``) to a file sink."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

from filesink.config.schema import SinkOptions
from filesink.config.store import load_env_file, load_logging_settings, options_from_env
from filesink.levels import accept, normalize_level
from filesink.sinks import FileSink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filesink",
        description="Write log lines to a date-templated, rotation-aware file.",
    )
    parser.add_argument("--config", type=Path, help="logging.yaml with named backends")
    parser.add_argument("--backend", help="backend name inside --config (default: first one)")
    parser.add_argument("--env-file", type=Path, help="dotenv file with FILESINK_* options")
    parser.add_argument("--path", help="path template, e.g. logs/app_$date.log")
    parser.add_argument("--level", help="minimum level accepted by the sink")
    parser.add_argument("--format", dest="fmt", help="output format (use \\n for newlines)")
    parser.add_argument("--metadata", help="comma separated metadata keys to emit")
    parser.add_argument("--event-level", default="info", help="level of the written events")
    parser.add_argument("-m", "--message", action="append", help="message to write (repeatable)")
    return parser


def resolve_options(args: argparse.Namespace) -> tuple[str, SinkOptions]:
    """Pick the base options (config file or environment) and apply CLI flags."""

    if args.config is not None:
        settings = load_logging_settings(args.config)
        if not settings.backends:
            raise ValueError(f"{args.config} does not define any backend")
        name = args.backend or next(iter(settings.backends))
        if name not in settings.backends:
            raise ValueError(f"backend '{name}' not found in {args.config}")
        options = settings.backends[name]
    else:
        env: Dict[str, str] = dict(os.environ)
        if args.env_file is not None:
            env.update(load_env_file(args.env_file))
        name = args.backend or "cli"
        options = options_from_env(env)

    overrides: Dict[str, object] = {}
    if args.path is not None:
        overrides["path"] = args.path
    if args.level is not None:
        overrides["level"] = args.level
    if args.fmt is not None:
        overrides["format"] = args.fmt.replace("\\n", "\n")
    if args.metadata is not None:
        overrides["metadata"] = args.metadata
    return name, options.merge(overrides) if overrides else options


def _messages(args: argparse.Namespace, stdin: Iterable[str]) -> Iterable[str]:
    if args.message:
        yield from args.message
        return
    for line in stdin:
        yield line.rstrip("\n")


def main(argv: Optional[Sequence[str]] = None, stdin: Optional[Iterable[str]] = None) -> int:
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        name, options = resolve_options(args)
        event_level = normalize_level(args.event_level)
        if event_level is None:
            raise ValueError("--event-level must not be empty")
    except (OSError, ValueError) as exc:
        parser.error(str(exc))

    sink = FileSink(options, name=name)
    if sink.current_path() is None:
        logger.warning("No path configured for '%s'; every line will be dropped.", name)

    written = 0
    total = 0
    accepted = 0
    try:
        for message in _messages(args, stdin if stdin is not None else sys.stdin):
            total += 1
            if accept(event_level, sink.options.level):
                accepted += 1
            if sink.handle_event(event_level, message, datetime.now(), {"pid": os.getpid()}):
                written += 1
    except KeyboardInterrupt:
        logger.info("Interrupted by the user.")
    finally:
        sink.close()

    logger.info("Wrote %d of %d line(s) to %s", written, total, sink.current_path())
    # Lines below the sink level do not count as failures.
    return 0 if written == accepted else 1
