"""Command line interface.

Usage:
    taskalias [--config PATH] [--log-level LEVEL] run <task[.sub]>... [--dry-run] [--timeout S] [--sanitize-env] [--record PATH]
    taskalias [--config PATH] list
    taskalias [--config PATH] check

Exit code behavior:
- 0 when every step succeeds.
- The first failing step's exit code otherwise.
- 2 for configuration, resolution and usage errors.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from taskalias import __version__
from taskalias.config import LOGGING, RUNNER
from taskalias.errors import TaskConfigError, UnknownTaskError
from taskalias.loader import LoadedConfig, load_registry
from taskalias.logging_setup import configure_logging
from taskalias.registry import TaskRegistry
from taskalias.runner import run_request, write_run_record


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskalias", description="Run named tasks from package-scripts.json")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to the task configuration file")
    parser.add_argument(
        "--log-level",
        default=LOGGING.LEVEL,
        choices=["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help=f"Log level (default: {LOGGING.LEVEL})",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one or more tasks in order")
    run.add_argument("tasks", nargs="+", help="Task names or task.sub-action paths")
    run.add_argument("--dry-run", action="store_true", help="Print the resolved steps without running them")
    run.add_argument(
        "--timeout",
        type=int,
        default=RUNNER.STEP_TIMEOUT,
        help="Per-step timeout in seconds (default: none)",
    )
    run.add_argument(
        "--sanitize-env",
        action="store_true",
        default=RUNNER.SANITIZE_ENV,
        help="Pass only an allowlist of environment variables to steps",
    )
    run.add_argument("--record", help="Write a JSON run record to this path")

    sub.add_parser("list", help="List tasks and sub-actions")
    sub.add_parser("check", help="Validate the task configuration")

    return parser


def _rows(registry: TaskRegistry) -> List[tuple]:
    rows = []
    for task in registry:
        name = task.name
        for path, action in task.iter_actions():
            description = action.description or (task.description if path == name else None)
            rows.append((path, escape(action.source), escape(description or "")))
        if task.default_action is None:
            rows.append((name, "(all sub-actions)", escape(task.description or "")))
    return rows


def cmd_list(loaded: LoadedConfig, console: Console) -> int:
    table = Table(title=f"Tasks in {loaded.path}")
    table.add_column("Task", style="cyan", no_wrap=True)
    table.add_column("Command", style="green")
    table.add_column("Description", style="dim")
    for row in sorted(_rows(loaded.registry)):
        table.add_row(*row)
    console.print(table)
    return 0


def cmd_check(loaded: LoadedConfig, console: Console) -> int:
    actions = sum(len(list(t.iter_actions())) for t in loaded.registry)
    console.print(f"config: {loaded.path}")
    console.print(f"tasks: {len(loaded.registry)}")
    console.print(f"actions: {actions}")
    console.print("status: ok")
    return 0


def cmd_run(loaded: LoadedConfig, args: argparse.Namespace, console: Console) -> int:
    invocation = " ".join(args.tasks)
    request = loaded.registry.resolve(invocation)

    if args.dry_run:
        for step in request:
            cwd = step.command.cwd or loaded.base_dir
            console.print(f"{step.index}. {step.name}: {escape(step.command.display())}  [dim](cwd: {escape(str(cwd))})[/dim]")
        return 0

    timeout = args.timeout if args.timeout and args.timeout > 0 else None
    result = run_request(
        request,
        base_dir=loaded.base_dir,
        timeout_seconds=timeout,
        sanitize_env=bool(args.sanitize_env),
    )

    if args.record:
        try:
            out = write_run_record(result, Path(args.record), invocation=request.invocation, config_path=loaded.path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write run record to {args.record}: {type(e).__name__}: {e}")
        else:
            logger.info(f"Run record written to {out}")

    if result.success:
        logger.info(f"{request.invocation}: {len(request)} step(s) succeeded")
    return result.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    console = Console()

    try:
        loaded = load_registry(args.config)
        if args.command == "list":
            return cmd_list(loaded, console)
        if args.command == "check":
            return cmd_check(loaded, console)
        return cmd_run(loaded, args, console)
    except (TaskConfigError, UnknownTaskError) as e:
        logger.error(str(e))
        return RUNNER.EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
