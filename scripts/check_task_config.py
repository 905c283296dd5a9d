"""Validate a task configuration file and print its resolved steps.

This helper is local/offline and intended for quick validation in CI.

Checks:
- the file validates against task_config.schema.json
- every command string compiles (no unsupported shell operators)
- every composite reference resolves and no reference cycle exists
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate a task configuration file")
    parser.add_argument("config", nargs="?", help="Path to package-scripts.json (default: discover)")
    parser.add_argument(
        "--resolve",
        action="append",
        default=[],
        help="Also resolve this invocation and print its steps (repeatable)",
    )

    args = parser.parse_args()

    # Allow running this script directly without requiring installation.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    from taskalias.errors import TaskConfigError, UnknownTaskError
    from taskalias.loader import load_registry

    try:
        loaded = load_registry(args.config)
    except TaskConfigError as e:
        print(str(e))
        return 2

    print(f"config: {loaded.path}")
    print(f"base_dir: {loaded.base_dir}")
    print(f"tasks: {', '.join(loaded.registry.names())}")

    for invocation in args.resolve:
        try:
            request = loaded.registry.resolve(invocation)
        except UnknownTaskError as e:
            print(str(e))
            return 2
        print(f"\n{invocation}:")
        for step in request:
            print(f"  {step.index}. {step.name}: {step.command.display()}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
