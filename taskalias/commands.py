"""
Command Parsing
===============
Compile configuration command strings into structured actions at load time.

Supported forms:
- ``bash build_release.sh``: one command
- ``cd .. && json2ts -i a -o b``: ``cd`` sets the working directory of later commands
- ``FOO=1 ts-node transform.ts``: leading assignments become the command's env
- ``a && b``: a chain, run in order and aborted on the first failure
- ``nps schema.create schema.hub``: a composite of other tasks

Every other shell operator is rejected. Strings are never handed to a shell.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import os
import re
import shlex
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from taskalias.config import RUNNER
from taskalias.errors import TaskConfigError
from taskalias.models import Action, Command, TaskRef


_OPERATOR_CHARS = frozenset("();<>|&")
_ASSIGNMENT_RE = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)=(?P<value>.*)$", re.DOTALL)


def tokenize(source: str) -> List[str]:
    """Split a command string using POSIX quoting, keeping operators as separate tokens."""

    lexer = shlex.shlex(source, posix=True, punctuation_chars=True)
    lexer.whitespace_split = True
    # "#" is literal inside a word; a word starting with it is rejected in split_segments
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise TaskConfigError(f"Cannot parse command {source!r}: {e}")


def _is_operator(token: str) -> bool:
    return bool(token) and all(c in _OPERATOR_CHARS for c in token)


def split_segments(source: str) -> List[List[str]]:
    """Split a command string into ``&&``-separated token lists."""

    segments: List[List[str]] = [[]]
    for token in tokenize(source):
        if token == "&&":
            segments.append([])
            continue
        if token.startswith("#"):
            raise TaskConfigError(f"Shell comments are not supported in command {source!r}")
        if _is_operator(token):
            raise TaskConfigError(f"Unsupported shell operator {token!r} in command {source!r}")
        segments[-1].append(token)

    if not segments[0] and len(segments) == 1:
        raise TaskConfigError("Command must not be empty")
    if any(not seg for seg in segments):
        raise TaskConfigError(f"Empty command around '&&' in {source!r}")
    return segments


def _split_assignments(tokens: List[str]) -> Tuple[Tuple[Tuple[str, str], ...], List[str]]:
    env: List[Tuple[str, str]] = []
    i = 0
    while i < len(tokens):
        m = _ASSIGNMENT_RE.match(tokens[i])
        if not m:
            break
        env.append((m.group("name"), m.group("value")))
        i += 1
    return tuple(env), tokens[i:]


def _change_dir(current: Optional[Path], target: str) -> Path:
    path = Path(target).expanduser()
    if not path.is_absolute() and current is not None:
        path = current / path
    return Path(os.path.normpath(path))


def _parse_composite(tokens: List[str], source: str) -> Tuple[TaskRef, ...]:
    args = tokens[1:]
    if args and args[0] == "run":
        args = args[1:]
    if not args:
        raise TaskConfigError(f"Composite command names no tasks: {source!r}")

    refs: List[TaskRef] = []
    for arg in args:
        if arg.startswith("-"):
            raise TaskConfigError(f"Options are not supported in composite commands: {source!r}")
        try:
            refs.append(TaskRef.parse(arg))
        except ValueError as e:
            raise TaskConfigError(f"{e} in composite command {source!r}")
    return tuple(refs)


def parse_action(
    source: str,
    *,
    base_dir: Optional[Path] = None,
    description: Optional[str] = None,
    self_names: Iterable[str] = RUNNER.SELF_NAMES,
) -> Action:
    """Compile a command string into an Action.

    Args:
        source: Raw command string from the configuration file.
        base_dir: Directory that relative ``cd`` targets resolve against.
        description: Optional human-readable description.
        self_names: Executable names that mark a composite of other tasks.

    Raises:
        TaskConfigError: When the string uses unsupported shell syntax.
    """

    if not isinstance(source, str) or not source.strip():
        raise TaskConfigError("Command must be a non-empty string")

    segments = split_segments(source)

    names = set(self_names)
    if len(segments) == 1 and segments[0][0] in names:
        return Action(source=source, refs=_parse_composite(segments[0], source), description=description)

    commands: List[Command] = []
    cwd: Optional[Path] = None
    for seg in segments:
        env, argv = _split_assignments(seg)
        if not argv:
            raise TaskConfigError(f"Assignment without a command in {source!r}")

        if argv[0] == "cd":
            if env:
                raise TaskConfigError(f"Assignments before 'cd' are not supported: {source!r}")
            if len(argv) != 2:
                raise TaskConfigError(f"'cd' takes exactly one directory: {source!r}")
            cwd = _change_dir(cwd if cwd is not None else base_dir, argv[1])
            continue

        if argv[0] in names:
            raise TaskConfigError(f"Composite commands cannot be chained with '&&': {source!r}")

        commands.append(Command(argv=tuple(argv), cwd=cwd, env=env))

    if not commands or segments[-1][0] == "cd":
        raise TaskConfigError(f"'cd' must be followed by a command: {source!r}")

    return Action(source=source, commands=tuple(commands), description=description)
