"""
Task Models
===========
Immutable value types shared by the loader, registry and runner.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from taskalias.errors import StepExecutionError


_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_:-]*$")


def is_valid_task_name(name: str) -> bool:
    return bool(_SEGMENT_RE.match(name or ""))


@dataclass(frozen=True)
class TaskRef:
    """Validated reference to a task (``release``) or a sub-action (``schema.hub``)."""

    task: str
    sub: Optional[str] = None

    @classmethod
    def parse(cls, token: str) -> "TaskRef":
        """Parse a dotted token.

        Raises:
            ValueError: When the token is not a valid task identifier.
        """
        parts = (token or "").split(".")
        if len(parts) > 2 or not all(is_valid_task_name(p) for p in parts):
            raise ValueError(f"Invalid task reference: {token!r}")
        if len(parts) == 2:
            return cls(task=parts[0], sub=parts[1])
        return cls(task=parts[0])

    def __str__(self) -> str:
        return f"{self.task}.{self.sub}" if self.sub else self.task


@dataclass(frozen=True)
class Command:
    """Structured subprocess invocation (never handed to a shell)."""

    argv: Tuple[str, ...]
    cwd: Optional[Path] = None
    env: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("Command argv must not be empty")

    @property
    def executable(self) -> str:
        return self.argv[0]

    def env_dict(self) -> Dict[str, str]:
        return dict(self.env)

    def display(self) -> str:
        prefix = " ".join(f"{k}={shlex.quote(v)}" for k, v in self.env)
        rendered = shlex.join(self.argv)
        return f"{prefix} {rendered}" if prefix else rendered


@dataclass(frozen=True)
class Action:
    """Compiled form of one command string.

    Exactly one of ``commands`` (a chain run in order) or ``refs`` (a composite
    of other actions) is non-empty.
    """

    source: str
    commands: Tuple[Command, ...] = ()
    refs: Tuple[TaskRef, ...] = ()
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if bool(self.commands) == bool(self.refs):
            raise ValueError("Action must have either commands or task references")

    @property
    def is_composite(self) -> bool:
        return bool(self.refs)


@dataclass(frozen=True)
class TaskDefinition:
    """A named task: an optional default action plus ordered sub-actions."""

    name: str
    default_action: Optional[Action] = None
    sub_actions: Tuple[Tuple[str, Action], ...] = ()
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.default_action is None and not self.sub_actions:
            raise ValueError(f"Task {self.name!r} needs a default action or at least one sub-action")
        names = [n for n, _ in self.sub_actions]
        if len(names) != len(set(names)):
            raise ValueError(f"Task {self.name!r} has duplicate sub-action names")

    def sub_action(self, name: str) -> Optional[Action]:
        for sub_name, action in self.sub_actions:
            if sub_name == name:
                return action
        return None

    def sub_action_names(self) -> Tuple[str, ...]:
        return tuple(n for n, _ in self.sub_actions)

    def iter_actions(self) -> Iterator[Tuple[str, Action]]:
        """Yield (dotted path, action) for the default and every sub-action."""
        if self.default_action is not None:
            yield self.name, self.default_action
        for sub_name, action in self.sub_actions:
            yield f"{self.name}.{sub_name}", action


@dataclass(frozen=True)
class Step:
    index: int
    name: str
    command: Command


@dataclass(frozen=True)
class ExecutionRequest:
    invocation: str
    steps: Tuple[Step, ...]

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def step_names(self) -> Tuple[str, ...]:
        return tuple(s.name for s in self.steps)


class StepStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single step. Steps that never ran stay PENDING."""

    index: int
    name: str
    command: str
    status: StepStatus = StepStatus.PENDING
    returncode: Optional[int] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None
    duration_seconds: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "command": self.command,
            "status": self.status.value,
            "returncode": self.returncode,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "duration_seconds": self.duration_seconds,
            "error": self.error,
        }


@dataclass(frozen=True)
class ExecutionResult:
    """Result of running an ExecutionRequest."""

    success: bool
    steps: Tuple[StepResult, ...] = field(default_factory=tuple)
    failed_step: Optional[int] = None
    exit_code: int = 0
    cancelled: bool = False

    @property
    def failure(self) -> Optional[StepResult]:
        if self.failed_step is None:
            return None
        return self.steps[self.failed_step - 1]

    def executed(self) -> Tuple[StepResult, ...]:
        return tuple(s for s in self.steps if s.status is not StepStatus.PENDING)

    def raise_for_status(self) -> None:
        failure = self.failure
        if self.success or failure is None:
            return
        raise StepExecutionError(
            step_name=failure.name,
            step_index=failure.index,
            exit_code=self.exit_code,
            detail=failure.error,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "failed_step": self.failed_step,
            "exit_code": self.exit_code,
            "cancelled": self.cancelled,
            "steps": [s.to_dict() for s in self.steps],
        }
