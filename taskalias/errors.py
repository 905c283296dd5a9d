"""
Error Taxonomy
==============
Exceptions raised while loading, resolving and running tasks.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

from typing import Optional


class TaskAliasError(Exception):
    """Base class for all taskalias errors."""


class TaskConfigError(TaskAliasError, ValueError):
    """Raised when a configuration file or command string is invalid."""


class RegistryFrozenError(TaskConfigError):
    """Raised when registering into a registry that has been frozen."""


class DuplicateTaskError(TaskConfigError):
    """Raised when a task name is registered twice."""

    def __init__(self, name: str):
        super().__init__(f"Task already registered: {name}")
        self.name = name


class UnknownTaskError(TaskAliasError, LookupError):
    """Raised when an invocation names a task or sub-action that does not exist."""

    def __init__(self, token: str, reason: Optional[str] = None):
        message = f"Unknown task: {token}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.token = token


class StepExecutionError(TaskAliasError, RuntimeError):
    """Raised when a step exits non-zero or cannot be spawned."""

    def __init__(
        self,
        *,
        step_name: str,
        step_index: int,
        exit_code: int,
        detail: Optional[str] = None,
    ):
        message = f"Step {step_index} ({step_name}) failed with exit code {exit_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.step_name = step_name
        self.step_index = step_index
        self.exit_code = exit_code
        self.detail = detail
