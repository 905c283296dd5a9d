"""
Task Registry
=============
Registry of named tasks and resolution of invocation strings into ordered steps.

The registry is built once from the configuration file, validated (every
composite reference must resolve and references must not form a cycle) and
then frozen for the lifetime of the process.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from taskalias.errors import (
    DuplicateTaskError,
    RegistryFrozenError,
    TaskConfigError,
    UnknownTaskError,
)
from taskalias.models import (
    Action,
    Command,
    ExecutionRequest,
    Step,
    TaskDefinition,
    TaskRef,
    is_valid_task_name,
)


class TaskRegistry:
    """Mapping from task name to TaskDefinition."""

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskDefinition] = {}
        self._frozen = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def register(self, name: str, definition: TaskDefinition) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Registry is frozen; cannot register {name!r}")
        if not is_valid_task_name(name):
            raise TaskConfigError(f"Invalid task name: {name!r}")
        if definition.name != name:
            raise TaskConfigError(f"Task name mismatch: registered as {name!r}, defined as {definition.name!r}")
        if name in self._tasks:
            raise DuplicateTaskError(name)
        self._tasks[name] = definition
        logger.debug(f"Registered task {name} ({len(definition.sub_actions)} sub-actions)")

    def freeze(self) -> "TaskRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[TaskDefinition]:
        return self._tasks.get(name)

    def names(self) -> List[str]:
        return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self) -> Iterator[TaskDefinition]:
        return iter(self._tasks.values())

    def lookup(self, ref: TaskRef) -> List[Tuple[str, Action]]:
        """Return the (path, action) pairs a reference selects.

        A bare task name selects its default action, or every sub-action in
        declared order when the task has no default.
        """

        task = self._tasks.get(ref.task)
        if task is None:
            raise UnknownTaskError(str(ref))

        if ref.sub is not None:
            action = task.sub_action(ref.sub)
            if action is None:
                available = ", ".join(task.sub_action_names()) or "none"
                raise UnknownTaskError(str(ref), f"sub-actions of {task.name}: {available}")
            return [(str(ref), action)]

        if task.default_action is not None:
            return [(task.name, task.default_action)]
        return [(f"{task.name}.{sub}", action) for sub, action in task.sub_actions]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Check every composite reference resolves and none form a cycle.

        Raises:
            TaskConfigError: On an unknown reference or a reference cycle.
        """

        for task in self._tasks.values():
            for path, action in task.iter_actions():
                self._check_refs(path, action, stack=[path])

    def _check_refs(self, path: str, action: Action, *, stack: List[str]) -> None:
        for ref in action.refs:
            try:
                targets = self.lookup(ref)
            except UnknownTaskError as e:
                raise TaskConfigError(f"{path} refers to unknown task: {e.token}")
            for target_path, target in targets:
                if target_path in stack:
                    cycle = " -> ".join(stack[stack.index(target_path):] + [target_path])
                    raise TaskConfigError(f"Task reference cycle: {cycle}")
                if target.is_composite:
                    self._check_refs(target_path, target, stack=stack + [target_path])

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _expand(self, path: str, action: Action, out: List[Tuple[str, Command]], stack: Tuple[str, ...]) -> None:
        if not action.is_composite:
            for command in action.commands:
                out.append((path, command))
            return

        for ref in action.refs:
            for target_path, target in self.lookup(ref):
                if target_path in stack:
                    raise TaskConfigError(f"Task reference cycle at {target_path}")
                self._expand(target_path, target, out, stack + (target_path,))

    def resolve(self, invocation: str) -> ExecutionRequest:
        """Resolve a whitespace-separated invocation into an ExecutionRequest.

        Raises:
            UnknownTaskError: When a token names no task or sub-action.
        """

        tokens = (invocation or "").split()
        if not tokens:
            raise UnknownTaskError("", "empty invocation")

        resolved: List[Tuple[str, Command]] = []
        for token in tokens:
            try:
                ref = TaskRef.parse(token)
            except ValueError:
                raise UnknownTaskError(token, "not a valid task reference")
            for path, action in self.lookup(ref):
                self._expand(path, action, resolved, (path,))

        steps = tuple(
            Step(index=i, name=name, command=command)
            for i, (name, command) in enumerate(resolved, start=1)
        )
        logger.debug(f"Resolved {invocation!r} into {len(steps)} step(s)")
        return ExecutionRequest(invocation=" ".join(tokens), steps=steps)
