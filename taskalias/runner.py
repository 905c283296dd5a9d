"""
Step Runner
===========
Execute a resolved ExecutionRequest one child process at a time.

- Steps run strictly in order; each child is waited on (reaped) before the next starts.
- Child stdin/stdout/stderr are inherited; nothing is captured.
- The first failing step aborts the remaining steps.
- SIGINT/SIGTERM received while a step runs are forwarded to the child and
  cancel the rest of the run.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import json
import signal
import subprocess
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from taskalias.config import RUNNER
from taskalias.models import (
    Command,
    ExecutionRequest,
    ExecutionResult,
    Step,
    StepResult,
    StepStatus,
)
from taskalias.utils.schema_validation import validate_run_record
from taskalias.utils.subprocess_env import build_step_env


_FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def normalize_exit_code(returncode: int) -> int:
    """Map a Popen return code to a process exit status (signal deaths become 128+N)."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


class StepCancellation:
    """Tracks the running child so a cancellation can be forwarded to it."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._proc: Optional[subprocess.Popen] = None
        self.signum: Optional[int] = None

    @property
    def cancelled(self) -> bool:
        return self.signum is not None

    def attach(self, proc: Optional[subprocess.Popen]) -> None:
        with self._lock:
            self._proc = proc
            pending = self.signum
        # cancel() may have run between the loop check and the spawn
        if proc is not None and pending is not None:
            self.cancel(pending)

    def cancel(self, signum: int = signal.SIGTERM) -> None:
        with self._lock:
            if self.signum is None:
                self.signum = int(signum)
            proc = self._proc
        if proc is not None and proc.poll() is None:
            try:
                proc.send_signal(signum)
            except ProcessLookupError:
                pass

    def handle_signal(self, signum: int, frame: Any) -> None:
        # No logging here: the handler can interrupt a logger call holding its lock
        self.cancel(signum)


def _resolve_cwd(command: Command, base_dir: Optional[Path]) -> Optional[Path]:
    cwd = command.cwd
    if cwd is None:
        return base_dir
    if not cwd.is_absolute() and base_dir is not None:
        return base_dir / cwd
    return cwd


def _execute_step(
    step: Step,
    *,
    base_dir: Optional[Path],
    timeout_seconds: Optional[int],
    sanitize_env: bool,
    cancellation: StepCancellation,
) -> Tuple[int, Optional[str]]:
    """Run one step to completion. Returns (exit_code, error message)."""

    command = step.command
    env = build_step_env(sanitize_env=sanitize_env, overrides=command.env_dict())
    cwd = _resolve_cwd(command, base_dir)
    if cwd is not None and not cwd.is_dir():
        return RUNNER.EXIT_NOT_FOUND, f"Working directory not found: {cwd}"

    try:
        proc = subprocess.Popen(
            list(command.argv),
            cwd=str(cwd) if cwd is not None else None,
            env=env,
            close_fds=True,
        )
    except FileNotFoundError as e:
        missing = e.filename or command.executable
        return RUNNER.EXIT_NOT_FOUND, f"Command not found: {missing}"
    except PermissionError as e:
        return RUNNER.EXIT_NOT_EXECUTABLE, f"Permission denied: {e.filename or command.executable}"
    except OSError as e:
        return RUNNER.EXIT_NOT_EXECUTABLE, f"Failed to start {command.executable}: {type(e).__name__}: {e}"

    cancellation.attach(proc)
    try:
        try:
            returncode = proc.wait(timeout=timeout_seconds)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            return RUNNER.EXIT_TIMEOUT, f"Timed out after {timeout_seconds} seconds"
    finally:
        cancellation.attach(None)

    if cancellation.cancelled:
        return 128 + int(cancellation.signum or 0), f"Cancelled by signal {cancellation.signum}"
    if returncode < 0:
        return normalize_exit_code(returncode), f"Terminated by signal {-returncode}"
    return returncode, None


def _install_handlers(cancellation: StepCancellation) -> Dict[int, Any]:
    if threading.current_thread() is not threading.main_thread():
        return {}
    previous: Dict[int, Any] = {}
    for sig in _FORWARDED_SIGNALS:
        previous[sig] = signal.signal(sig, cancellation.handle_signal)
    return previous


def _restore_handlers(previous: Dict[int, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


def run_request(
    request: ExecutionRequest,
    *,
    base_dir: Optional[Path] = None,
    timeout_seconds: Optional[int] = RUNNER.STEP_TIMEOUT,
    sanitize_env: bool = RUNNER.SANITIZE_ENV,
    forward_signals: bool = True,
    cancellation: Optional[StepCancellation] = None,
) -> ExecutionResult:
    """Run every step of a request in order, stopping at the first failure.

    Args:
        request: Resolved steps to run.
        base_dir: Working directory for steps without an explicit ``cd``.
        timeout_seconds: Per-step timeout; None waits indefinitely.
        sanitize_env: When True, children inherit only an env allowlist.
        forward_signals: Install SIGINT/SIGTERM handlers that cancel the run.
        cancellation: Optional external cancellation handle.

    Returns:
        ExecutionResult. Failures are reported, not raised; call
        ``raise_for_status()`` to turn them into StepExecutionError.
    """

    cancel = cancellation or StepCancellation()
    results: List[StepResult] = [
        StepResult(index=s.index, name=s.name, command=s.command.display()) for s in request.steps
    ]

    previous = _install_handlers(cancel) if forward_signals else {}
    failed_step: Optional[int] = None
    exit_code = 0
    total = len(request.steps)

    try:
        for pos, step in enumerate(request.steps):
            if cancel.cancelled:
                failed_step = step.index
                exit_code = 128 + int(cancel.signum or 0)
                break

            logger.info(f"[{step.index}/{total}] {step.name}: {step.command.display()}")
            started_at = _now_utc_iso()
            t0 = time.monotonic()

            rc, error = _execute_step(
                step,
                base_dir=base_dir,
                timeout_seconds=timeout_seconds,
                sanitize_env=sanitize_env,
                cancellation=cancel,
            )

            ok = rc == 0 and error is None
            results[pos] = StepResult(
                index=step.index,
                name=step.name,
                command=step.command.display(),
                status=StepStatus.SUCCEEDED if ok else StepStatus.FAILED,
                returncode=rc,
                started_at=started_at,
                finished_at=_now_utc_iso(),
                duration_seconds=round(time.monotonic() - t0, 3),
                error=error,
            )

            if ok:
                logger.debug(f"[{step.index}/{total}] {step.name} succeeded")
                continue

            failed_step = step.index
            exit_code = rc
            detail = f": {error}" if error else ""
            logger.error(f"[{step.index}/{total}] {step.name} failed with exit code {rc}{detail}")
            if step.index < total:
                logger.warning(f"Skipping {total - step.index} remaining step(s)")
            break
    finally:
        _restore_handlers(previous)

    return ExecutionResult(
        success=failed_step is None,
        steps=tuple(results),
        failed_step=failed_step,
        exit_code=exit_code,
        # a signal that lands after the last step finishes does not cancel anything
        cancelled=cancel.cancelled and failed_step is not None,
    )


def build_run_record(
    result: ExecutionResult,
    *,
    invocation: str,
    config_path: Optional[Path] = None,
    created_at: Optional[str] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "schema_version": "1.0",
        "created_at": created_at or _now_utc_iso(),
        "invocation": invocation,
        "config_path": str(config_path) if config_path is not None else None,
    }
    payload.update(result.to_dict())
    validate_run_record(payload)
    return payload


def write_run_record(
    result: ExecutionResult,
    path: Path,
    *,
    invocation: str,
    config_path: Optional[Path] = None,
) -> Path:
    """Write a schema-validated JSON record of a run."""

    payload = build_run_record(result, invocation=invocation, config_path=config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    return path
