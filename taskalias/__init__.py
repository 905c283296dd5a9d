"""
taskalias
=========
Named task runner: resolve short task names from package-scripts.json into
ordered subprocess steps and run them one after another.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

__version__ = "0.1.0"

from .errors import (
    TaskAliasError,
    TaskConfigError,
    RegistryFrozenError,
    DuplicateTaskError,
    UnknownTaskError,
    StepExecutionError,
)

from .models import (
    TaskRef,
    Command,
    Action,
    TaskDefinition,
    Step,
    ExecutionRequest,
    StepStatus,
    StepResult,
    ExecutionResult,
)

from .commands import parse_action
from .registry import TaskRegistry
from .loader import LoadedConfig, build_registry, find_config_file, load_registry
from .runner import StepCancellation, run_request, write_run_record

__all__ = [
    "__version__",
    # Errors
    "TaskAliasError",
    "TaskConfigError",
    "RegistryFrozenError",
    "DuplicateTaskError",
    "UnknownTaskError",
    "StepExecutionError",
    # Models
    "TaskRef",
    "Command",
    "Action",
    "TaskDefinition",
    "Step",
    "ExecutionRequest",
    "StepStatus",
    "StepResult",
    "ExecutionResult",
    # Loading and resolution
    "parse_action",
    "TaskRegistry",
    "LoadedConfig",
    "build_registry",
    "find_config_file",
    "load_registry",
    # Execution
    "StepCancellation",
    "run_request",
    "write_run_record",
]
