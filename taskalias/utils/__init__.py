"""
Utility Functions
=================
Common utilities for subprocess environments and schema validation.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from .subprocess_env import (
    BASE_ALLOWLIST,
    build_step_env,
)

from .schema_validation import (
    validate_against_schema,
    validate_task_config,
    validate_run_record,
)

__all__ = [
    # Subprocess environment
    "BASE_ALLOWLIST",
    "build_step_env",
    # Schema validation
    "validate_against_schema",
    "validate_task_config",
    "validate_run_record",
]
