"""
Centralized Configuration
=========================
Centralized configuration values and constants for the taskalias runner.

This module provides:
- Step execution defaults (timeout, environment sanitization)
- Configuration file discovery settings
- Logging defaults

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(name: str) -> Optional[int]:
    raw = os.getenv(name, "0").strip()
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


@dataclass(frozen=True)
class RunnerConfig:
    """Step execution defaults."""

    # Per-step timeout in seconds (None = wait forever)
    STEP_TIMEOUT: Optional[int] = _env_timeout("TASKALIAS_TIMEOUT")

    # Inherit only an allowlist of parent env vars
    SANITIZE_ENV: bool = _env_flag("TASKALIAS_SANITIZE_ENV", "false")

    # Executable names that mark a command string as a composite of other tasks
    SELF_NAMES: Tuple[str, ...] = ("nps", "taskalias")

    # Exit codes for steps that never produced one themselves
    EXIT_NOT_FOUND: int = 127
    EXIT_NOT_EXECUTABLE: int = 126
    EXIT_TIMEOUT: int = 124
    EXIT_USAGE: int = 2


@dataclass(frozen=True)
class DiscoveryConfig:
    """Configuration file discovery."""

    CONFIG_PATH: Optional[str] = os.getenv("TASKALIAS_CONFIG") or None
    CONFIG_FILENAME: str = os.getenv("TASKALIAS_CONFIG_FILENAME", "package-scripts.json")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    LEVEL: str = os.getenv("TASKALIAS_LOG_LEVEL", "INFO").upper()
    FORMAT: str = "<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | {message}"


# Global singleton instances
RUNNER = RunnerConfig()
DISCOVERY = DiscoveryConfig()
LOGGING = LoggingConfig()
