"""
Subprocess Environment Utilities
===============================
Helpers for building the environment dictionary passed to each step.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Mapping, Optional


BASE_ALLOWLIST = frozenset(
    {
        "PATH",
        "HOME",
        "USER",
        "SHELL",
        "TERM",
        "LANG",
        "LC_ALL",
        "LC_CTYPE",
        "TMPDIR",
        "TEMP",
        "TMP",
        "SSL_CERT_FILE",
        "SSL_CERT_DIR",
        "NODE_PATH",
        "NVM_DIR",
    }
)


def build_step_env(
    *,
    sanitize_env: bool = False,
    overrides: Optional[Mapping[str, str]] = None,
    allowlist: Optional[Iterable[str]] = None,
    parent: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Return an environment dict for a step.

    Args:
        sanitize_env: If True, inherit only an allowlist of parent variables.
        overrides: Per-command assignments applied last.
        allowlist: Optional extra allowlist keys.
        parent: Environment to inherit from (defaults to os.environ).

    Returns:
        Dict[str, str] to pass as subprocess env.
    """

    source = os.environ if parent is None else parent

    if sanitize_env:
        keys = set(BASE_ALLOWLIST)
        if allowlist is not None:
            keys.update(k for k in allowlist if isinstance(k, str) and k)
        env = {k: source[k] for k in keys if k in source}
    else:
        env = dict(source)

    if overrides:
        env.update(overrides)
    return env
