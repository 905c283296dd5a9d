"""
Configuration Loader
====================
Discover, read, validate and compile a task configuration file into a frozen
TaskRegistry.

File format (``package-scripts.json``)::

    {
      "scripts": {
        "release": {"default": "bash build_release.sh"},
        "schema": {
          "default": "nps schema.create schema.transform schema.hub",
          "create": "bash build_schema.sh",
          "transform": "ts-node transform.ts",
          "hub": "cd .. && json2ts -i contracts/**/*.json -o ../types"
        }
      }
    }

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger

from taskalias.commands import parse_action
from taskalias.config import DISCOVERY
from taskalias.errors import TaskConfigError
from taskalias.models import Action, TaskDefinition
from taskalias.registry import TaskRegistry
from taskalias.utils.schema_validation import config_location, validate_task_config


DEFAULT_KEY = "default"
DESCRIPTION_KEY = "description"


@dataclass(frozen=True)
class LoadedConfig:
    """A validated, frozen registry plus where it came from."""

    path: Optional[Path]
    base_dir: Path
    registry: TaskRegistry


def find_config_file(
    start_dir: Optional[Path] = None,
    *,
    filename: str = DISCOVERY.CONFIG_FILENAME,
) -> Optional[Path]:
    """Return the first ``filename`` found in start_dir or its parents."""

    current = (start_dir or Path.cwd()).expanduser().resolve()
    for directory in (current, *current.parents):
        candidate = directory / filename
        if candidate.is_file():
            return candidate
    return None


def _compile_action(value: Any, *, base_dir: Path, where: Tuple[str, ...]) -> Action:
    if isinstance(value, str):
        source, description = value, None
    else:
        source, description = value["script"], value.get(DESCRIPTION_KEY)
    try:
        return parse_action(source, base_dir=base_dir, description=description)
    except TaskConfigError as e:
        raise TaskConfigError(f"{config_location(*where)}: {e}")


def _compile_task(name: str, value: Any, *, base_dir: Path) -> TaskDefinition:
    if isinstance(value, str) or (isinstance(value, dict) and "script" in value):
        action = _compile_action(value, base_dir=base_dir, where=(name,))
        return TaskDefinition(name=name, default_action=action, description=action.description)

    default: Optional[Action] = None
    subs: List[Tuple[str, Action]] = []
    for key, raw in value.items():
        if key == DESCRIPTION_KEY:
            continue
        action = _compile_action(raw, base_dir=base_dir, where=(name, key))
        if key == DEFAULT_KEY:
            default = action
        else:
            subs.append((key, action))

    try:
        return TaskDefinition(
            name=name,
            default_action=default,
            sub_actions=tuple(subs),
            description=value.get(DESCRIPTION_KEY),
        )
    except ValueError as e:
        raise TaskConfigError(f"{config_location(name)}: {e}")


def build_registry(payload: Mapping[str, Any], *, base_dir: Path) -> TaskRegistry:
    """Validate a parsed configuration payload and build a frozen registry.

    Raises:
        TaskConfigError: On schema violations, bad commands, unknown
            references or reference cycles.
    """

    try:
        validate_task_config(payload)
    except ValueError as e:
        raise TaskConfigError(str(e))

    registry = TaskRegistry()
    scripts: Dict[str, Any] = payload["scripts"]
    for name, value in scripts.items():
        registry.register(name, _compile_task(name, value, base_dir=base_dir))

    registry.validate()
    return registry.freeze()


def read_config_payload(path: Path) -> Dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TaskConfigError(f"Cannot read task configuration {path}: {type(e).__name__}: {e}")
    if not isinstance(payload, dict):
        raise TaskConfigError(f"Task configuration {path} must be a JSON object")
    return payload


def load_registry(
    path: Optional[str | Path] = None,
    *,
    start_dir: Optional[Path] = None,
) -> LoadedConfig:
    """Locate and load the task configuration.

    Lookup order: explicit ``path``, ``$TASKALIAS_CONFIG``, then the nearest
    configuration file in ``start_dir`` or its parents.
    """

    explicit = path or DISCOVERY.CONFIG_PATH
    if explicit:
        config_path = Path(explicit).expanduser()
        if not config_path.is_absolute():
            config_path = (start_dir or Path.cwd()) / config_path
        config_path = config_path.resolve()
        if not config_path.is_file():
            raise TaskConfigError(f"Task configuration not found: {config_path}")
    else:
        found = find_config_file(start_dir)
        if found is None:
            raise TaskConfigError(
                f"No {DISCOVERY.CONFIG_FILENAME} found in {(start_dir or Path.cwd()).resolve()} or its parents"
            )
        config_path = found

    base_dir = config_path.parent
    registry = build_registry(read_config_payload(config_path), base_dir=base_dir)
    logger.debug(f"Loaded {len(registry)} task(s) from {config_path}")
    return LoadedConfig(path=config_path, base_dir=base_dir, registry=registry)
