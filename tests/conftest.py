from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from taskalias.loader import build_registry
from taskalias.registry import TaskRegistry


@pytest.fixture
def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    d = tmp_path / "project"
    d.mkdir()
    return d


@pytest.fixture
def write_config(project_dir: Path) -> Callable[[Dict[str, Any]], Path]:
    def _write(scripts: Dict[str, Any], filename: str = "package-scripts.json") -> Path:
        path = project_dir / filename
        path.write_text(json.dumps({"scripts": scripts}, indent=2) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_registry(project_dir: Path) -> Callable[[Dict[str, Any]], TaskRegistry]:
    def _make(scripts: Dict[str, Any]) -> TaskRegistry:
        return build_registry({"scripts": scripts}, base_dir=project_dir)

    return _make


@pytest.fixture
def schema_scripts() -> Dict[str, Any]:
    return {
        "release": {"default": "bash build_release.sh"},
        "schema": {
            "default": "nps schema.create schema.transform schema.hub",
            "create": "bash build_schema.sh",
            "transform": "ts-node transform.ts",
            "hub": "cd .. && json2ts -i contracts/**/*.json -o ../liquid-staking-scripts/types/update-scaling-factor",
        },
    }
