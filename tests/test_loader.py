from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskalias.errors import TaskConfigError
from taskalias.loader import build_registry, find_config_file, load_registry


@pytest.mark.unit
def test_load_sample_configuration(repo_root: Path):
    loaded = load_registry(repo_root / "package-scripts.json")

    assert loaded.path == (repo_root / "package-scripts.json").resolve()
    assert loaded.base_dir == loaded.path.parent
    assert loaded.registry.frozen is True
    assert loaded.registry.names() == ["release", "schema"]

    request = loaded.registry.resolve("schema")
    assert request.step_names() == ("schema.create", "schema.transform", "schema.hub")

    hub = request.steps[2].command
    assert hub.cwd == loaded.base_dir.parent
    assert hub.argv == (
        "json2ts",
        "-i",
        "contracts/**/*.json",
        "-o",
        "../liquid-staking-scripts/types/update-scaling-factor",
    )


@pytest.mark.unit
def test_string_shorthand_and_script_objects(make_registry):
    registry = make_registry(
        {
            "release": "bash build_release.sh",
            "docs": {"script": "mkdocs build", "description": "Build the docs"},
            "db": {
                "description": "Database helpers",
                "migrate": {"script": "alembic upgrade head", "description": "Apply migrations"},
                "reset": "alembic downgrade base",
            },
        }
    )

    release = registry.get("release")
    assert release.default_action.commands[0].argv == ("bash", "build_release.sh")

    docs = registry.get("docs")
    assert docs.description == "Build the docs"
    assert docs.default_action.description == "Build the docs"

    db = registry.get("db")
    assert db.default_action is None
    assert db.description == "Database helpers"
    assert db.sub_action_names() == ("migrate", "reset")
    assert db.sub_action("migrate").description == "Apply migrations"


@pytest.mark.unit
def test_sub_action_order_follows_file_order(make_registry):
    registry = make_registry({"ci": {"zeta": "true", "alpha": "true", "mid": "true"}})
    assert registry.resolve("ci").step_names() == ("ci.zeta", "ci.alpha", "ci.mid")


@pytest.mark.unit
def test_schema_violation_reports_path(project_dir: Path):
    with pytest.raises(TaskConfigError, match="Validation failed"):
        build_registry({"scripts": {"release": 42}}, base_dir=project_dir)


@pytest.mark.unit
def test_missing_scripts_key_is_rejected(project_dir: Path):
    with pytest.raises(TaskConfigError, match="Validation failed"):
        build_registry({"tasks": {}}, base_dir=project_dir)


@pytest.mark.unit
def test_invalid_task_name_is_rejected(project_dir: Path):
    with pytest.raises(TaskConfigError, match="Validation failed"):
        build_registry({"scripts": {"bad name": "true"}}, base_dir=project_dir)


@pytest.mark.unit
def test_task_with_only_description_is_rejected(project_dir: Path):
    with pytest.raises(TaskConfigError, match="scripts/empty"):
        build_registry({"scripts": {"empty": {"description": "nothing"}}}, base_dir=project_dir)


@pytest.mark.unit
def test_bad_command_reports_location(project_dir: Path):
    with pytest.raises(TaskConfigError, match="scripts/schema/hub: Unsupported shell operator"):
        build_registry(
            {"scripts": {"schema": {"hub": "json2ts a | tee b"}}},
            base_dir=project_dir,
        )


@pytest.mark.unit
def test_unknown_composite_reference_fails_at_load(project_dir: Path):
    with pytest.raises(TaskConfigError, match="unknown task"):
        build_registry({"scripts": {"all": "nps build test"}}, base_dir=project_dir)


@pytest.mark.unit
def test_invalid_json_is_rejected(project_dir: Path):
    path = project_dir / "package-scripts.json"
    path.write_text("{not-json", encoding="utf-8")
    with pytest.raises(TaskConfigError, match="JSONDecodeError"):
        load_registry(path)


@pytest.mark.unit
def test_non_object_json_is_rejected(project_dir: Path):
    path = project_dir / "package-scripts.json"
    path.write_text(json.dumps(["a"]), encoding="utf-8")
    with pytest.raises(TaskConfigError, match="must be a JSON object"):
        load_registry(path)


@pytest.mark.unit
def test_explicit_missing_path_is_rejected(project_dir: Path):
    with pytest.raises(TaskConfigError, match="not found"):
        load_registry(project_dir / "nope.json")


@pytest.mark.unit
def test_relative_path_resolves_against_start_dir(project_dir: Path, write_config):
    write_config({"release": "true"}, filename="tasks.json")
    loaded = load_registry("tasks.json", start_dir=project_dir)
    assert loaded.path == (project_dir / "tasks.json").resolve()


@pytest.mark.unit
def test_discovery_walks_up_parent_directories(project_dir: Path, write_config):
    config = write_config({"release": "true"})
    nested = project_dir / "a" / "b"
    nested.mkdir(parents=True)

    assert find_config_file(nested) == config.resolve()

    loaded = load_registry(start_dir=nested)
    assert loaded.path == config.resolve()
    assert loaded.base_dir == project_dir.resolve()


@pytest.mark.unit
def test_find_config_file_returns_none_when_absent(tmp_path: Path):
    empty = tmp_path / "empty"
    empty.mkdir()
    assert find_config_file(empty, filename="no-such-file-anywhere.json") is None
