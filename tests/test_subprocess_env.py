import pytest

from taskalias.utils.subprocess_env import build_step_env


PARENT = {
    "PATH": "/usr/bin",
    "HOME": "/home/dev",
    "AWS_SECRET_ACCESS_KEY": "nope",
    "NPM_TOKEN": "nope",
}


@pytest.mark.unit
def test_inherits_full_parent_env_by_default():
    env = build_step_env(parent=PARENT)
    assert env == PARENT
    assert env is not PARENT


@pytest.mark.unit
def test_sanitize_keeps_only_allowlisted_keys():
    env = build_step_env(sanitize_env=True, parent=PARENT)
    assert env == {"PATH": "/usr/bin", "HOME": "/home/dev"}


@pytest.mark.unit
def test_sanitize_accepts_extra_allowlist():
    env = build_step_env(sanitize_env=True, parent=PARENT, allowlist=["NPM_TOKEN", ""])
    assert env["NPM_TOKEN"] == "nope"
    assert "AWS_SECRET_ACCESS_KEY" not in env


@pytest.mark.unit
def test_overrides_win_over_parent():
    env = build_step_env(sanitize_env=True, parent=PARENT, overrides={"PATH": "/opt/bin", "STAGE": "prod"})
    assert env["PATH"] == "/opt/bin"
    assert env["STAGE"] == "prod"
