"""Tests for configuration loading and template substitution."""

import sys

from xbisect.core.config import (
    BisectConfig,
    FailurePolicy,
    GitCommands,
    State,
    default_home,
)


def test_defaults_loaded(make_state, xbisect_home):
    """Package defaults produce a usable configuration."""
    state = make_state()
    config = state.config

    assert config.home == xbisect_home
    assert config.log_root == xbisect_home / "logs"
    assert config.cache_dir == xbisect_home / "cache"
    assert config.repos_dir == xbisect_home / "repos"
    assert config.registry_file == xbisect_home / "projects.yaml"
    assert config.bisect.skip_exit_code == 125
    assert config.bisect.failure_policy is FailurePolicy.PASSTHROUGH
    assert config.bisect.repo_subdir == "_repo"


def test_git_placeholders_survive_substitution(make_state):
    """{revision}, {script}, {url} and {dest} are filled per command,
    not at load time."""
    git = make_state().config.git

    assert git.bisect_good == "git bisect good {revision}"
    assert git.bisect_bad == "git bisect bad {revision}"
    assert git.bisect_run == "git bisect run {script}"
    assert git.clone == "git clone {url} {dest}"


def test_config_reference_templates_substituted(make_state, tmp_path):
    """{config.*} references resolve against the loaded state."""
    state = make_state(
        config={
            "home": str(tmp_path / "data"),
            "log_root": "{config.home}/runlogs",
        }
    )

    assert state.config.log_root == tmp_path / "data" / "runlogs"


def test_failure_policy_by_alias_and_name():
    assert BisectConfig(**{"failure-policy": "skip"}).failure_policy is (
        FailurePolicy.SKIP
    )
    assert BisectConfig(failure_policy="bad").failure_policy is (
        FailurePolicy.BAD
    )


def test_environment_overrides(make_state, monkeypatch):
    """XBISECT_CONFIG__... variables reach nested settings."""
    monkeypatch.setenv("XBISECT_CONFIG__BISECT__SKIP_EXIT_CODE", "99")

    assert make_state().config.bisect.skip_exit_code == 99


def test_cli_overrides(mock_argv, xbisect_home):
    """Command-line settings win over YAML defaults."""
    sys.argv = ["xbisect", "--config.git.rev_parse_head", "echo abc"]

    state = State()

    assert state.config.git.rev_parse_head == "echo abc"
    assert state.config.git.bisect_start == GitCommands().bisect_start


def test_default_home_honours_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("XBISECT_HOME", str(tmp_path))
    assert default_home() == tmp_path

    monkeypatch.delenv("XBISECT_HOME")
    assert default_home().name == "xbisect"
