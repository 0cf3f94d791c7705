from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

import cceasy.cli


def _combined_output(result) -> str:
    try:
        return result.stdout + result.stderr
    except Exception:
        return result.stdout


def _invoke(*args, input=None):
    return CliRunner().invoke(cceasy.cli.app, list(args), input=input)


def _settings(home: Path) -> dict:
    return json.loads((home / ".claude" / "settings.json").read_text(encoding="utf-8"))


def test_show_json_creates_default_config(cli_home: Path):
    result = _invoke("show", "--format", "json")

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["current_model"] == "GLM"
    assert [row["model_name"] for row in payload["models"]] == ["GLM", "kimi", "doubao", "MiniMax", "Custom"]
    assert (cli_home / ".claude_model_config.json").is_file()
    assert (cli_home / ".claude" / "settings.json").is_file()


def test_show_text_lists_models_and_projects(cli_home: Path):
    result = _invoke("show")

    assert result.exit_code == 0
    assert "* GLM" in result.stdout
    assert "* default name=Project 1" in result.stdout


def test_show_rejects_unknown_format(cli_home: Path):
    result = _invoke("show", "--format", "yaml")

    assert result.exit_code == 2
    assert "yaml" in _combined_output(result)


def test_use_requires_api_key(cli_home: Path):
    result = _invoke("use", "kimi")

    assert result.exit_code == 2
    assert "API Key" in _combined_output(result)


def test_key_then_use_syncs_settings(cli_home: Path):
    assert _invoke("key", "kimi", "k-kimi").exit_code == 0

    result = _invoke("use", "kimi")

    assert result.exit_code == 0
    assert "kimi" in result.stdout
    env = _settings(cli_home)["env"]
    assert env["ANTHROPIC_AUTH_TOKEN"] == "k-kimi"
    assert env["ANTHROPIC_BASE_URL"] == "https://api.kimi.com/coding"
    state = json.loads((cli_home / ".claude.json").read_text(encoding="utf-8"))
    assert state["customApiKeyResponses"]["approved"] == ["k-kimi"]


def test_custom_model_url_and_rename(cli_home: Path):
    assert _invoke("url", "Custom", "https://proxy.example").exit_code == 0
    assert _invoke("key", "Custom", "k").exit_code == 0
    assert _invoke("use", "Custom").exit_code == 0

    result = _invoke("rename-model", "Custom", "My Proxy")

    assert result.exit_code == 0
    env = _settings(cli_home)["env"]
    assert env["ANTHROPIC_MODEL"] == "My Proxy"
    assert env["ANTHROPIC_BASE_URL"] == "https://proxy.example"


def test_rename_builtin_model_is_rejected(cli_home: Path):
    result = _invoke("rename-model", "GLM", "Zhipu")

    assert result.exit_code == 2


def test_sync_prints_applied_sinks(cli_home: Path):
    result = _invoke("sync")

    assert result.exit_code == 0
    assert "applied settings" in result.stdout
    assert "applied state" in result.stdout
    assert "applied env" in result.stdout


def test_project_lifecycle(cli_home: Path):
    added = _invoke("project", "add", "--path", "/work/a")
    assert added.exit_code == 0
    assert "Project 2" in added.stdout

    assert _invoke("project", "use", "Project 2").exit_code == 0
    assert _invoke("project", "rename", "Project 2", "Backend").exit_code == 0
    assert _invoke("project", "path", "/work/b").exit_code == 0

    listed = _invoke("project", "list")
    assert listed.exit_code == 0
    lines = listed.stdout.strip().splitlines()
    assert len(lines) == 2
    assert lines[1].startswith("* ")
    assert "name=Backend path=/work/b" in lines[1]

    assert _invoke("project", "remove", "Backend").exit_code == 0
    payload = json.loads(_invoke("show", "--format", "json").stdout)
    assert [row["id"] for row in payload["projects"]] == ["default"]
    assert payload["current_project"] == "default"


def test_project_remove_last_is_rejected(cli_home: Path):
    result = _invoke("project", "remove", "default")

    assert result.exit_code == 2


def test_project_use_unknown(cli_home: Path):
    result = _invoke("project", "use", "nope")

    assert result.exit_code == 2
    assert "nope" in _combined_output(result)


def test_project_yolo_prints_launch_command(cli_home: Path):
    result = _invoke("project", "yolo", "on")

    assert result.exit_code == 0
    assert "launch: claude --dangerously-skip-permissions" in result.stdout
    payload = json.loads(_invoke("show", "--format", "json").stdout)
    assert payload["projects"][0]["yolo_mode"] is True


def test_recover_with_yes_removes_state(cli_home: Path):
    assert _invoke("sync").exit_code == 0

    result = _invoke("recover", "--yes")

    assert result.exit_code == 0
    assert "Recovery process completed successfully." in result.stdout
    assert not (cli_home / ".claude").exists()
    assert not (cli_home / ".claude.json").exists()
    assert (cli_home / ".claude_model_config.json").is_file()


def test_recover_can_be_cancelled(cli_home: Path):
    assert _invoke("sync").exit_code == 0

    result = _invoke("recover", input="n\n")

    assert result.exit_code == 0
    assert (cli_home / ".claude.json").exists()


def test_init_refuses_to_overwrite(cli_home: Path):
    first = _invoke("init")
    assert first.exit_code == 2

    forced = _invoke("init", "--force")
    assert forced.exit_code == 0
    assert (cli_home / ".cceasy" / "config.toml").is_file()


def test_rename_custom_model_to_builtin_alias_is_rejected(cli_home: Path):
    assert _invoke("url", "Custom", "https://my.proxy").exit_code == 0
    assert _invoke("key", "Custom", "sk-custom").exit_code == 0

    result = _invoke("rename-model", "Custom", "Kimi")

    assert result.exit_code == 2
    payload = json.loads(_invoke("show", "--format", "json").stdout)
    models = {row["model_name"]: row for row in payload["models"]}
    assert models["Custom"]["model_url"] == "https://my.proxy"
    assert models["Custom"]["api_key"] == "sk-custom"
    assert models["kimi"]["api_key"] == ""
