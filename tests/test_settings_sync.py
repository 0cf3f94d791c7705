from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, List

import pytest

from cceasy.config import RuntimeSettings
from cceasy.errors import SelectedModelNotFoundError, SettingsSyncError
from cceasy.migration import default_config
from cceasy.schema import AppConfig, ModelEntry, ProjectEntry
from cceasy.sync.claude_sync import SettingsSynchronizer, build_settings_document
from cceasy.sync.env_sink import EnvironmentSink, PersistentEnvWriter


def _config(current: str, *models: ModelEntry) -> AppConfig:
    return AppConfig(
        current_model=current,
        models=list(models),
        projects=[ProjectEntry(id="default", name="Project 1", path="/tmp")],
        current_project="default",
    )


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


class _RecordingWriter(PersistentEnvWriter):
    def __init__(self, fail: bool = False) -> None:
        self.calls: List[Dict[str, str]] = []
        self.done = threading.Event()
        self._fail = fail

    def name(self) -> str:
        return "recording"

    def write(self, variables: Dict[str, str]) -> None:
        try:
            self.calls.append(dict(variables))
            if self._fail:
                raise OSError("store unavailable")
        finally:
            self.done.set()


def test_sync_writes_settings_state_and_env(home: Path, environ, synchronizer: SettingsSynchronizer):
    config = _config("kimi", ModelEntry(name="kimi", url="https://api.kimi.com/coding", api_key="k-kimi"))

    report = synchronizer.sync(config)

    assert report.model_name == "kimi"
    assert report.base_url == "https://api.kimi.com/coding"
    assert [item.sink for item in report.applied] == ["settings", "state", "env"]
    assert report.failed == []

    settings = _read_json(home / ".claude" / "settings.json")
    assert settings["env"]["ANTHROPIC_AUTH_TOKEN"] == "k-kimi"
    assert settings["env"]["ANTHROPIC_BASE_URL"] == "https://api.kimi.com/coding"
    assert settings["env"]["ANTHROPIC_MODEL"] == "kimi-k2-thinking"
    assert "permissions" not in settings

    state = _read_json(home / ".claude.json")
    assert state["customApiKeyResponses"] == {"approved": ["k-kimi"], "rejected": []}

    assert environ == {
        "ANTHROPIC_AUTH_TOKEN": "k-kimi",
        "ANTHROPIC_BASE_URL": "https://api.kimi.com/coding",
    }


def test_glm_settings_include_permission_mode():
    document = build_settings_document(ModelEntry(name="GLM", api_key="k"))

    assert list(document) == ["env", "permissions"]
    assert document["permissions"] == {"defaultMode": "dontAsk"}


def test_custom_model_settings_use_entry_url(home: Path, synchronizer: SettingsSynchronizer):
    config = _config(
        "My Proxy",
        ModelEntry(name="My Proxy", url="https://proxy.example", api_key="k", is_custom=True),
    )

    synchronizer.sync(config)

    settings = _read_json(home / ".claude" / "settings.json")
    assert settings == {
        "env": {
            "ANTHROPIC_AUTH_TOKEN": "k",
            "ANTHROPIC_BASE_URL": "https://proxy.example",
            "ANTHROPIC_MODEL": "My Proxy",
        }
    }


def test_sync_replaces_whole_settings_document(home: Path, synchronizer: SettingsSynchronizer):
    settings_file = home / ".claude" / "settings.json"
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text(json.dumps({"env": {"OLD": "1"}, "hooks": {}}), encoding="utf-8")

    synchronizer.sync(_config("doubao", ModelEntry(name="doubao", api_key="k")))

    settings = _read_json(settings_file)
    assert set(settings) == {"env"}
    assert "OLD" not in settings["env"]


def test_state_merge_keeps_unrelated_keys(home: Path, synchronizer: SettingsSynchronizer):
    state_file = home / ".claude.json"
    state_file.write_text(
        json.dumps({"unrelatedKey": 1, "customApiKeyResponses": {"approved": ["old"], "rejected": ["x"]}}),
        encoding="utf-8",
    )

    synchronizer.sync(_config("kimi", ModelEntry(name="kimi", api_key="new-key")))

    state = _read_json(state_file)
    assert state["unrelatedKey"] == 1
    assert state["customApiKeyResponses"] == {"approved": ["new-key"], "rejected": []}


def test_malformed_state_file_is_replaced(home: Path, synchronizer: SettingsSynchronizer):
    state_file = home / ".claude.json"
    state_file.write_text("{not json", encoding="utf-8")

    report = synchronizer.sync(_config("kimi", ModelEntry(name="kimi", api_key="k")))

    assert report.failed == []
    assert _read_json(state_file) == {"customApiKeyResponses": {"approved": ["k"], "rejected": []}}


def test_missing_selected_model_leaves_files_untouched(home: Path, environ, synchronizer: SettingsSynchronizer):
    settings_file = home / ".claude" / "settings.json"
    settings_file.parent.mkdir(parents=True)
    settings_file.write_text('{"env": {"KEEP": "1"}}\n', encoding="utf-8")
    state_file = home / ".claude.json"
    state_file.write_text('{"unrelatedKey": 1}\n', encoding="utf-8")

    with pytest.raises(SelectedModelNotFoundError) as excinfo:
        synchronizer.sync(_config("Gone", ModelEntry(name="kimi", api_key="k")))

    assert excinfo.value.model_name == "Gone"
    assert settings_file.read_text(encoding="utf-8") == '{"env": {"KEEP": "1"}}\n'
    assert state_file.read_text(encoding="utf-8") == '{"unrelatedKey": 1}\n'
    assert environ == {}


def test_resync_reports_unchanged_files(synchronizer: SettingsSynchronizer):
    config = _config("kimi", ModelEntry(name="kimi", api_key="k"))

    synchronizer.sync(config)
    second = synchronizer.sync(config)

    actions = {item.sink: item.action for item in second.applied}
    assert actions["settings"] == "unchanged"
    assert actions["state"] == "unchanged"


def test_settings_write_failure_still_attempts_other_sinks(home: Path, environ, synchronizer: SettingsSynchronizer):
    # A regular file where the settings directory should be.
    (home / ".claude").write_text("blocked", encoding="utf-8")

    with pytest.raises(SettingsSyncError) as excinfo:
        synchronizer.sync(_config("kimi", ModelEntry(name="kimi", api_key="k")))

    assert excinfo.value.sink == "settings"
    assert isinstance(excinfo.value.__cause__, OSError)
    assert _read_json(home / ".claude.json")["customApiKeyResponses"]["approved"] == ["k"]
    assert environ["ANTHROPIC_AUTH_TOKEN"] == "k"


def test_default_config_syncs_first_model(home: Path, synchronizer: SettingsSynchronizer):
    report = synchronizer.sync(default_config(home))

    assert report.model_name == "GLM"
    settings = _read_json(home / ".claude" / "settings.json")
    assert settings["env"]["ANTHROPIC_AUTH_TOKEN"] == ""
    assert settings["permissions"]["defaultMode"] == "dontAsk"


def test_persistent_env_write_runs_in_background(home: Path, environ):
    writer = _RecordingWriter()
    synchronizer = SettingsSynchronizer(
        home=home,
        env_sink=EnvironmentSink(persistent_writer=writer, environ=environ),
    )

    report = synchronizer.sync(_config("kimi", ModelEntry(name="kimi", api_key="k")))

    assert writer.done.wait(timeout=5)
    assert writer.calls == [{"ANTHROPIC_AUTH_TOKEN": "k", "ANTHROPIC_BASE_URL": "https://api.kimi.com/coding"}]
    assert report.notes


def test_persistent_env_failure_is_logged_not_raised(home: Path, environ, debug_log):
    writer = _RecordingWriter(fail=True)
    sink = EnvironmentSink(persistent_writer=writer, log=debug_log, environ=environ)

    worker = sink.apply({"ANTHROPIC_AUTH_TOKEN": "k"})

    assert worker is not None
    worker.join(timeout=5)
    assert environ["ANTHROPIC_AUTH_TOKEN"] == "k"
    rows = [json.loads(line) for line in debug_log.active_log_file.read_text(encoding="utf-8").splitlines()]
    warnings = [row for row in rows if row["level"] == "warn" and row["component"] == "env"]
    assert warnings
    assert warnings[0]["data"]["writer"] == "recording"


def test_sink_paths_match_runtime_settings(home: Path, synchronizer: SettingsSynchronizer):
    settings = RuntimeSettings(home=home)

    assert synchronizer.settings_path == settings.claude_settings_file
    assert synchronizer.state_path == settings.claude_state_file
