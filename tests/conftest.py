from __future__ import annotations

from pathlib import Path
from typing import Dict

import pytest

from cceasy.config import RuntimeSettings
from cceasy.debug_log import DebugLogWriter
from cceasy.store import ConfigStore
from cceasy.sync.claude_sync import SettingsSynchronizer
from cceasy.sync.env_sink import EnvironmentSink


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def environ() -> Dict[str, str]:
    return {}


@pytest.fixture
def debug_log(home: Path) -> DebugLogWriter:
    return DebugLogWriter(logs_dir=home / ".cceasy" / "logs", enabled=True)


@pytest.fixture
def synchronizer(home: Path, environ: Dict[str, str], debug_log: DebugLogWriter) -> SettingsSynchronizer:
    return SettingsSynchronizer(
        home=home,
        env_sink=EnvironmentSink(persistent_writer=None, log=debug_log, environ=environ),
        log=debug_log,
    )


@pytest.fixture
def store(home: Path, synchronizer: SettingsSynchronizer, debug_log: DebugLogWriter) -> ConfigStore:
    settings = RuntimeSettings(home=home, persist_env=False)
    return ConfigStore(settings, synchronizer=synchronizer, log=debug_log)


@pytest.fixture
def cli_home(home: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temp home and keep env writes inside the test."""

    monkeypatch.setenv("CCEASY_HOME", str(home))
    monkeypatch.setenv("ANTHROPIC_AUTH_TOKEN", "")
    monkeypatch.setenv("ANTHROPIC_BASE_URL", "")
    app_dir = home / ".cceasy"
    app_dir.mkdir(parents=True, exist_ok=True)
    (app_dir / "config.toml").write_text("[env]\npersist = false\n", encoding="utf-8")
    return home
