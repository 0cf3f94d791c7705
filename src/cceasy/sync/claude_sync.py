"""Projects the selected model onto Claude Code settings, state, and env."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from cceasy.config import RuntimeSettings
from cceasy.debug_log import DebugLogWriter
from cceasy.errors import SelectedModelNotFoundError, SettingsSyncError
from cceasy.providers.profile import ENV_AUTH_TOKEN, ENV_BASE_URL, resolve_profile
from cceasy.schema import AppConfig, ModelEntry
from cceasy.sync.base import load_json_object_lenient, write_json
from cceasy.sync.env_sink import EnvironmentSink
from cceasy.sync.types import SyncReport

SINK_SETTINGS = "settings"
SINK_STATE = "state"
SINK_ENV = "env"


def build_settings_document(model: ModelEntry) -> Dict[str, Any]:
    profile = resolve_profile(model)
    env: Dict[str, str] = {ENV_AUTH_TOKEN: model.api_key}
    env.update(profile.env)

    settings: Dict[str, Any] = {"env": env}
    if profile.permissions_default_mode:
        settings["permissions"] = {"defaultMode": profile.permissions_default_mode}
    return settings


def merge_api_key_approval(state: Dict[str, Any], api_key: str) -> Dict[str, Any]:
    merged = dict(state)
    merged["customApiKeyResponses"] = {
        "approved": [api_key],
        "rejected": [],
    }
    return merged


class SettingsSynchronizer:
    """Writes the three sinks Claude Code reads its provider from."""

    def __init__(
        self,
        *,
        home: Path,
        env_sink: Optional[EnvironmentSink] = None,
        log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._paths = RuntimeSettings(home=Path(home))
        self._log = log or DebugLogWriter.disabled()
        self._env_sink = env_sink or EnvironmentSink(persistent_writer=None, log=self._log)

    @property
    def settings_path(self) -> Path:
        return self._paths.claude_settings_file

    @property
    def state_path(self) -> Path:
        return self._paths.claude_state_file

    def sync(self, config: AppConfig) -> SyncReport:
        """Sync all sinks; raises after attempting every sink if any failed."""

        model = config.current_model_entry()
        if model is None:
            self._log.error("sync", "selected model not found", {"current_model": config.current_model})
            raise SelectedModelNotFoundError(config.current_model)

        profile = resolve_profile(model)
        report = SyncReport(model_name=model.name, base_url=profile.base_url)

        self._sync_settings(model=model, report=report)
        self._sync_state(model=model, report=report)
        self._sync_env(model=model, base_url=profile.base_url, report=report)

        self._log.info(
            "sync",
            "settings synchronized",
            {
                "model": model.name,
                "base_url": profile.base_url,
                "applied": [item.sink for item in report.applied],
                "failed": [item.sink for item in report.failed],
            },
        )
        if report.has_failures:
            failed = report.failed[0]
            raise SettingsSyncError(failed.sink, failed.path, failed.reason) from report.first_error
        return report

    def _sync_settings(self, *, model: ModelEntry, report: SyncReport) -> None:
        path = self.settings_path
        try:
            changed = write_json(path, build_settings_document(model))
        except OSError as exc:
            report.add_failed(sink=SINK_SETTINGS, path=str(path), action="write_failed", error=exc)
            return
        report.add_applied(sink=SINK_SETTINGS, path=str(path), action="updated" if changed else "unchanged")

    def _sync_state(self, *, model: ModelEntry, report: SyncReport) -> None:
        path = self.state_path
        state = load_json_object_lenient(path)
        try:
            changed = write_json(path, merge_api_key_approval(state, model.api_key))
        except OSError as exc:
            report.add_failed(sink=SINK_STATE, path=str(path), action="write_failed", error=exc)
            return
        report.add_applied(sink=SINK_STATE, path=str(path), action="updated" if changed else "unchanged")

    def _sync_env(self, *, model: ModelEntry, base_url: str, report: SyncReport) -> None:
        worker = self._env_sink.apply({ENV_AUTH_TOKEN: model.api_key, ENV_BASE_URL: base_url})
        report.add_applied(sink=SINK_ENV, path="", action="updated")
        if worker is not None:
            report.notes.append("persistent env write dispatched in background")
