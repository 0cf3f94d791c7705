"""Load/save orchestration for the model config document."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional

from cceasy.config import RuntimeSettings
from cceasy.debug_log import DebugLogWriter
from cceasy.errors import CceasyError, ConfigPersistError
from cceasy.migration import SOURCE_MISSING, MigrationResult, load_config
from cceasy.schema import AppConfig
from cceasy.sync.claude_sync import SettingsSynchronizer
from cceasy.sync.env_sink import EnvironmentSink, default_persistent_writer
from cceasy.sync.types import SyncReport

ConfigObserver = Callable[[AppConfig], None]


def build_synchronizer(settings: RuntimeSettings, log: DebugLogWriter) -> SettingsSynchronizer:
    writer = default_persistent_writer(settings.home) if settings.persist_env else None
    return SettingsSynchronizer(
        home=settings.home,
        env_sink=EnvironmentSink(persistent_writer=writer, log=log),
        log=log,
    )


class ConfigStore:
    """Single owner of the config document; not safe for concurrent writers."""

    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        synchronizer: Optional[SettingsSynchronizer] = None,
        log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._settings = settings
        self._log = log or settings.build_log_writer()
        self._synchronizer = synchronizer or build_synchronizer(settings, self._log)
        self._observers: List[ConfigObserver] = []
        self._last_load: Optional[MigrationResult] = None
        self._last_sync: Optional[SyncReport] = None

    @property
    def path(self) -> Path:
        return self._settings.model_config_file

    @property
    def home(self) -> Path:
        return self._settings.home

    @property
    def last_load(self) -> Optional[MigrationResult]:
        return self._last_load

    @property
    def last_sync(self) -> Optional[SyncReport]:
        return self._last_sync

    def on_change(self, callback: ConfigObserver) -> Callable[[], None]:
        """Register an observer called after each save; returns an unsubscribe function."""

        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def load(self) -> AppConfig:
        raw = self._read_raw()
        result = load_config(raw, self._settings.home)
        self._last_load = result
        self._log.info(
            "store",
            "config loaded",
            {
                "path": str(self.path),
                "source": result.source,
                "applied": list(result.applied),
                "error": result.error,
            },
        )
        if result.source == SOURCE_MISSING:
            self.save(result.config)
        return result.config

    def save(self, config: AppConfig) -> SyncReport:
        """Sync sinks, notify observers, and persist; raises the first failure."""

        try:
            report = self._synchronizer.sync(config)
        except CceasyError as exc:
            self._log.error("store", "settings sync failed", {"error": str(exc)})
            self._last_sync = None
            self._notify(config)
            try:
                self._persist(config)
            except ConfigPersistError:
                # Already logged; the sync error is reported first.
                pass
            raise

        self._last_sync = report
        self._notify(config)
        self._persist(config)
        return report

    def startup_sync(self) -> Optional[SyncReport]:
        """Re-apply the stored selection to all sinks, as done at app launch."""

        config = self.load()
        try:
            report = self._synchronizer.sync(config)
        except CceasyError as exc:
            self._log.warn("store", "startup sync failed", {"error": str(exc)})
            return None
        self._last_sync = report
        return report

    def _read_raw(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigPersistError(
                "无法读取配置文件：{0} (cannot read config file)".format(self.path)
            ) from exc

    def _persist(self, config: AppConfig) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(config.to_json(), encoding="utf-8")
        except OSError as exc:
            self._log.error("store", "config persist failed", {"path": str(self.path), "error": str(exc)})
            raise ConfigPersistError(
                "无法写入配置文件：{0} (cannot write config file)".format(self.path)
            ) from exc

    def _notify(self, config: AppConfig) -> None:
        for observer in list(self._observers):
            try:
                observer(config.clone())
            except Exception as exc:
                # Observers are isolated from the save path.
                self._log.warn("store", "config observer failed", {"error": str(exc)})
