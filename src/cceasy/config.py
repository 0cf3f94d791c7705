"""Runtime settings and path resolution for cceasy."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from cceasy.debug_log import DebugLogWriter
from cceasy.errors import RuntimeSettingsError

HOME_ENV_VAR = "CCEASY_HOME"
APP_DIR_NAME = ".cceasy"
RUNTIME_CONFIG_FILE_NAME = "config.toml"
MODEL_CONFIG_FILE_NAME = ".claude_model_config.json"
CLAUDE_DIR_NAME = ".claude"
CLAUDE_SETTINGS_FILE_NAME = "settings.json"
CLAUDE_STATE_FILE_NAME = ".claude.json"

DEFAULT_PERSIST_ENV = True
DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_MAX_FILE_BYTES = 2 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 3
DEFAULT_LOGS_REDACTION = "default"
ALLOWED_LOG_REDACTION = ("default", "none", "strict")


@dataclass
class RuntimeSettings:
    """Resolved settings for one process."""

    home: Path
    persist_env: bool = DEFAULT_PERSIST_ENV
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION

    @property
    def app_dir(self) -> Path:
        return self.home / APP_DIR_NAME

    @property
    def runtime_config_file(self) -> Path:
        return self.app_dir / RUNTIME_CONFIG_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.app_dir / "logs"

    @property
    def model_config_file(self) -> Path:
        return self.home / MODEL_CONFIG_FILE_NAME

    @property
    def claude_dir(self) -> Path:
        return self.home / CLAUDE_DIR_NAME

    @property
    def claude_settings_file(self) -> Path:
        return self.claude_dir / CLAUDE_SETTINGS_FILE_NAME

    @property
    def claude_state_file(self) -> Path:
        return self.home / CLAUDE_STATE_FILE_NAME

    def build_log_writer(self) -> DebugLogWriter:
        return DebugLogWriter(
            logs_dir=self.logs_dir,
            enabled=self.logs_enabled,
            max_file_bytes=self.logs_max_file_bytes,
            max_files=self.logs_max_files,
            redaction=self.logs_redaction,
        )


def resolve_home(home: Optional[Path] = None) -> Path:
    if home is not None:
        return Path(home).expanduser()
    override = str(os.environ.get(HOME_ENV_VAR) or "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home()


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_positive_int_or_default(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_redaction(value: object, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in ALLOWED_LOG_REDACTION:
        return default
    return normalized


def _parse_runtime_settings(home: Path, data: Dict[str, object]) -> RuntimeSettings:
    env = data.get("env") if isinstance(data.get("env"), dict) else {}
    logs = data.get("logs") if isinstance(data.get("logs"), dict) else {}
    return RuntimeSettings(
        home=home,
        persist_env=_safe_bool(env.get("persist"), DEFAULT_PERSIST_ENV),  # type: ignore[union-attr]
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),  # type: ignore[union-attr]
        logs_max_file_bytes=_safe_positive_int_or_default(
            logs.get("max_file_bytes"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILE_BYTES,
        ),
        logs_max_files=_safe_positive_int_or_default(
            logs.get("max_files"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILES,
        ),
        logs_redaction=_safe_redaction(logs.get("redaction"), DEFAULT_LOGS_REDACTION),  # type: ignore[union-attr]
    )


def _render_runtime_settings(settings: RuntimeSettings) -> str:
    lines = [
        "# cceasy runtime settings",
        "",
        "[env]",
        "# Also write ANTHROPIC_AUTH_TOKEN / ANTHROPIC_BASE_URL to the user environment store.",
        "persist = {0}".format(str(bool(settings.persist_env)).lower()),
        "",
        "[logs]",
        "enabled = {0}".format(str(bool(settings.logs_enabled)).lower()),
        "max_file_bytes = {0}".format(settings.logs_max_file_bytes),
        "max_files = {0}".format(settings.logs_max_files),
        'redaction = "{0}"'.format(_safe_redaction(settings.logs_redaction, DEFAULT_LOGS_REDACTION)),
        "",
    ]
    return "\n".join(lines)


def load_runtime_settings(home: Optional[Path] = None) -> RuntimeSettings:
    """Resolve runtime settings; a missing or invalid file yields defaults."""

    resolved_home = resolve_home(home)
    config_file = resolved_home / APP_DIR_NAME / RUNTIME_CONFIG_FILE_NAME
    if not config_file.is_file():
        return RuntimeSettings(home=resolved_home)

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return RuntimeSettings(home=resolved_home)

    if not isinstance(parsed, dict):
        return RuntimeSettings(home=resolved_home)
    return _parse_runtime_settings(resolved_home, parsed)


def initialize_runtime_config(home: Optional[Path] = None, force: bool = False) -> Path:
    settings = RuntimeSettings(home=resolve_home(home))
    config_file = settings.runtime_config_file
    if config_file.exists() and not force:
        raise RuntimeSettingsError(
            "配置文件已存在：{0} (runtime config already exists)".format(config_file)
        )
    try:
        settings.app_dir.mkdir(parents=True, exist_ok=True)
        config_file.write_text(_render_runtime_settings(settings), encoding="utf-8")
    except OSError as exc:
        raise RuntimeSettingsError(
            "无法写入配置文件：{0} (cannot write runtime config)".format(config_file)
        ) from exc
    return config_file
