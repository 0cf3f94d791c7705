"""Error types shared across the config store, synchronizer, and CLI."""

from __future__ import annotations

from typing import Optional


class CceasyError(RuntimeError):
    """Base class for all cceasy failures."""


class SelectedModelNotFoundError(CceasyError):
    """Raised when `current_model` does not name any configured model."""

    def __init__(self, model_name: str) -> None:
        self.model_name = model_name
        super().__init__(
            "未找到当前选择的模型：{0} (selected model not found)".format(model_name or "<empty>")
        )


class SettingsSyncError(CceasyError):
    """Raised when one of the Claude settings sinks could not be written."""

    def __init__(self, sink: str, path: str, reason: str) -> None:
        self.sink = sink
        self.path = path
        self.reason = reason
        super().__init__(
            "同步失败：{0} {1}：{2} (settings sync failed)".format(sink, path, reason)
        )


class ConfigPersistError(CceasyError):
    """Raised when the model config document cannot be read or written."""


class ApiKeyMissingError(CceasyError):
    def __init__(self, model_name: str) -> None:
        self.model_name = model_name
        super().__init__(
            "请先配置 API Key：{0} (configure the API key first)".format(model_name)
        )


class UnknownModelError(CceasyError):
    def __init__(self, model_name: str) -> None:
        self.model_name = model_name
        super().__init__("未知模型：{0} (unknown model)".format(model_name or "<empty>"))


class UnknownProjectError(CceasyError):
    def __init__(self, project_ref: str) -> None:
        self.project_ref = project_ref
        super().__init__("未知项目：{0} (unknown project)".format(project_ref or "<empty>"))


class ProjectValidationError(CceasyError):
    """Raised when an edited project list breaks naming rules."""


class ModelValidationError(CceasyError):
    """Raised when a model edit breaks naming rules."""


class RecoverError(CceasyError):
    def __init__(self, path: str, reason: str, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.reason = reason
        self.cause = cause
        super().__init__("恢复失败：{0}：{1} (recovery failed)".format(path, reason))


class RuntimeSettingsError(CceasyError):
    """Raised when the runtime settings directory cannot be initialized."""
