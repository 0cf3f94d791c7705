"""Typed model for the persisted model/project configuration document."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


DEFAULT_PROJECT_ID = "default"
DEFAULT_PROJECT_NAME = "Project 1"
CUSTOM_MODEL_NAME = "Custom"


def _safe_str(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _safe_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return False


def _safe_list(value: object) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class ModelEntry:
    name: str
    url: str = ""
    api_key: str = ""
    is_custom: bool = False

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ModelEntry":
        return cls(
            name=_safe_str(raw.get("model_name")),
            url=_safe_str(raw.get("model_url")),
            api_key=_safe_str(raw.get("api_key")),
            is_custom=_safe_bool(raw.get("is_custom")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_name": self.name,
            "model_url": self.url,
            "api_key": self.api_key,
            "is_custom": self.is_custom,
        }

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key.strip())


@dataclass
class ProjectEntry:
    id: str
    name: str
    path: str = ""
    yolo_mode: bool = False

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ProjectEntry":
        return cls(
            id=_safe_str(raw.get("id")),
            name=_safe_str(raw.get("name")),
            path=_safe_str(raw.get("path")),
            yolo_mode=_safe_bool(raw.get("yolo_mode")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "yolo_mode": self.yolo_mode,
        }


@dataclass
class AppConfig:
    """Root document stored at ``~/.claude_model_config.json``."""

    current_model: str = ""
    models: List[ModelEntry] = field(default_factory=list)
    projects: List[ProjectEntry] = field(default_factory=list)
    current_project: str = ""
    # Deprecated single-project directory; only read as a migration source.
    legacy_project_dir: str = ""

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "AppConfig":
        return cls(
            current_model=_safe_str(raw.get("current_model")),
            models=[ModelEntry.from_raw(item) for item in _safe_list(raw.get("models"))],
            projects=[ProjectEntry.from_raw(item) for item in _safe_list(raw.get("projects"))],
            current_project=_safe_str(raw.get("current_project")),
            legacy_project_dir=_safe_str(raw.get("project_dir")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_model": self.current_model,
            "project_dir": self.legacy_project_dir,
            "models": [item.to_dict() for item in self.models],
            "projects": [item.to_dict() for item in self.projects],
            "current_project": self.current_project,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2) + "\n"

    def clone(self) -> "AppConfig":
        return copy.deepcopy(self)

    def find_model(self, name: str) -> Optional[ModelEntry]:
        for model in self.models:
            if model.name == name:
                return model
        return None

    def find_project(self, project_id: str) -> Optional[ProjectEntry]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def current_model_entry(self) -> Optional[ModelEntry]:
        return self.find_model(self.current_model)

    def current_project_entry(self) -> Optional[ProjectEntry]:
        return self.find_project(self.current_project)

    @property
    def model_names(self) -> List[str]:
        return [model.name for model in self.models]

    @property
    def project_ids(self) -> List[str]:
        return [project.id for project in self.projects]
