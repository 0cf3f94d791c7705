"""Model and project edits applied before a save.

Every function returns a new :class:`AppConfig`; the input is left untouched
so a rejected edit never leaves half-applied state behind.
"""

from __future__ import annotations

import secrets
import string
from typing import Callable, List, Optional, Sequence

from cceasy.errors import (
    ApiKeyMissingError,
    ModelValidationError,
    ProjectValidationError,
    UnknownModelError,
    UnknownProjectError,
)
from cceasy.providers.profile import canonical_model_name, is_custom_placeholder_name, lookup_builtin
from cceasy.schema import AppConfig, ModelEntry, ProjectEntry

PROJECT_NAME_PREFIX = "Project"
PROJECT_ID_LENGTH = 9
YOLO_FLAG = "--dangerously-skip-permissions"
CLAUDE_COMMAND = "claude"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_project_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(PROJECT_ID_LENGTH))


def _require_model(config: AppConfig, name: str) -> ModelEntry:
    model = config.find_model(name)
    if model is None:
        raise UnknownModelError(name)
    return model


def _require_project(config: AppConfig, project_id: str) -> ProjectEntry:
    project = config.find_project(project_id)
    if project is None:
        raise UnknownProjectError(project_id)
    return project


def switch_model(config: AppConfig, name: str) -> AppConfig:
    """Select ``name``; a provider without an API key cannot be activated."""

    updated = config.clone()
    model = _require_model(updated, name)
    if not model.has_api_key:
        raise ApiKeyMissingError(name)
    updated.current_model = model.name
    return updated


def set_api_key(config: AppConfig, name: str, api_key: str) -> AppConfig:
    updated = config.clone()
    _require_model(updated, name).api_key = str(api_key or "").strip()
    return updated


def set_model_url(config: AppConfig, name: str, url: str) -> AppConfig:
    updated = config.clone()
    _require_model(updated, name).url = str(url or "").strip()
    return updated


def rename_model(config: AppConfig, old_name: str, new_name: str) -> AppConfig:
    """Rename a custom entry, keeping the selection on it when it was active."""

    target = str(new_name or "").strip()
    updated = config.clone()
    model = _require_model(updated, old_name)
    if not model.is_custom:
        raise ModelValidationError(
            "内置模型不能改名：{0} (built-in providers cannot be renamed)".format(old_name)
        )
    if not target:
        raise ModelValidationError("模型名称不能为空。 (Model name cannot be empty.)")
    if target == model.name:
        return updated
    # Built-in spellings and the placeholder name are rewritten on load.
    if lookup_builtin(target) is not None or is_custom_placeholder_name(target):
        raise ModelValidationError(
            "名称与内置模型冲突：{0} (name is reserved for a built-in provider)".format(target)
        )
    target_key = canonical_model_name(target).lower()
    for other in updated.models:
        if other is not model and canonical_model_name(other.name).lower() == target_key:
            raise ModelValidationError("模型名称重复：{0} (duplicate model name)".format(target))

    if updated.current_model == model.name:
        updated.current_model = target
    model.name = target
    return updated


def switch_project(config: AppConfig, project_id: str) -> AppConfig:
    updated = config.clone()
    updated.current_project = _require_project(updated, project_id).id
    return updated


def _current_project(config: AppConfig) -> ProjectEntry:
    project = config.current_project_entry()
    if project is None:
        if not config.projects:
            raise UnknownProjectError(config.current_project)
        return config.projects[0]
    return project


def set_project_path(config: AppConfig, path: str) -> AppConfig:
    updated = config.clone()
    project = _current_project(updated)
    project.path = str(path)
    # Older releases still read the single-project field.
    updated.legacy_project_dir = str(path)
    return updated


def set_yolo_mode(config: AppConfig, enabled: bool) -> AppConfig:
    updated = config.clone()
    _current_project(updated).yolo_mode = bool(enabled)
    return updated


def next_project_name(projects: Sequence[ProjectEntry]) -> str:
    taken = {project.name for project in projects}
    index = 1
    while True:
        candidate = "{0} {1}".format(PROJECT_NAME_PREFIX, index)
        if candidate not in taken:
            return candidate
        index += 1


def add_project(
    config: AppConfig,
    home: str,
    id_factory: Optional[Callable[[], str]] = None,
) -> AppConfig:
    make_id = id_factory or new_project_id
    updated = config.clone()
    project_id = make_id()
    while updated.find_project(project_id) is not None:
        project_id = make_id()
    updated.projects.append(
        ProjectEntry(
            id=project_id,
            name=next_project_name(updated.projects),
            path=str(home),
            yolo_mode=False,
        )
    )
    return updated


def delete_project(config: AppConfig, project_id: str) -> AppConfig:
    updated = config.clone()
    _require_project(updated, project_id)
    if len(updated.projects) <= 1:
        raise ProjectValidationError(
            "至少需要保留一个项目。 (At least one project is required.)"
        )
    updated.projects = [project for project in updated.projects if project.id != project_id]
    if updated.find_project(updated.current_project) is None:
        updated.current_project = updated.projects[0].id
    return updated


def rename_project(config: AppConfig, project_id: str, name: str) -> AppConfig:
    updated = config.clone()
    _require_project(updated, project_id).name = str(name or "").strip()
    validate_projects(updated.projects)
    return updated


def validate_projects(projects: Sequence[ProjectEntry]) -> None:
    names: List[str] = [project.name.strip() for project in projects]
    if any(not name for name in names):
        raise ProjectValidationError("项目名称不能为空。 (Project name cannot be empty.)")
    seen = set()
    for name in names:
        if name in seen:
            raise ProjectValidationError(
                "项目名称重复：{0} (Duplicate project names are not allowed.)".format(name)
            )
        seen.add(name)


def launch_arguments(project: ProjectEntry) -> List[str]:
    args = [CLAUDE_COMMAND]
    if project.yolo_mode:
        args.append(YOLO_FLAG)
    return args
