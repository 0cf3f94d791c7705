"""Upgrade and normalize model config documents written by older releases.

Loading is total: a missing file, malformed JSON, or a non-object root all
produce a fresh default config instead of an error. Every migration step is
idempotent, so running the loader on its own serialized output is a no-op.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from cceasy.providers.profile import (
    MINIMAX_MODEL_NAME,
    canonical_model_name,
    custom_placeholder,
    default_models,
    is_custom_placeholder_name,
    lookup_builtin,
    minimax_entry,
)
from cceasy.schema import (
    DEFAULT_PROJECT_ID,
    DEFAULT_PROJECT_NAME,
    AppConfig,
    ModelEntry,
    ProjectEntry,
)

SOURCE_MISSING = "missing"
SOURCE_MALFORMED = "malformed"
SOURCE_FILE = "file"

RawInput = Optional[Union[bytes, str]]


@dataclass
class MigrationResult:
    config: AppConfig
    source: str = SOURCE_FILE
    applied: List[str] = field(default_factory=list)
    error: str = ""

    @property
    def from_defaults(self) -> bool:
        return self.source != SOURCE_FILE


def default_config(home: Path) -> AppConfig:
    models = default_models()
    return AppConfig(
        current_model=models[0].name,
        models=models,
        projects=[_default_project(str(home))],
        current_project=DEFAULT_PROJECT_ID,
    )


def _default_project(path: str) -> ProjectEntry:
    return ProjectEntry(id=DEFAULT_PROJECT_ID, name=DEFAULT_PROJECT_NAME, path=path, yolo_mode=False)


def load_config(raw: RawInput, home: Path) -> MigrationResult:
    if raw is None:
        return MigrationResult(config=default_config(home), source=SOURCE_MISSING)

    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        parsed = json.loads(text)
    except (UnicodeDecodeError, ValueError) as exc:
        return MigrationResult(config=default_config(home), source=SOURCE_MALFORMED, error=str(exc))

    if not isinstance(parsed, dict):
        return MigrationResult(
            config=default_config(home),
            source=SOURCE_MALFORMED,
            error="json root must be an object",
        )

    config = AppConfig.from_raw(parsed)
    applied = migrate_config(config, home)
    return MigrationResult(config=config, source=SOURCE_FILE, applied=applied)


def migrate_config(config: AppConfig, home: Path) -> List[str]:
    """Normalize ``config`` in place and return the names of steps that changed it."""

    applied: List[str] = []
    steps = (
        ("current_model_fallback", _fallback_current_model),
        ("projects_from_legacy_dir", lambda cfg: _synthesize_projects(cfg, str(home))),
        ("current_project_fallback", _fallback_current_project),
        ("canonical_model_names", _canonicalize_models),
        ("builtin_url_backfill", _backfill_builtin_urls),
        ("ensure_minimax", _ensure_minimax),
        ("ensure_custom", _ensure_custom),
        ("current_model_guard", _fallback_current_model),
    )
    for name, step in steps:
        if step(config):
            applied.append(name)
    return applied


def _fallback_current_model(config: AppConfig) -> bool:
    if not config.models:
        return False
    target = canonical_model_name(config.current_model)
    if config.current_model:
        for model in config.models:
            if model.name == config.current_model or canonical_model_name(model.name) == target:
                return False
    if config.current_model == config.models[0].name:
        return False
    config.current_model = config.models[0].name
    return True


def _synthesize_projects(config: AppConfig, home: str) -> bool:
    if config.projects:
        return False
    config.projects = [_default_project(config.legacy_project_dir or home)]
    config.current_project = DEFAULT_PROJECT_ID
    return True


def _fallback_current_project(config: AppConfig) -> bool:
    if config.find_project(config.current_project) is not None:
        return False
    config.current_project = config.projects[0].id
    return True


def _canonicalize_models(config: AppConfig) -> bool:
    changed = False
    # Compare against the selection as the user wrote it, before any rename.
    selected_key = canonical_model_name(config.current_model)
    selected_was_builtin = lookup_builtin(config.current_model) is not None

    merged: Dict[str, ModelEntry] = {}
    result: List[ModelEntry] = []
    for model in config.models:
        canonical = canonical_model_name(model.name)
        if canonical != model.name:
            model.name = canonical
            changed = True
        if is_custom_placeholder_name(model.name) and not model.is_custom:
            model.is_custom = True
            changed = True

        kept = merged.get(model.name)
        if kept is None:
            merged[model.name] = model
            result.append(model)
            continue
        if not kept.api_key and model.api_key:
            kept.api_key = model.api_key
        if not kept.url and model.url:
            kept.url = model.url
        changed = True

    # Rewrite the selection in lockstep with the rename so it never dangles.
    if selected_was_builtin and config.current_model != selected_key and selected_key in merged:
        config.current_model = selected_key
        changed = True
    config.models = result
    return changed


def _backfill_builtin_urls(config: AppConfig) -> bool:
    changed = False
    for model in config.models:
        if model.url:
            continue
        profile = lookup_builtin(model.name)
        if profile is None:
            continue
        model.url = profile.base_url
        changed = True
    return changed


def _ensure_minimax(config: AppConfig) -> bool:
    for model in config.models:
        if canonical_model_name(model.name) == MINIMAX_MODEL_NAME:
            return False

    for index, model in enumerate(config.models):
        if model.is_custom:
            config.models.insert(index, minimax_entry())
            return True
    config.models.append(minimax_entry())
    return True


def _ensure_custom(config: AppConfig) -> bool:
    if any(model.is_custom for model in config.models):
        return False
    config.models.append(custom_placeholder())
    return True
