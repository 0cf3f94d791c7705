"""JSON file helpers shared by the settings sinks."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional


def render_json(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def read_text_or_none(path: Path) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def load_json_object_lenient(path: Path) -> Dict[str, Any]:
    """Read a JSON object, treating absence or unparsable content as empty."""

    raw = read_text_or_none(Path(path).expanduser())
    if raw is None or not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        return {}
    if not isinstance(payload, dict):
        return {}
    return payload


def write_json(path: Path, payload: Dict[str, Any]) -> bool:
    """Write pretty JSON, creating parent directories; return whether content changed."""

    resolved = Path(path).expanduser()
    rendered = render_json(payload)
    if resolved.is_file() and read_text_or_none(resolved) == rendered:
        return False
    resolved.parent.mkdir(parents=True, exist_ok=True)
    resolved.write_text(rendered, encoding="utf-8")
    return True
