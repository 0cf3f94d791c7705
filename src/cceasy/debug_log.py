"""Structured debug log writer with size-based rotation and redaction."""

from __future__ import annotations

import json
import re
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional


_REDACTED = "***REDACTED***"
_SENSITIVE_KEY_RE = re.compile(
    r"(password|secret|token|authorization|cookie|api[_-]?key|access[_-]?key|private[_-]?key)",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(?i)\bbearer\s+([^\s,;]+)")
_KEY_VALUE_RE = re.compile(
    r"(?i)\b(api[_-]?key|access[_-]?key|token|secret|authorization|cookie|private[_-]?key)\b\s*[:=]\s*([^\s,;]+)"
)
_SK_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9]{8,}\b")

LOG_FILE_NAME = "debug.log.jsonl"


def now_ms() -> int:
    return int(time.time() * 1000)


class DebugLogWriter:
    """Best-effort JSONL debug log writer with rotation."""

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool,
        max_file_bytes: int = 10 * 1024 * 1024,
        max_files: int = 5,
        redaction: str = "default",
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._enabled = bool(enabled)
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        self._redaction = str(redaction or "default").strip().lower()
        if self._redaction not in {"none", "default", "strict"}:
            self._redaction = "default"
        self._write_errors = 0
        self._lock = threading.Lock()

    @classmethod
    def disabled(cls) -> "DebugLogWriter":
        return cls(logs_dir=Path("."), enabled=False)

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / LOG_FILE_NAME

    @property
    def write_errors(self) -> int:
        return self._write_errors

    def info(self, component: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.write_entry(level="info", component=component, message=message, data=data)

    def warn(self, component: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.write_entry(level="warn", component=component, message=message, data=data)

    def error(self, component: str, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.write_entry(level="error", component=component, message=message, data=data)

    def write_entry(
        self,
        *,
        level: str,
        component: str,
        message: str,
        kind: str = "diagnostic",
        data: Optional[Dict[str, Any]] = None,
        ts_ms: Optional[int] = None,
    ) -> None:
        if not self._enabled:
            return

        record = {
            "ts_ms": int(ts_ms if ts_ms is not None else now_ms()),
            "level": str(level or "info"),
            "component": str(component or "app"),
            "kind": str(kind or "diagnostic"),
            "message": str(message or ""),
            "data": dict(data or {}),
        }

        if self._redaction != "none":
            record["message"] = self._redact_text(record["message"])
            if self._redaction == "strict":
                record["data"] = self._strict_redact(record["data"])
            else:
                record["data"] = self._redact_payload(record["data"])

        with self._lock:
            try:
                line = json.dumps(
                    record,
                    ensure_ascii=True,
                    separators=(",", ":"),
                    default=str,
                )
                payload = (line + "\n").encode("utf-8")
                self._logs_dir.mkdir(parents=True, exist_ok=True)
                self._rotate_if_needed_locked(len(payload))
                with self.active_log_file.open("ab") as fp:
                    fp.write(payload)
            except Exception:
                self._write_errors += 1

    def status(self) -> Dict[str, Any]:
        with self._lock:
            active = self.active_log_file
            if not self._enabled:
                return {
                    "logs_enabled": False,
                    "logs_active_file": str(active),
                    "logs_active_size_bytes": 0,
                    "logs_rotated_files": [],
                    "logs_write_errors": self._write_errors,
                }

            active_size = active.stat().st_size if active.exists() else 0
            rotated = []
            for index in range(1, self._max_files + 1):
                path = self._rotated_file(index)
                if path.exists():
                    rotated.append(str(path))
            return {
                "logs_enabled": True,
                "logs_active_file": str(active),
                "logs_active_size_bytes": int(active_size),
                "logs_rotated_files": rotated,
                "logs_write_errors": int(self._write_errors),
            }

    def _rotate_if_needed_locked(self, incoming_size: int) -> None:
        current_size = 0
        if self.active_log_file.exists():
            current_size = int(self.active_log_file.stat().st_size)
        if current_size + int(incoming_size) <= self._max_file_bytes:
            return
        self._rotate_locked()

    def _rotate_locked(self) -> None:
        oldest = self._rotated_file(self._max_files)
        oldest.unlink(missing_ok=True)

        for index in range(self._max_files - 1, 0, -1):
            src = self._rotated_file(index)
            dst = self._rotated_file(index + 1)
            if not src.exists():
                continue
            src.replace(dst)

        if self.active_log_file.exists():
            self.active_log_file.replace(self._rotated_file(1))

    def _rotated_file(self, index: int) -> Path:
        return Path("{0}.{1}".format(self.active_log_file, index))

    def _redact_payload(self, value: Any) -> Any:
        if isinstance(value, dict):
            out: Dict[str, Any] = {}
            for key, item in value.items():
                if _SENSITIVE_KEY_RE.search(str(key)):
                    out[key] = _REDACTED
                else:
                    out[key] = self._redact_payload(item)
            return out
        if isinstance(value, list):
            return [self._redact_payload(item) for item in value]
        if isinstance(value, str):
            return self._redact_text(value)
        return value

    def _strict_redact(self, value: Any) -> Any:
        if isinstance(value, dict):
            out: Dict[str, Any] = {}
            for key, item in value.items():
                if _SENSITIVE_KEY_RE.search(str(key)):
                    out[key] = _REDACTED
                    continue
                if isinstance(item, (dict, list)):
                    out[key] = self._strict_redact(item)
                    continue
                out[key] = _REDACTED
            return out
        if isinstance(value, list):
            return [self._strict_redact(item) for item in value]
        return _REDACTED

    @staticmethod
    def _redact_text(text: str) -> str:
        if not text:
            return text
        masked = _BEARER_RE.sub("Bearer {0}".format(_REDACTED), text)
        masked = _KEY_VALUE_RE.sub(
            lambda m: "{0}={1}".format(m.group(1), _REDACTED),
            masked,
        )
        masked = _SK_KEY_RE.sub(_REDACTED, masked)
        return masked
