"""Report types for settings synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class SyncItemReport:
    sink: str
    path: str
    action: str
    reason: str = ""


@dataclass
class SyncReport:
    model_name: str
    base_url: str = ""
    applied: List[SyncItemReport] = field(default_factory=list)
    failed: List[SyncItemReport] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)
    first_error: Optional[BaseException] = None

    def add_applied(self, *, sink: str, path: str, action: str) -> None:
        self.applied.append(SyncItemReport(sink=sink, path=path, action=action))

    def add_failed(self, *, sink: str, path: str, action: str, error: BaseException) -> None:
        self.failed.append(SyncItemReport(sink=sink, path=path, action=action, reason=str(error)))
        if self.first_error is None:
            self.first_error = error

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)
