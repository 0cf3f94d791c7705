"""Process and OS-persistent environment variable sinks."""

from __future__ import annotations

import os
import subprocess
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional

from cceasy.debug_log import DebugLogWriter

ENVIRONMENT_D_FILE_NAME = "cceasy.conf"
_COMMAND_TIMEOUT_SEC = 60


class PersistentEnvWriter(ABC):
    """Writes user-level environment variables visible to future shells."""

    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def write(self, variables: Dict[str, str]) -> None:
        raise NotImplementedError


class _CommandEnvWriter(PersistentEnvWriter):
    @abstractmethod
    def _command(self, key: str, value: str) -> List[str]:
        raise NotImplementedError

    def _run(self, argv: List[str]) -> None:
        subprocess.run(
            argv,
            check=True,
            capture_output=True,
            timeout=_COMMAND_TIMEOUT_SEC,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )

    def write(self, variables: Dict[str, str]) -> None:
        for key, value in variables.items():
            self._run(self._command(key, value))


class SetxEnvWriter(_CommandEnvWriter):
    """Windows user environment via `setx` (slow, hence run off-thread)."""

    def name(self) -> str:
        return "setx"

    def _command(self, key: str, value: str) -> List[str]:
        return ["setx", key, value]


class LaunchctlEnvWriter(_CommandEnvWriter):
    def name(self) -> str:
        return "launchctl"

    def _command(self, key: str, value: str) -> List[str]:
        return ["launchctl", "setenv", key, value]


class EnvironmentDWriter(PersistentEnvWriter):
    """systemd user environment file under ``~/.config/environment.d``."""

    def __init__(self, home: Path) -> None:
        self._path = Path(home) / ".config" / "environment.d" / ENVIRONMENT_D_FILE_NAME

    @property
    def path(self) -> Path:
        return self._path

    def name(self) -> str:
        return "environment.d"

    def write(self, variables: Dict[str, str]) -> None:
        kept: List[str] = []
        if self._path.is_file():
            for line in self._path.read_text(encoding="utf-8").splitlines():
                key = line.split("=", 1)[0].strip()
                if key in variables:
                    continue
                kept.append(line)
        for key, value in variables.items():
            kept.append("{0}={1}".format(key, _quote_env_value(value)))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text("\n".join(kept) + "\n", encoding="utf-8")


def _quote_env_value(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return '"{0}"'.format(escaped)


def default_persistent_writer(home: Path, platform: Optional[str] = None) -> PersistentEnvWriter:
    target = platform or sys.platform
    if target.startswith("win"):
        return SetxEnvWriter()
    if target == "darwin":
        return LaunchctlEnvWriter()
    return EnvironmentDWriter(home)


class EnvironmentSink:
    """Applies variables to this process now and to the OS store in the background.

    The persistent write is fire-and-forget: callers may only rely on the
    in-process environment being updated when :meth:`apply` returns. The
    worker is not a daemon, so interpreter shutdown waits for it to finish.
    """

    def __init__(
        self,
        *,
        persistent_writer: Optional[PersistentEnvWriter],
        log: Optional[DebugLogWriter] = None,
        environ: Optional[MutableMapping[str, str]] = None,
    ) -> None:
        self._persistent_writer = persistent_writer
        self._log = log or DebugLogWriter.disabled()
        self._environ = environ if environ is not None else os.environ

    def apply(self, variables: Dict[str, str]) -> Optional[threading.Thread]:
        for key, value in variables.items():
            self._environ[key] = value

        if self._persistent_writer is None:
            return None
        worker = threading.Thread(
            target=self._persist,
            args=(dict(variables),),
            name="cceasy-persist-env",
            daemon=False,
        )
        worker.start()
        return worker

    def _persist(self, variables: Dict[str, str]) -> None:
        writer = self._persistent_writer
        if writer is None:
            return
        try:
            writer.write(variables)
        except Exception as exc:
            self._log.warn(
                "env",
                "persistent env write failed",
                {"writer": writer.name(), "keys": sorted(variables), "error": str(exc)},
            )
            return
        self._log.info("env", "persistent env updated", {"writer": writer.name(), "keys": sorted(variables)})
