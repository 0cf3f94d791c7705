"""Reset Claude Code's local state when it gets stuck on a stale provider."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable, List, Optional

from cceasy.config import RuntimeSettings
from cceasy.debug_log import DebugLogWriter
from cceasy.errors import RecoverError

ProgressCallback = Callable[[str], None]


def recover_claude_state(
    home: Path,
    progress: Optional[ProgressCallback] = None,
    log: Optional[DebugLogWriter] = None,
) -> List[Path]:
    """Remove ``~/.claude`` and ``~/.claude.json``; return the removed paths."""

    paths = RuntimeSettings(home=Path(home))
    writer = log or DebugLogWriter.disabled()
    removed: List[Path] = []

    def emit(message: str) -> None:
        writer.info("recover", message)
        if progress is not None:
            progress(message)

    emit("Starting recovery process...")

    claude_dir = paths.claude_dir
    emit("Checking directory: {0}".format(claude_dir))
    if claude_dir.exists():
        emit("Found .claude directory. Removing...")
        try:
            if claude_dir.is_dir() and not claude_dir.is_symlink():
                shutil.rmtree(claude_dir)
            else:
                claude_dir.unlink()
        except OSError as exc:
            emit("Failed to remove .claude directory: {0}".format(exc))
            raise RecoverError(str(claude_dir), str(exc), exc) from exc
        removed.append(claude_dir)
        emit("Successfully removed .claude directory.")
    else:
        emit(".claude directory not found, skipping.")

    state_file = paths.claude_state_file
    emit("Checking file: {0}".format(state_file))
    if state_file.exists():
        emit("Found .claude.json file. Removing...")
        try:
            state_file.unlink(missing_ok=True)
        except OSError as exc:
            emit("Failed to remove .claude.json file: {0}".format(exc))
            raise RecoverError(str(state_file), str(exc), exc) from exc
        removed.append(state_file)
        emit("Successfully removed .claude.json file.")
    else:
        emit(".claude.json file not found, skipping.")

    emit("Recovery process completed successfully.")
    return removed
