"""Claude Code settings synchronization."""

from cceasy.sync.claude_sync import (
    SettingsSynchronizer,
    build_settings_document,
    merge_api_key_approval,
)
from cceasy.sync.env_sink import (
    EnvironmentDWriter,
    EnvironmentSink,
    LaunchctlEnvWriter,
    PersistentEnvWriter,
    SetxEnvWriter,
    default_persistent_writer,
)
from cceasy.sync.types import SyncItemReport, SyncReport

__all__ = [
    "EnvironmentDWriter",
    "EnvironmentSink",
    "LaunchctlEnvWriter",
    "PersistentEnvWriter",
    "SetxEnvWriter",
    "SettingsSynchronizer",
    "SyncItemReport",
    "SyncReport",
    "build_settings_document",
    "default_persistent_writer",
    "merge_api_key_approval",
]
