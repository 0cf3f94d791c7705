"""Built-in provider profiles and resolution of Claude Code env variables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from cceasy.schema import CUSTOM_MODEL_NAME, ModelEntry


ENV_AUTH_TOKEN = "ANTHROPIC_AUTH_TOKEN"
ENV_BASE_URL = "ANTHROPIC_BASE_URL"
ENV_MODEL = "ANTHROPIC_MODEL"
ENV_DEFAULT_HAIKU_MODEL = "ANTHROPIC_DEFAULT_HAIKU_MODEL"
ENV_DEFAULT_OPUS_MODEL = "ANTHROPIC_DEFAULT_OPUS_MODEL"
ENV_DEFAULT_SONNET_MODEL = "ANTHROPIC_DEFAULT_SONNET_MODEL"
ENV_SMALL_FAST_MODEL = "ANTHROPIC_SMALL_FAST_MODEL"

MODEL_SLOT_VARS = (
    ENV_DEFAULT_HAIKU_MODEL,
    ENV_DEFAULT_OPUS_MODEL,
    ENV_DEFAULT_SONNET_MODEL,
    ENV_MODEL,
)


@dataclass(frozen=True)
class ProviderProfile:
    """Fixed endpoint and model ids for one hosted provider."""

    name: str
    base_url: str
    model_id: str
    aliases: Tuple[str, ...] = ()
    extra_env: Dict[str, str] = field(default_factory=dict)
    permissions_default_mode: str = ""

    def matches(self, name: str) -> bool:
        key = str(name or "").strip().lower()
        if not key:
            return False
        return key == self.name.lower() or key in self.aliases


@dataclass(frozen=True)
class ResolvedProfile:
    base_url: str
    env: Dict[str, str]
    permissions_default_mode: str = ""
    builtin: bool = True


BUILTIN_PROVIDER_PROFILES: Dict[str, ProviderProfile] = {
    "GLM": ProviderProfile(
        name="GLM",
        aliases=("glm", "glm-4.7"),
        base_url="https://open.bigmodel.cn/api/anthropic",
        model_id="glm-4.7",
        permissions_default_mode="dontAsk",
    ),
    "kimi": ProviderProfile(
        name="kimi",
        aliases=("kimi",),
        base_url="https://api.kimi.com/coding",
        model_id="kimi-k2-thinking",
    ),
    "doubao": ProviderProfile(
        name="doubao",
        aliases=("doubao",),
        base_url="https://ark.cn-beijing.volces.com/api/coding",
        model_id="doubao-seed-code-preview-latest",
    ),
    "MiniMax": ProviderProfile(
        name="MiniMax",
        aliases=("minimax",),
        base_url="https://api.minimaxi.com/anthropic",
        model_id="MiniMax-M2.1",
        extra_env={
            ENV_SMALL_FAST_MODEL: "MiniMax-M2.1",
            "API_TIMEOUT_MS": "3000000",
            "CLAUDE_CODE_DISABLE_NONESSENTIAL_TRAFFIC": "1",
        },
    ),
}

MINIMAX_MODEL_NAME = "MiniMax"
DEFAULT_MODEL_ORDER = ("GLM", "kimi", "doubao", "MiniMax")


def lookup_builtin(name: str) -> Optional[ProviderProfile]:
    for profile in BUILTIN_PROVIDER_PROFILES.values():
        if profile.matches(name):
            return profile
    return None


def canonical_model_name(name: str) -> str:
    """Return the display name a historical spelling collapses to."""

    profile = lookup_builtin(name)
    if profile is None:
        return name
    return profile.name


def is_custom_placeholder_name(name: str) -> bool:
    return str(name or "").strip().lower() == CUSTOM_MODEL_NAME.lower()


def resolve_profile(entry: ModelEntry) -> ResolvedProfile:
    profile = lookup_builtin(entry.name)
    if profile is None:
        # User-defined provider: endpoint and model id come from the entry.
        return ResolvedProfile(
            base_url=entry.url,
            env={ENV_BASE_URL: entry.url, ENV_MODEL: entry.name},
            builtin=False,
        )

    env: Dict[str, str] = {ENV_BASE_URL: profile.base_url}
    for var_name in MODEL_SLOT_VARS:
        env[var_name] = profile.model_id
    env.update(profile.extra_env)
    return ResolvedProfile(
        base_url=profile.base_url,
        env=env,
        permissions_default_mode=profile.permissions_default_mode,
    )


def default_models() -> List[ModelEntry]:
    models = [
        ModelEntry(name=name, url=BUILTIN_PROVIDER_PROFILES[name].base_url)
        for name in DEFAULT_MODEL_ORDER
    ]
    models.append(custom_placeholder())
    return models


def minimax_entry() -> ModelEntry:
    profile = BUILTIN_PROVIDER_PROFILES[MINIMAX_MODEL_NAME]
    return ModelEntry(name=profile.name, url=profile.base_url)


def custom_placeholder() -> ModelEntry:
    return ModelEntry(name=CUSTOM_MODEL_NAME, is_custom=True)
