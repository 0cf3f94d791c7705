"""Provider profile table and resolver."""

from cceasy.providers.profile import (
    BUILTIN_PROVIDER_PROFILES,
    ProviderProfile,
    ResolvedProfile,
    canonical_model_name,
    default_models,
    lookup_builtin,
    resolve_profile,
)

__all__ = [
    "BUILTIN_PROVIDER_PROFILES",
    "ProviderProfile",
    "ResolvedProfile",
    "canonical_model_name",
    "default_models",
    "lookup_builtin",
    "resolve_profile",
]
