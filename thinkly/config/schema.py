"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings

from thinkly.config.defaults import (
    DEFAULT_CONVERSATION,
    DEFAULT_OLLAMA_API_BASE,
    DEFAULT_STORAGE,
    DEFAULT_SUGGESTIONS,
    default_model_profiles,
    default_model_routes,
)


def _default_model_profiles() -> dict[str, "ModelProfile"]:
    return {
        name: ModelProfile.model_validate(payload)
        for name, payload in default_model_profiles().items()
    }


class ModelProfile(BaseModel):
    """One model profile used for a specific conversation route."""

    model_config = ConfigDict(extra="ignore")

    kind: Literal["chat"] = "chat"
    model: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None
    timeout_ms: int | None = None


class ModelRoutingConfig(BaseModel):
    """Route-oriented model configuration."""

    model_config = ConfigDict(extra="ignore")

    profiles: dict[str, ModelProfile] = Field(default_factory=_default_model_profiles)
    routes: dict[str, str] = Field(default_factory=default_model_routes)

    @model_validator(mode="after")
    def _validate_routes(self) -> "ModelRoutingConfig":
        missing = sorted({name for name in self.routes.values() if name not in self.profiles})
        if missing:
            raise ValueError("models.routes references unknown profiles: " + ", ".join(missing))
        return self

    def resolve(self, route_key: str) -> tuple[str, ModelProfile]:
        """Return (profile_name, profile) for one route key."""
        route_name = self.routes.get(route_key)
        if not route_name:
            raise KeyError(f"models.routes missing '{route_key}'")
        profile = self.profiles.get(route_name)
        if profile is None:
            raise KeyError(f"models.routes['{route_key}'] points to missing profile '{route_name}'")
        if not profile.model:
            raise KeyError(f"profile '{route_name}' does not define a model")
        return route_name, profile


class ProviderConfig(BaseModel):
    """Provider credential configuration."""

    api_key: str = ""
    api_base: str | None = None
    extra_headers: dict[str, str] | None = None  # e.g. auth for a proxied Ollama


class ProvidersConfig(BaseModel):
    """Configuration for LLM providers."""

    ollama: ProviderConfig = Field(
        default_factory=lambda: ProviderConfig(api_base=DEFAULT_OLLAMA_API_BASE)
    )
    openai: ProviderConfig = Field(default_factory=ProviderConfig)
    anthropic: ProviderConfig = Field(default_factory=ProviderConfig)
    openrouter: ProviderConfig = Field(default_factory=ProviderConfig)


# (provider name, model keywords, needs api key)
_PROVIDER_KEYWORDS: tuple[tuple[str, tuple[str, ...], bool], ...] = (
    ("ollama", ("ollama/", "ollama_chat/"), False),
    ("openrouter", ("openrouter/",), True),
    ("anthropic", ("anthropic/", "claude"), True),
    ("openai", ("openai/", "gpt"), True),
)


class ConversationConfig(BaseModel):
    """Conversation state-machine tuning."""

    model_config = ConfigDict(extra="ignore")

    min_user_turns: int = Field(default=int(DEFAULT_CONVERSATION["min_user_turns"]), ge=1)
    injection_debounce_ms: int = Field(
        default=int(DEFAULT_CONVERSATION["injection_debounce_ms"]), ge=0
    )


class SuggestionsConfig(BaseModel):
    """Suggestion scoring constants. Fixed for the lifetime of one process."""

    model_config = ConfigDict(extra="ignore")

    threshold: float = float(DEFAULT_SUGGESTIONS["threshold"])
    max_results: int = Field(default=int(DEFAULT_SUGGESTIONS["max_results"]), ge=1)
    recency_days: int = Field(default=int(DEFAULT_SUGGESTIONS["recency_days"]), ge=0)
    recency_boost: float = float(DEFAULT_SUGGESTIONS["recency_boost"])


class StorageConfig(BaseModel):
    """Where decision memories and their vectors are persisted."""

    model_config = ConfigDict(extra="ignore")

    data_dir: str = str(DEFAULT_STORAGE["data_dir"])
    memories_key: str = str(DEFAULT_STORAGE["memories_key"])
    vectors_key: str = str(DEFAULT_STORAGE["vectors_key"])


class Config(BaseSettings):
    """Root configuration for thinkly."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, env_prefix="THINKLY_", env_nested_delimiter="__")

    config_version: int = 1
    models: ModelRoutingConfig = Field(default_factory=ModelRoutingConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    suggestions: SuggestionsConfig = Field(default_factory=SuggestionsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @property
    def storage_path(self) -> Path:
        """Get expanded storage directory."""
        from thinkly.utils.helpers import get_storage_path

        return get_storage_path(self.storage.data_dir)

    def get_provider(self, model: str) -> ProviderConfig | None:
        """Get matched provider config for a model. Falls back to first provider with a key."""
        model_lower = model.lower()
        for name, keywords, needs_key in _PROVIDER_KEYWORDS:
            p = getattr(self.providers, name)
            if any(model_lower.startswith(kw) or kw in model_lower for kw in keywords):
                if p.api_key or not needs_key:
                    return p
        for name, _, needs_key in _PROVIDER_KEYWORDS:
            p = getattr(self.providers, name)
            if needs_key and p.api_key:
                return p
        return None
