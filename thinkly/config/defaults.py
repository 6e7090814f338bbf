"""Centralized opinionated defaults for generated/migrated config files."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

DEFAULT_CHAT_MODEL = "ollama/llama3.1:8b"
DEFAULT_OLLAMA_API_BASE = "http://localhost:11434"

DEFAULT_MODEL_PROFILES: dict[str, dict[str, Any]] = {
    "conversation_default": {
        "kind": "chat",
        "model": DEFAULT_CHAT_MODEL,
        "max_tokens": 512,
        "temperature": 0.7,
        "timeout_ms": 120000,
    },
    "extraction_strict": {
        "kind": "chat",
        "model": DEFAULT_CHAT_MODEL,
        "max_tokens": 600,
        "temperature": 0.0,
        "timeout_ms": 120000,
    },
    "summary_short": {
        "kind": "chat",
        "model": DEFAULT_CHAT_MODEL,
        "max_tokens": 80,
        "temperature": 0.2,
        "timeout_ms": 60000,
    },
}

DEFAULT_MODEL_ROUTES: dict[str, str] = {
    "conversation.reply": "conversation_default",
    "conversation.advise": "conversation_default",
    "conversation.reflect": "conversation_default",
    "conversation.inject": "conversation_default",
    "conversation.extract": "extraction_strict",
    "memory.summarize": "summary_short",
}

DEFAULT_CONVERSATION: dict[str, Any] = {
    "min_user_turns": 3,
    "injection_debounce_ms": 600,
}

DEFAULT_SUGGESTIONS: dict[str, Any] = {
    "threshold": 2.0,
    "max_results": 3,
    "recency_days": 30,
    "recency_boost": 1.0,
}

DEFAULT_STORAGE: dict[str, Any] = {
    "data_dir": "data",
    "memories_key": "thinkly_memories",
    "vectors_key": "thinkly_vectors",
}


def default_model_profiles() -> dict[str, dict[str, Any]]:
    return deepcopy(DEFAULT_MODEL_PROFILES)


def default_model_routes() -> dict[str, str]:
    return dict(DEFAULT_MODEL_ROUTES)


def default_conversation() -> dict[str, Any]:
    return deepcopy(DEFAULT_CONVERSATION)


def default_suggestions() -> dict[str, Any]:
    return deepcopy(DEFAULT_SUGGESTIONS)


def default_storage() -> dict[str, Any]:
    return deepcopy(DEFAULT_STORAGE)


def apply_missing_defaults(snake_config: dict[str, Any]) -> None:
    """Fill absent sections of a snake_case config payload in place."""
    models = snake_config.setdefault("models", {})
    if isinstance(models, dict):
        profiles = models.setdefault("profiles", {})
        if isinstance(profiles, dict):
            for name, payload in default_model_profiles().items():
                current = profiles.get(name)
                if not isinstance(current, dict):
                    profiles[name] = payload
                else:
                    for k, v in payload.items():
                        current.setdefault(k, v)

        routes = models.setdefault("routes", {})
        if isinstance(routes, dict):
            for route, profile_name in default_model_routes().items():
                routes.setdefault(route, profile_name)

    for section, seeded in (
        ("conversation", default_conversation()),
        ("suggestions", default_suggestions()),
        ("storage", default_storage()),
    ):
        current = snake_config.setdefault(section, {})
        if isinstance(current, dict):
            for k, v in seeded.items():
                current.setdefault(k, v)
        else:
            snake_config[section] = seeded

    providers = snake_config.setdefault("providers", {})
    if isinstance(providers, dict):
        ollama = providers.setdefault("ollama", {})
        if isinstance(ollama, dict):
            ollama.setdefault("api_base", DEFAULT_OLLAMA_API_BASE)
