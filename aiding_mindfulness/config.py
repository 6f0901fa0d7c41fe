"""AI provider settings persisted in the ``app_settings`` table."""

from __future__ import annotations

import os

from .ai import PROVIDERS, AISettings
from .database import MindfulnessDatabase

AI_PROVIDER_SETTING_KEY = "ai_provider"
AI_MODEL_SETTING_KEY = "ai_model"
AI_API_KEY_SETTING_KEY = "ai_api_key"
AI_ENDPOINT_SETTING_KEY = "ai_endpoint"
AI_TIMEOUT_SETTING_KEY = "ai_timeout_seconds"

DEFAULT_PROVIDER = "anthropic"
DEFAULT_TIMEOUT_SECONDS = 30.0

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "gemini": "gemini-1.5-flash",
    "openai": "gpt-4o-mini",
    "local": "local-model",
}

API_KEY_ENV_VARS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}


def load_ai_settings(db: MindfulnessDatabase) -> AISettings:
    provider = (db.get_setting(AI_PROVIDER_SETTING_KEY, DEFAULT_PROVIDER) or DEFAULT_PROVIDER).strip().lower()
    if provider not in PROVIDERS:
        provider = DEFAULT_PROVIDER

    api_key = (db.get_setting(AI_API_KEY_SETTING_KEY, "") or "").strip()
    if not api_key and provider in API_KEY_ENV_VARS:
        api_key = os.environ.get(API_KEY_ENV_VARS[provider], "").strip()

    return AISettings(
        provider=provider,
        api_key=api_key,
        model=(db.get_setting(AI_MODEL_SETTING_KEY, "") or "").strip() or DEFAULT_MODELS[provider],
        endpoint=(db.get_setting(AI_ENDPOINT_SETTING_KEY, "") or "").strip(),
        timeout_seconds=db.get_setting_float(AI_TIMEOUT_SETTING_KEY, DEFAULT_TIMEOUT_SECONDS),
    )


def save_ai_settings(
    db: MindfulnessDatabase,
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
    endpoint: str | None = None,
    timeout_seconds: float | None = None,
) -> AISettings:
    if provider is not None:
        provider = provider.strip().lower()
        if provider not in PROVIDERS:
            raise ValueError(f"Unsupported provider: {provider}")
        db.set_setting(AI_PROVIDER_SETTING_KEY, provider)
    if model is not None:
        db.set_setting(AI_MODEL_SETTING_KEY, model.strip())
    if api_key is not None:
        if api_key.strip():
            db.set_setting(AI_API_KEY_SETTING_KEY, api_key.strip())
        else:
            db.delete_setting(AI_API_KEY_SETTING_KEY)
    if endpoint is not None:
        db.set_setting(AI_ENDPOINT_SETTING_KEY, endpoint.strip())
    if timeout_seconds is not None:
        if timeout_seconds <= 0:
            raise ValueError("Timeout must be positive.")
        db.set_setting(AI_TIMEOUT_SETTING_KEY, f"{timeout_seconds:g}")
    return load_ai_settings(db)
