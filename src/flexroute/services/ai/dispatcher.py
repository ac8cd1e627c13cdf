"""Factory for AI providers based on configuration."""

from __future__ import annotations

from ...config import Settings, settings as default_settings
from ..errors import ProviderConfigurationError
from .base import AIProvider


def get_provider(name: str | None = None, config: Settings | None = None) -> AIProvider:
    config = config or default_settings
    provider = name or config.ai_provider
    match provider:
        case "gemini":
            if not config.gemini_api_key:
                raise ProviderConfigurationError(
                    "API key is missing. Set FLEXROUTE_GEMINI_API_KEY to enable screenshot processing."
                )
            if not config.gemini_model:
                raise ProviderConfigurationError("AI model is not configured. Set FLEXROUTE_GEMINI_MODEL.")
            from .gemini import GeminiProvider

            return GeminiProvider(model=config.gemini_model, api_key=config.gemini_api_key)
        case _:
            raise ProviderConfigurationError(f"Unsupported AI provider: {provider}")
