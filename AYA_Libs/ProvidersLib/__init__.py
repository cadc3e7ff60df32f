"""
ProvidersLib - Image generation providers

A registry of provider variants (DashScope, Gemini) and the dispatch layer
that turns a GenerationRequest into a GenerationResult over HTTP.
"""

from AYA_Libs.ProvidersLib.provider_registry import (
    ProviderVariant,
    ProviderRegistry,
    get_default_registry,
    register_default_providers,
)
from AYA_Libs.ProvidersLib.dashscope_provider import DashScopeProvider, clamp_image_count
from AYA_Libs.ProvidersLib.gemini_provider import GeminiProvider
from AYA_Libs.ProvidersLib.dispatch import (
    normalize_provider,
    provider_label,
    provider_api_key,
    provider_model,
    build_request,
    generate,
)

__all__ = [
    "ProviderVariant",
    "ProviderRegistry",
    "get_default_registry",
    "register_default_providers",
    "DashScopeProvider",
    "clamp_image_count",
    "GeminiProvider",
    "normalize_provider",
    "provider_label",
    "provider_api_key",
    "provider_model",
    "build_request",
    "generate",
]
