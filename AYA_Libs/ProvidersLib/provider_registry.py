"""
Provider Variants Registry.

This module provides a centralized registry of image-generation provider
variants. Each variant knows its own endpoint, authentication, wire payload
and response shape; dispatch looks the variant up by provider id so adding a
provider only requires registering a new variant.

Classes:
    ProviderVariant: Base class describing one provider's wire contract
    ProviderRegistry: Registry of provider variants

Functions:
    get_default_registry: Get the global default registry (singleton)
    register_default_providers: Register the built-in provider variants
"""

from typing import Any, Dict, List, Optional, Tuple
import logging

from AYA_Libs.errors import InvalidImagePayloadError
from AYA_Libs.ImageCodecLib.image_models import GenerationRequest, ImageRef
from AYA_Libs.ImageCodecLib.pixel_codec import is_valid_base64, normalize_base64, normalize_mime

logger = logging.getLogger(__name__)


class ProviderVariant:
    """
    One provider's request/response contract.

    Subclasses set `provider_id`, `label` and `default_model` and implement
    the wire methods. Variants are stateless.
    """

    provider_id: str = ""
    label: str = ""
    default_model: str = ""

    def endpoint(self, model: str) -> str:
        raise NotImplementedError

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        raise NotImplementedError

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        raise NotImplementedError

    def parse_response(self, json_data: Dict[str, Any]) -> List[ImageRef]:
        raise NotImplementedError

    def extract_error_message(self, json_data: Dict[str, Any]) -> str:
        raise NotImplementedError

    def check_response(self, json_data: Dict[str, Any]) -> None:
        """Hook for successful responses that still carry a refusal."""

    def resolve_model(self, model: Optional[str]) -> str:
        text = str(model or "").strip()
        return text or self.default_model

    @staticmethod
    def validated_image(request: GenerationRequest) -> Tuple[str, str]:
        """
        Normalize and validate the request image before any payload is built.

        Returns:
            (mime, base64)

        Raises:
            InvalidImagePayloadError: If the payload is not valid Base64
        """
        if not is_valid_base64(request.image_base64):
            raise InvalidImagePayloadError("Input image is not valid Base64")
        return normalize_mime(request.image_mime), normalize_base64(request.image_base64)


class ProviderRegistry:
    """
    Registry for provider variants.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.register(DashScopeProvider())
        >>> registry.get("dashscope").label
        'DashScope'
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._variants: Dict[str, ProviderVariant] = {}
        self._metadata: Dict[str, Dict[str, Any]] = {}

    def register(
        self,
        variant: ProviderVariant,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> None:
        """
        Register a provider variant.

        Args:
            variant: ProviderVariant instance with a non-empty provider_id
            description: Human-readable description of the provider
            tags: Optional list of tags for categorization

        Raises:
            ValueError: If the variant is not a ProviderVariant or has no id
            RuntimeError: If the provider id is already registered
        """
        if not isinstance(variant, ProviderVariant):
            raise ValueError(f"variant must be a ProviderVariant, got {type(variant)}")

        provider_id = str(variant.provider_id).strip()
        if not provider_id:
            raise ValueError("provider_id cannot be empty")

        if provider_id in self._variants:
            raise RuntimeError(
                f"Provider '{provider_id}' is already registered. "
                f"Use unregister() first to replace it."
            )

        self._variants[provider_id] = variant
        self._metadata[provider_id] = {
            "label": variant.label,
            "default_model": variant.default_model,
            "description": str(description),
            "tags": list(tags) if tags else [],
        }

        logger.debug(f"Registered provider variant: {provider_id}")

    def unregister(self, provider_id: str) -> bool:
        """
        Unregister a provider variant.

        Returns:
            True if unregistered, False if provider_id was not registered
        """
        provider_id = str(provider_id).strip()

        if provider_id in self._variants:
            del self._variants[provider_id]
            del self._metadata[provider_id]
            logger.debug(f"Unregistered provider variant: {provider_id}")
            return True

        return False

    def get(self, provider_id: str) -> ProviderVariant:
        """
        Get the variant for a provider id.

        Raises:
            KeyError: If provider_id is not registered
        """
        provider_id = str(provider_id).strip()

        if provider_id not in self._variants:
            available = ", ".join(self.list_providers())
            raise KeyError(
                f"No variant registered for provider '{provider_id}'. "
                f"Available providers: {available}"
            )

        return self._variants[provider_id]

    def has(self, provider_id: str) -> bool:
        return str(provider_id).strip() in self._variants

    def list_providers(self) -> List[str]:
        """Get all registered provider ids, sorted."""
        return sorted(self._variants.keys())

    def get_metadata(self, provider_id: str) -> Dict[str, Any]:
        """
        Get metadata for a provider.

        Raises:
            KeyError: If provider_id is not registered
        """
        provider_id = str(provider_id).strip()

        if provider_id not in self._metadata:
            raise KeyError(f"No metadata for provider '{provider_id}'")

        return self._metadata[provider_id].copy()

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, provider_id: str) -> bool:
        return self.has(provider_id)


_default_registry: Optional[ProviderRegistry] = None


def get_default_registry() -> ProviderRegistry:
    """
    Get the global default provider registry (singleton).

    Built-in variants are registered on first access.
    """
    global _default_registry

    if _default_registry is None:
        _default_registry = ProviderRegistry()
        register_default_providers(_default_registry)

    return _default_registry


def register_default_providers(registry: ProviderRegistry) -> None:
    """Register the DashScope and Gemini variants."""
    from AYA_Libs.ProvidersLib.dashscope_provider import DashScopeProvider
    from AYA_Libs.ProvidersLib.gemini_provider import GeminiProvider

    registry.register(
        DashScopeProvider(),
        description="Alibaba DashScope multimodal image editing",
        tags=["image-edit", "url-results"],
    )
    registry.register(
        GeminiProvider(),
        description="Google Gemini image generation (generateContent)",
        tags=["image-edit", "inline-results"],
    )

    logger.info(f"Registered {len(registry)} default provider variants")
