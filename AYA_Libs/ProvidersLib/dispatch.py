"""
Provider Dispatch.

Sends a normalized GenerationRequest to the selected provider and returns a
normalized GenerationResult. Provider differences live in the registered
ProviderVariant; this module owns the network call, status handling and
request logging.

Functions:
    normalize_provider: Map any stored provider value to a registered id
    provider_label: Display label for a provider
    provider_api_key: API key from settings, then from the environment
    provider_model: Model from settings, then the provider default
    build_request: Assemble a GenerationRequest from settings and a capture
    generate: Perform the provider call
"""

import logging
import os
import time
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv

from AYA_Libs.constants import (
    DASHSCOPE_KEY_ENV,
    DEFAULT_PROVIDER,
    GEMINI_KEY_ENV,
    PROVIDER_DASHSCOPE,
    PROVIDER_GEMINI,
    PROVIDER_TIMEOUT_SECONDS,
)
from AYA_Libs.errors import ProviderError
from AYA_Libs.HostLib.edit_scope import ensure_outside_edit_scope
from AYA_Libs.ImageCodecLib.image_models import GenerationRequest, GenerationResult, PixelRegion
from AYA_Libs.ProvidersLib.provider_registry import ProviderRegistry, get_default_registry

load_dotenv()

logger = logging.getLogger(__name__)

API_KEY_ENV_VARS = {
    PROVIDER_DASHSCOPE: DASHSCOPE_KEY_ENV,
    PROVIDER_GEMINI: GEMINI_KEY_ENV,
}


def normalize_provider(value: Any, registry: Optional[ProviderRegistry] = None) -> str:
    """
    Resolve a stored provider value to a registered provider id.

    Unknown or empty values fall back to the default provider so stale
    settings never break a request.
    """
    registry = registry or get_default_registry()
    text = str(value or "").strip().lower()
    return text if registry.has(text) else DEFAULT_PROVIDER


def provider_label(provider: Any, registry: Optional[ProviderRegistry] = None) -> str:
    registry = registry or get_default_registry()
    return registry.get(normalize_provider(provider, registry)).label


def provider_api_key(settings: Dict[str, Any], provider: Any) -> str:
    """
    API key for a provider.

    Resolution order:
        1. `<provider>_api_key` in settings
        2. DASHSCOPE_API_KEY / GEMINI_API_KEY from the environment (.env loaded)
    """
    provider_id = normalize_provider(provider)
    value = str(settings.get(f"{provider_id}_api_key") or "").strip()
    if value:
        return value
    env_name = API_KEY_ENV_VARS.get(provider_id)
    return (os.getenv(env_name) or "").strip() if env_name else ""


def provider_model(settings: Dict[str, Any], provider: Any,
                   registry: Optional[ProviderRegistry] = None) -> str:
    registry = registry or get_default_registry()
    provider_id = normalize_provider(provider, registry)
    return registry.get(provider_id).resolve_model(settings.get(f"{provider_id}_model"))


def build_request(settings: Dict[str, Any], prompt: str, region: PixelRegion,
                  registry: Optional[ProviderRegistry] = None) -> GenerationRequest:
    """Assemble a GenerationRequest with the provider options held in settings."""
    provider_id = normalize_provider(settings.get("provider"), registry)
    if provider_id == PROVIDER_GEMINI:
        options = {
            "aspect_ratio": settings.get("gemini_aspect_ratio", ""),
            "image_size": settings.get("gemini_image_size", ""),
        }
    else:
        options = {
            "n": settings.get("n", 1),
            "negative_prompt": settings.get("negative_prompt", ""),
            "prompt_extend": settings.get("prompt_extend", True),
            "watermark": settings.get("watermark", False),
            "size": settings.get("size", ""),
        }
    return GenerationRequest(
        provider=provider_id,
        model=provider_model(settings, provider_id, registry),
        prompt=prompt,
        image_base64=region.base64,
        image_mime=region.mime,
        options=options,
    )


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _response_json(response: Any) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def generate(
    request: GenerationRequest,
    api_key: str,
    registry: Optional[ProviderRegistry] = None,
    session: Optional[requests.Session] = None,
) -> GenerationResult:
    """
    Call the provider named by the request.

    Args:
        request: Normalized request; its provider is normalized again here
        api_key: Credential for the provider
        registry: Provider registry (default registry if None)
        session: Optional requests.Session used for the call

    Returns:
        GenerationResult with images in provider order

    Raises:
        InvalidImagePayloadError: Bad input image, before any network call
        ProviderError: Non-success status or transport failure
        NoImageProducedError: Provider refused to produce an image
        EditScopeError: If called from inside an edit scope
    """
    ensure_outside_edit_scope("Provider dispatch")
    registry = registry or get_default_registry()
    provider_id = normalize_provider(request.provider, registry)
    variant = registry.get(provider_id)

    payload = variant.build_payload(request)
    model = variant.resolve_model(request.model)
    http = session or requests
    started = time.monotonic()

    logger.info("request.start", extra={"context": {
        "provider": provider_id,
        "model": model,
        "prompt": request.prompt,
        "inputImageBase64": request.image_base64,
        "inputImageMime": request.image_mime,
        "options": dict(request.options),
    }})

    try:
        response = http.post(
            variant.endpoint(model),
            json=payload,
            headers=variant.auth_headers(api_key),
            timeout=PROVIDER_TIMEOUT_SECONDS,
        )
    except requests.exceptions.RequestException as e:
        logger.error("request.failed", extra={"context": {
            "provider": provider_id,
            "elapsedMs": _elapsed_ms(started),
            "message": str(e),
        }})
        raise ProviderError(provider_id, None, str(e) or type(e).__name__, label=variant.label) from e

    body = _response_json(response)
    if not response.ok:
        message = (
            variant.extract_error_message(body)
            or response.reason
            or f"HTTP {response.status_code}"
        )
        logger.error("request.failed", extra={"context": {
            "provider": provider_id,
            "status": response.status_code,
            "elapsedMs": _elapsed_ms(started),
            "message": message,
        }})
        raise ProviderError(provider_id, response.status_code, message, label=variant.label)

    variant.check_response(body)
    images = variant.parse_response(body)

    logger.info("request.success", extra={"context": {
        "provider": provider_id,
        "status": response.status_code,
        "imageCount": len(images),
        "elapsedMs": _elapsed_ms(started),
    }})
    return GenerationResult(provider=provider_id, raw=body, images=images)
