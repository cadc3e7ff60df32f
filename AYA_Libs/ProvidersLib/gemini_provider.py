"""
Gemini provider variant.

Wire contract for Google's `generateContent` endpoint. The input image
travels as an inline data part; results come back as inline Base64 parts
which are re-synthesized into data URIs.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from AYA_Libs.constants import DEFAULT_GEMINI_MODEL, DEFAULT_MIME, GEMINI_URL_TEMPLATE, PROVIDER_GEMINI
from AYA_Libs.errors import NoImageProducedError
from AYA_Libs.ImageCodecLib.image_models import GenerationRequest, ImageRef
from AYA_Libs.ImageCodecLib.pixel_codec import build_data_uri, is_valid_base64, normalize_base64
from AYA_Libs.ProvidersLib.provider_registry import ProviderVariant

NO_IMAGE_FINISH_REASON = "NO_IMAGE"


def _dig(data: Any, *path: Any) -> Any:
    for key in path:
        try:
            data = data[key]
        except (KeyError, IndexError, TypeError):
            return None
    return data


def _inline_part(part: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(part, dict):
        return None
    inline = part.get("inline_data") or part.get("inlineData")
    return inline if isinstance(inline, dict) else None


class GeminiProvider(ProviderVariant):
    provider_id = PROVIDER_GEMINI
    label = "Gemini Banana"
    default_model = DEFAULT_GEMINI_MODEL

    def endpoint(self, model: str) -> str:
        return GEMINI_URL_TEMPLATE.format(model=quote(self.resolve_model(model), safe=""))

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": api_key,
        }

    def build_generation_config(self, options: Dict[str, Any]) -> Dict[str, Any]:
        config: Dict[str, Any] = {"response_modalities": ["TEXT", "IMAGE"]}
        image_config = {}
        aspect_ratio = options.get("aspect_ratio")
        if isinstance(aspect_ratio, str) and aspect_ratio.strip():
            image_config["aspect_ratio"] = aspect_ratio.strip()
        image_size = options.get("image_size")
        if isinstance(image_size, str) and image_size.strip():
            image_config["image_size"] = image_size.strip()
        if image_config:
            config["image_config"] = image_config
        return config

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        mime, data = self.validated_image(request)
        parts: List[Dict[str, Any]] = []
        prompt = str(request.prompt or "").strip()
        if prompt:
            parts.append({"text": prompt})
        parts.append({"inline_data": {"mime_type": mime, "data": data}})
        return {
            "contents": [{"role": "user", "parts": parts}],
            "generation_config": self.build_generation_config(request.options),
        }

    def parse_response(self, json_data: Dict[str, Any]) -> List[ImageRef]:
        """Collect every inline image part of every candidate as a data URI.

        Parts whose data is not valid Base64 are skipped.
        """
        images = []
        candidates = _dig(json_data, "candidates")
        if not isinstance(candidates, list):
            return images
        for candidate in candidates:
            parts = _dig(candidate, "content", "parts")
            if not isinstance(parts, list):
                continue
            for part in parts:
                inline = _inline_part(part)
                if inline is None:
                    continue
                data = inline.get("data")
                if isinstance(data, str) and is_valid_base64(data):
                    mime = inline.get("mime_type") or inline.get("mimeType") or DEFAULT_MIME
                    images.append(build_data_uri(mime, normalize_base64(data)))
        return images

    def extract_error_message(self, json_data: Dict[str, Any]) -> str:
        candidates = [
            _dig(json_data, "error", "message"),
            _dig(json_data, "message"),
            _dig(json_data, "promptFeedback", "blockReason"),
            _dig(json_data, "candidates", 0, "finishMessage"),
        ]
        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return ""

    def check_response(self, json_data: Dict[str, Any]) -> None:
        """
        Raises:
            NoImageProducedError: If the first candidate finished with NO_IMAGE
        """
        finish_reason = _dig(json_data, "candidates", 0, "finishReason")
        if finish_reason == NO_IMAGE_FINISH_REASON:
            raise NoImageProducedError(self.provider_id, finish_reason=finish_reason)
