"""
DashScope provider variant.

Wire contract for Alibaba DashScope's multimodal generation endpoint. The
input image travels as a data URI inside the message content; results come
back as remote image URLs.
"""

from typing import Any, Dict, List

from AYA_Libs.constants import (
    DASHSCOPE_URL,
    DEFAULT_DASHSCOPE_MODEL,
    MAX_IMAGE_COUNT,
    MIN_IMAGE_COUNT,
    PROVIDER_DASHSCOPE,
)
from AYA_Libs.ImageCodecLib.image_models import GenerationRequest, ImageRef, is_image_ref
from AYA_Libs.ProvidersLib.provider_registry import ProviderVariant


def clamp_image_count(value: Any) -> int:
    """Clamp a requested result count to [1, 4]; unparsable values become 1."""
    try:
        count = int(value)
    except (TypeError, ValueError):
        return MIN_IMAGE_COUNT
    return max(MIN_IMAGE_COUNT, min(MAX_IMAGE_COUNT, count))


class DashScopeProvider(ProviderVariant):
    provider_id = PROVIDER_DASHSCOPE
    label = "DashScope"
    default_model = DEFAULT_DASHSCOPE_MODEL

    def endpoint(self, model: str) -> str:
        return DASHSCOPE_URL

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def build_parameters(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Build the `parameters` block.

        The backend rejects an empty negative prompt, so it is sent as a
        single space. `size` is only included when set.
        """
        negative_prompt = str(options.get("negative_prompt") or "").strip()
        parameters = {
            "n": clamp_image_count(options.get("n", MIN_IMAGE_COUNT)),
            "negative_prompt": negative_prompt or " ",
            "prompt_extend": bool(options.get("prompt_extend", True)),
            "watermark": bool(options.get("watermark", False)),
        }
        size = str(options.get("size") or "").strip()
        if size:
            parameters["size"] = size
        return parameters

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        mime, data = self.validated_image(request)
        return {
            "model": self.resolve_model(request.model),
            "input": {
                "messages": [
                    {
                        "role": "user",
                        "content": [
                            {"image": f"data:{mime};base64,{data}"},
                            {"text": request.prompt},
                        ],
                    }
                ]
            },
            "parameters": self.build_parameters(request.options),
        }

    def parse_response(self, json_data: Dict[str, Any]) -> List[ImageRef]:
        """Collect `output.choices[0].message.content[].image` URLs."""
        try:
            content = json_data["output"]["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            return []
        if not isinstance(content, list):
            return []
        return [
            item["image"].strip()
            for item in content
            if isinstance(item, dict) and is_image_ref(item.get("image"))
        ]

    def extract_error_message(self, json_data: Dict[str, Any]) -> str:
        if not isinstance(json_data, dict):
            return ""
        error = json_data.get("error")
        candidates = [
            json_data.get("message"),
            error.get("message") if isinstance(error, dict) else None,
            json_data.get("code"),
        ]
        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return ""
