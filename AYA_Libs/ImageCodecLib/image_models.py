"""
Pipeline data models for Aya Image Edit.

This module defines the plain data passed between pipeline stages.

Classes:
    PixelRegion: Encoded capture of a selection
    GenerationRequest: Normalized request handed to Provider Dispatch
    GenerationResult: Normalized provider response
    PreviewItem: One generated image held in the preview collection
    SaveOutcome: Result of saving an image to disk

Functions:
    is_image_ref: Syntactic ImageRef check

Type Aliases:
    ImageRef: A remote URL or data URI string
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from AYA_Libs.ImageCodecLib.geometry import Rectangle

ImageRef = str


@dataclass(frozen=True)
class PixelRegion:
    bounds: Rectangle
    mime: str
    base64: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime};base64,{self.base64}"


@dataclass
class GenerationRequest:
    """Provider-agnostic generation request.

    Attributes:
        provider: Provider identity (normalized before dispatch)
        model: Model name for the provider
        prompt: Text instruction
        image_base64: Base64 payload of the captured region
        image_mime: MIME type of the payload
        options: Provider-specific optional parameters
    """
    provider: str
    model: str
    prompt: str
    image_base64: str
    image_mime: str = "image/png"
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GenerationResult:
    provider: str
    raw: Dict[str, Any]
    images: List[ImageRef] = field(default_factory=list)

    @property
    def primary(self) -> Optional[ImageRef]:
        """First image, used for auto-placement."""
        return self.images[0] if self.images else None


@dataclass
class PreviewItem:
    id: str
    url: ImageRef
    source_doc_id: Any = None
    captured_bounds: Optional[Rectangle] = None
    cached_local_url: Optional[str] = None

    @property
    def display_url(self) -> str:
        return self.cached_local_url or self.url


@dataclass
class SaveOutcome:
    saved: bool
    reason: Optional[str] = None
    target: Optional[str] = None


def is_image_ref(value: Any) -> bool:
    """True for non-empty http(s) URLs and data URIs."""
    if not isinstance(value, str):
        return False
    text = value.strip()
    return text.startswith(("http://", "https://")) or (text.startswith("data:") and "," in text)
