"""
ImageCodecLib - Geometry, data models and pixel codec

This module provides the plain data types and the pixel encoding layer
shared by every stage of the Aya Image Edit pipeline.
"""

from AYA_Libs.ImageCodecLib.geometry import (
    Rectangle,
    to_int_bounds,
    normalize_target_bounds,
    compute_cover_scale,
    compute_centering_offset,
)
from AYA_Libs.ImageCodecLib.image_models import (
    ImageRef,
    PixelRegion,
    GenerationRequest,
    GenerationResult,
    PreviewItem,
    SaveOutcome,
    is_image_ref,
)
from AYA_Libs.ImageCodecLib.pixel_codec import (
    normalize_base64,
    is_valid_base64,
    decode_base64,
    encode_base64,
    normalize_mime,
    build_data_uri,
    parse_data_uri,
    composite_mask_into_alpha,
    flatten_over_white,
    encode_pixels,
    encode_pixels_base64,
    decode_image,
    decode_base64_pixels,
)

__all__ = [
    "Rectangle",
    "to_int_bounds",
    "normalize_target_bounds",
    "compute_cover_scale",
    "compute_centering_offset",
    "ImageRef",
    "PixelRegion",
    "GenerationRequest",
    "GenerationResult",
    "PreviewItem",
    "SaveOutcome",
    "is_image_ref",
    "normalize_base64",
    "is_valid_base64",
    "decode_base64",
    "encode_base64",
    "normalize_mime",
    "build_data_uri",
    "parse_data_uri",
    "composite_mask_into_alpha",
    "flatten_over_white",
    "encode_pixels",
    "encode_pixels_base64",
    "decode_image",
    "decode_base64_pixels",
]
