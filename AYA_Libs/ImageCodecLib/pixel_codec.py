"""
Pixel codec for Aya Image Edit.

Converts raw chunky pixel buffers to and from standard image containers
(PNG/JPEG) and to and from Base64 transport strings. Knows nothing about the
host document.

Buffers are "chunky": interleaved channels, row-major, 8 bits per component.
Components: 1 = grayscale mask, 3 = RGB, 4 = RGBA.

Functions:
    normalize_base64: Strip whitespace and any data URI prefix
    is_valid_base64: Syntactic Base64 check
    decode_base64 / encode_base64: Base64 transport
    normalize_mime: Validate an image MIME type, defaulting to image/png
    build_data_uri / parse_data_uri: Data URI handling
    composite_mask_into_alpha: Fold a selection mask into the alpha channel
    flatten_over_white: Blend RGBA over a white background into RGB
    encode_pixels / encode_pixels_base64: Encode a buffer into a container
    decode_image / decode_base64_pixels: Decode a container back to pixels
"""

import base64
import binascii
import re
from io import BytesIO
from typing import Optional, Tuple
from urllib.parse import unquote_to_bytes

import numpy as np
from PIL import Image

from AYA_Libs.constants import (
    DEFAULT_MIME,
    FLAT_JPEG_QUALITY,
    FORMAT_MIME_TYPES,
    WHITE,
)
from AYA_Libs.errors import AlphaNotSupportedError, InvalidImagePayloadError

BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
MIME_PATTERN = re.compile(r"^image/[A-Za-z0-9][A-Za-z0-9.+-]*$")
ALPHA_ERROR_PATTERN = re.compile(r"alpha|rgba|mode", re.IGNORECASE)

MODES_BY_COMPONENTS = {1: "L", 3: "RGB", 4: "RGBA"}


def normalize_base64(value: str) -> str:
    """Strip whitespace and any `data:...;base64,` prefix."""
    text = str(value or "")
    if text.startswith("data:") and "," in text:
        text = text.split(",", 1)[1]
    return re.sub(r"\s+", "", text)


def is_valid_base64(value: str) -> bool:
    """
    Check that a string is syntactically valid Base64.

    The value is normalized first. Empty payloads are invalid.
    """
    text = normalize_base64(value)
    if not text or len(text) % 4 != 0:
        return False
    if not BASE64_PATTERN.match(text):
        return False
    try:
        base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def decode_base64(value: str) -> bytes:
    """
    Decode a Base64 string to bytes.

    Raises:
        InvalidImagePayloadError: If the payload is not valid Base64
    """
    text = normalize_base64(value)
    if not is_valid_base64(text):
        raise InvalidImagePayloadError("Image payload is not valid Base64")
    return base64.b64decode(text, validate=True)


def encode_base64(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def normalize_mime(mime: Optional[str]) -> str:
    """Return `mime` if it looks like image/<subtype>, else image/png."""
    text = str(mime or "").strip().lower()
    return text if MIME_PATTERN.match(text) else DEFAULT_MIME


def build_data_uri(mime: Optional[str], base64_data: str) -> str:
    return f"data:{normalize_mime(mime)};base64,{base64_data}"


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """
    Split a data URI into its media type and decoded payload.

    Supports Base64 payloads and percent-encoded payloads.

    Returns:
        (mime, payload_bytes); mime defaults to image/png when absent

    Raises:
        InvalidImagePayloadError: If the URI is malformed
    """
    if not isinstance(uri, str) or not uri.startswith("data:"):
        raise InvalidImagePayloadError("Not a data URI")

    comma_index = uri.find(",")
    if comma_index < 0:
        raise InvalidImagePayloadError("Invalid data URI: missing ',' separator")

    meta = uri[5:comma_index]
    payload = uri[comma_index + 1:]
    mime = meta.split(";", 1)[0] or DEFAULT_MIME

    if re.search(r";base64", meta, re.IGNORECASE):
        return mime, decode_base64(payload)
    return mime, unquote_to_bytes(payload)


def _as_array(data: bytes, width: int, height: int, components: int) -> np.ndarray:
    expected = width * height * components
    if len(data) < expected:
        raise ValueError(
            f"Pixel buffer too short: expected {expected} bytes, got {len(data)}"
        )
    array = np.frombuffer(bytes(data[:expected]), dtype=np.uint8)
    if components == 1:
        return array.reshape((height, width))
    return array.reshape((height, width, components))


def composite_mask_into_alpha(
    pixel_data: bytes,
    width: int,
    height: int,
    components: int,
    mask_data: Optional[bytes] = None,
) -> bytes:
    """
    Fold a selection mask into the alpha channel of a pixel buffer.

    With a source alpha channel: alpha = round(source_alpha * mask / 255).
    Without one: alpha = mask. Colour channels are copied unchanged so
    feathered edges are not darkened twice.

    Args:
        pixel_data: Chunky RGB or RGBA bytes
        width, height: Buffer dimensions
        components: 3 or 4
        mask_data: One byte per pixel (255 = selected), or None for fully selected

    Returns:
        Chunky RGBA bytes
    """
    if components not in (3, 4):
        raise ValueError(f"components must be 3 or 4, got {components}")

    pixels = _as_array(pixel_data, width, height, components)
    if mask_data is None:
        mask = np.full((height, width), 255, dtype=np.float64)
    else:
        mask = _as_array(mask_data, width, height, 1).astype(np.float64)

    out = np.empty((height, width, 4), dtype=np.uint8)
    out[:, :, :3] = pixels[:, :, :3]
    if components == 4:
        alpha = np.rint(pixels[:, :, 3].astype(np.float64) * mask / 255.0)
        out[:, :, 3] = np.clip(alpha, 0, 255).astype(np.uint8)
    else:
        out[:, :, 3] = mask.astype(np.uint8)
    return out.tobytes()


def flatten_over_white(rgba_data: bytes, width: int, height: int) -> bytes:
    """
    Blend an RGBA buffer over white: out = round(src * a + 255 * (1 - a)).

    Returns:
        Chunky RGB bytes
    """
    rgba = _as_array(rgba_data, width, height, 4).astype(np.float64)
    alpha = rgba[:, :, 3:4] / 255.0
    rgb = np.rint(rgba[:, :, :3] * alpha + WHITE * (1.0 - alpha))
    return np.clip(rgb, 0, 255).astype(np.uint8).tobytes()


def encode_pixels(
    data: bytes,
    width: int,
    height: int,
    components: int,
    image_format: str = "PNG",
) -> bytes:
    """
    Encode a chunky pixel buffer into an image container.

    Args:
        data: Chunky pixel bytes
        width, height: Dimensions
        components: 1, 3 or 4
        image_format: Pillow format name (PNG, JPEG, ...)

    Returns:
        Encoded container bytes

    Raises:
        AlphaNotSupportedError: If the container cannot store the alpha channel
        ValueError: If components is unsupported
    """
    mode = MODES_BY_COMPONENTS.get(components)
    if mode is None:
        raise ValueError(f"Unsupported component count: {components}")

    save_format = image_format.upper()
    if save_format == "JPG":
        save_format = "JPEG"

    image = Image.frombytes(mode, (width, height), bytes(data[: width * height * components]))
    kwargs = {"format": save_format}
    if save_format == "JPEG":
        kwargs["quality"] = FLAT_JPEG_QUALITY

    buffer = BytesIO()
    try:
        image.save(buffer, **kwargs)
    except OSError as e:
        if components == 4 and ALPHA_ERROR_PATTERN.search(str(e)):
            raise AlphaNotSupportedError(
                f"{save_format} cannot store an alpha channel: {e}"
            ) from e
        raise
    return buffer.getvalue()


def mime_for_format(image_format: str) -> str:
    save_format = image_format.upper()
    if save_format == "JPG":
        save_format = "JPEG"
    return FORMAT_MIME_TYPES.get(save_format, DEFAULT_MIME)


def encode_pixels_base64(
    data: bytes,
    width: int,
    height: int,
    components: int,
    image_format: str = "PNG",
) -> Tuple[str, str]:
    """
    Encode a pixel buffer and return (mime, base64).

    Raises:
        AlphaNotSupportedError: As for encode_pixels
    """
    encoded = encode_pixels(data, width, height, components, image_format)
    return mime_for_format(image_format), encode_base64(encoded)


def decode_image(data: bytes) -> "Image.Image":
    """Open container bytes as a fully loaded Pillow image."""
    image = Image.open(BytesIO(bytes(data)))
    image.load()
    return image


def decode_base64_pixels(value: str) -> Tuple[bytes, int, int, int]:
    """
    Decode a Base64 image container down to raw chunky pixels.

    Returns:
        (pixel_bytes, width, height, components) where components is 4 for
        images with alpha and 3 otherwise
    """
    image = decode_image(decode_base64(value))
    has_alpha = image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info
    image = image.convert("RGBA" if has_alpha else "RGB")
    components = 4 if has_alpha else 3
    return image.tobytes(), image.width, image.height, components
