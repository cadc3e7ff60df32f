"""
Selection Capture.

Reads the active selection of the host document and turns it into an encoded
PixelRegion: pixels and selection mask are read inside one edit scope, the
mask is folded into alpha, and the result is encoded with alpha (PNG) or,
when the container cannot hold alpha, flattened over white (JPEG).

Functions:
    get_selection_bounds: Current selection as an outward-rounded Rectangle
    capture_selection_as_image: Capture the selection as a PixelRegion
"""

import logging
from typing import Any, List, Optional, Tuple

from AYA_Libs.constants import ALPHA_FORMAT, CAPTURE_COMMAND_NAME, FLAT_FORMAT
from AYA_Libs.errors import (
    AlphaNotSupportedError,
    NoDocumentError,
    NoSelectionError,
    UnsupportedHostError,
)
from AYA_Libs.HostLib.edit_scope import execute_as_modal
from AYA_Libs.HostLib.host_adapters import edges_to_pixels, read_buffer_bytes
from AYA_Libs.ImageCodecLib.geometry import Rectangle, to_int_bounds
from AYA_Libs.ImageCodecLib.image_models import PixelRegion
from AYA_Libs.ImageCodecLib.pixel_codec import (
    composite_mask_into_alpha,
    encode_pixels_base64,
    flatten_over_white,
)

logger = logging.getLogger(__name__)


def _active_document(host: Any) -> Any:
    document = getattr(host, "active_document", None)
    if document is None:
        raise NoDocumentError()
    return document


def get_selection_bounds(host: Any) -> Rectangle:
    """
    Read the active selection bounds, rounded outward to whole pixels.

    Raises:
        NoDocumentError: If no document is open
        NoSelectionError: If the document has no selection
    """
    document = _active_document(host)
    bounds = getattr(document, "selection_bounds", None)
    if bounds is None:
        raise NoSelectionError()
    try:
        edges = edges_to_pixels(bounds)
    except ValueError as e:
        raise NoSelectionError(f"Selection bounds are unreadable: {e}")
    if edges["width"] <= 0 or edges["height"] <= 0:
        raise NoSelectionError()
    return to_int_bounds(edges["left"], edges["top"], edges["right"], edges["bottom"])


def _read_region(imaging: Any, document_id: Any, bounds: Rectangle) -> Tuple[bytes, int]:
    """
    Read pixels and mask for `bounds` and return composited RGBA bytes.

    Runs inside the edit scope. Every buffer obtained is disposed before
    returning, whether or not the reads succeed.
    """
    source_bounds = {key: int(value) for key, value in bounds.edges().items()}
    width, height = int(bounds.width), int(bounds.height)
    buffers: List[Any] = []
    try:
        pixels = imaging.get_pixels(document_id, source_bounds)
        buffers.append(pixels)
        components = int(getattr(pixels, "components", 4))
        pixel_data = read_buffer_bytes(pixels)

        mask_data: Optional[bytes] = None
        try:
            mask = imaging.get_selection(document_id, source_bounds)
            buffers.append(mask)
            mask_data = read_buffer_bytes(mask)
            if len(mask_data) < width * height:
                raise ValueError(f"mask has {len(mask_data)} bytes, expected {width * height}")
        except Exception as e:
            logger.warning(f"Selection mask could not be read, capturing fully opaque: {e}")
            mask_data = None

        return composite_mask_into_alpha(pixel_data, width, height, components, mask_data), components
    finally:
        for buffer in buffers:
            dispose = getattr(buffer, "dispose", None)
            if callable(dispose):
                dispose()


def capture_selection_as_image(host: Any, alpha_format: str = ALPHA_FORMAT) -> PixelRegion:
    """
    Capture the active selection as an encoded image.

    Args:
        host: Host exposing active_document and imaging
        alpha_format: Container tried first; must be able to hold alpha

    Returns:
        PixelRegion with outward-rounded bounds, MIME type and Base64 data

    Raises:
        NoDocumentError: If no document is open
        NoSelectionError: If there is no active selection
        UnsupportedHostError: If the host cannot read pixels
    """
    document = _active_document(host)
    bounds = get_selection_bounds(host)

    imaging = getattr(host, "imaging", None)
    if imaging is None or not callable(getattr(imaging, "get_pixels", None)):
        raise UnsupportedHostError("This host cannot read document pixels")

    rgba, source_components = execute_as_modal(
        document.id,
        lambda: _read_region(imaging, document.id, bounds),
        command_name=CAPTURE_COMMAND_NAME,
    )
    width, height = int(bounds.width), int(bounds.height)

    try:
        mime, data = encode_pixels_base64(rgba, width, height, 4, alpha_format)
    except AlphaNotSupportedError as e:
        logger.info(f"{alpha_format} cannot hold alpha, flattening to {FLAT_FORMAT}: {e}")
        rgb = flatten_over_white(rgba, width, height)
        mime, data = encode_pixels_base64(rgb, width, height, 3, FLAT_FORMAT)

    logger.debug(
        f"Captured selection {width}x{height} at ({bounds.left}, {bounds.top}) "
        f"from {source_components}-component pixels as {mime}"
    )
    return PixelRegion(bounds=bounds, mime=mime, base64=data)
