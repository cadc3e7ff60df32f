"""
Placement Engine.

Inserts a generated image into the active document and fits it to a target
rectangle with a "cover" transform: uniform scale so the image covers the
target on both axes, then a translation that centers the overflow.

Two transform paths exist. The primary path uses the layer's own
resize()/translate() methods; hosts without them get the same result through
batch_play transform commands addressed by layer id.

Classes:
    PlacementState: IDLE -> INSERTED_RAW -> SCALED_CENTERED -> DONE
    PlacementReport: Outcome of one placement

Functions:
    build_layer_id_query / build_scale_command / build_offset_command
    place: Insert and fit an image
"""

import logging
import math
import os
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from AYA_Libs.constants import (
    ANCHOR_TOPLEFT,
    CENTER_AVERAGE,
    PLACE_COMMAND_NAME,
    RESULT_FILE_PREFIX,
    RESULT_FILE_SUFFIX,
)
from AYA_Libs.errors import AyaError, NoActiveDocumentError, PlacementFailedError
from AYA_Libs.HostLib.edit_scope import execute_as_modal
from AYA_Libs.HostLib.host_adapters import edges_to_pixels
from AYA_Libs.ImageCodecLib.geometry import (
    Rectangle,
    compute_centering_offset,
    compute_cover_scale,
    normalize_target_bounds,
)
from AYA_Libs.ImageCodecLib.image_models import ImageRef
from AYA_Libs.PipelineLib.image_transport import resolve_to_bytes

logger = logging.getLogger(__name__)

PATH_PRIMARY = "layer"
PATH_FALLBACK = "batch_play"


class PlacementState(Enum):
    IDLE = "idle"
    INSERTED_RAW = "inserted_raw"
    SCALED_CENTERED = "scaled_centered"
    DONE = "done"


@dataclass
class PlacementReport:
    """What a placement did.

    Attributes:
        state: Last state reached
        transform_path: "layer" or "batch_play"
        scale_percent: Uniform scale applied, in percent
        offset: (dx, dy) translation applied after scaling
        final_bounds: Layer bounds after placement
        commands: batch_play commands issued on the fallback path
    """
    state: PlacementState = PlacementState.IDLE
    transform_path: Optional[str] = None
    scale_percent: float = 100.0
    offset: Tuple[float, float] = (0.0, 0.0)
    final_bounds: Optional[Rectangle] = None
    commands: List[Dict[str, Any]] = field(default_factory=list)


def build_layer_id_query() -> Dict[str, Any]:
    return {"command": "get", "property": "layerID", "target": "active_layer"}


def build_scale_command(layer_id: Any, percent: float) -> Dict[str, Any]:
    return {
        "command": "transform",
        "target": {"layer_id": layer_id},
        "center": CENTER_AVERAGE,
        "width": {"unit": "percent", "value": percent},
        "height": {"unit": "percent", "value": percent},
    }


def build_offset_command(layer_id: Any, dx: float, dy: float) -> Dict[str, Any]:
    return {
        "command": "transform",
        "target": {"layer_id": layer_id},
        "offset": {
            "horizontal": {"unit": "pixels", "value": dx},
            "vertical": {"unit": "pixels", "value": dy},
        },
    }


def _active_layer(document: Any) -> Any:
    layers = getattr(document, "active_layers", None) or []
    if not layers:
        raise PlacementFailedError("No active layer after inserting the image")
    return layers[0]


def _layer_rect(layer: Any) -> Rectangle:
    """Layer bounds in pixels, with width and height clamped to at least 1."""
    edges = edges_to_pixels(getattr(layer, "bounds", None))
    return Rectangle(
        left=edges["left"],
        top=edges["top"],
        width=max(1.0, edges["width"]),
        height=max(1.0, edges["height"]),
    )


def _supports_layer_transforms(layer: Any) -> bool:
    return callable(getattr(layer, "resize", None)) and callable(getattr(layer, "translate", None))


def _transform_with_layer(layer: Any, target: Rectangle, percent: float,
                          report: PlacementReport) -> None:
    report.transform_path = PATH_PRIMARY
    if percent != 100.0:
        layer.resize(percent, percent, ANCHOR_TOPLEFT)
    scaled = _layer_rect(layer)
    report.state = PlacementState.SCALED_CENTERED
    dx, dy = compute_centering_offset(target, scaled.left, scaled.top, scaled.width, scaled.height)
    report.offset = (dx, dy)
    if dx != 0 or dy != 0:
        layer.translate(dx, dy)


def _transform_with_commands(host: Any, document: Any, target: Rectangle, percent: float,
                             report: PlacementReport) -> None:
    report.transform_path = PATH_FALLBACK
    query = build_layer_id_query()
    report.commands.append(query)
    result = host.batch_play([query])
    layer_id = result[0].get("layerID") if result else None
    if layer_id is None:
        raise PlacementFailedError("Could not determine the id of the inserted layer")

    if percent != 100.0:
        command = build_scale_command(layer_id, percent)
        report.commands.append(command)
        host.batch_play([command])

    scaled = _layer_rect(_active_layer(document))
    report.state = PlacementState.SCALED_CENTERED
    dx, dy = compute_centering_offset(target, scaled.left, scaled.top, scaled.width, scaled.height)
    report.offset = (dx, dy)
    if dx != 0 or dy != 0:
        command = build_offset_command(layer_id, dx, dy)
        report.commands.append(command)
        host.batch_play([command])


def _write_temp_asset(data: bytes) -> Path:
    path = Path(tempfile.gettempdir()) / f"{RESULT_FILE_PREFIX}{time.time_ns()}{RESULT_FILE_SUFFIX}"
    with open(path, "xb") as handle:
        handle.write(data)
    return path


def place(host: Any, image_ref: ImageRef, target: Any) -> PlacementReport:
    """
    Insert an image into the active document and fit it to `target`.

    Args:
        host: Host exposing active_document, place_file and batch_play
        image_ref: Data URI or remote URL of the image
        target: Rectangle or mapping with left/top/width/height

    Returns:
        PlacementReport in state DONE

    Raises:
        NoActiveDocumentError: If no document is open
        InvalidTargetBoundsError: If target is non-finite or empty
        PlacementFailedError: Wrapping any failure after validation
    """
    document = getattr(host, "active_document", None)
    if document is None:
        raise NoActiveDocumentError()
    target_rect = normalize_target_bounds(target)
    report = PlacementReport()

    try:
        data = resolve_to_bytes(image_ref)
        asset = _write_temp_asset(data)
    except (AyaError, OSError) as e:
        raise PlacementFailedError(f"Could not prepare the image for placement: {e}") from e

    def run() -> None:
        host.place_file(document, asset)
        layer = _active_layer(document)
        report.state = PlacementState.INSERTED_RAW

        inserted = _layer_rect(layer)
        scale = compute_cover_scale(target_rect, inserted.width, inserted.height)
        percent = scale * 100.0
        if not math.isfinite(percent) or percent <= 0:
            raise PlacementFailedError(f"Computed an unusable scale: {percent}")
        report.scale_percent = percent

        if _supports_layer_transforms(layer):
            _transform_with_layer(layer, target_rect, percent, report)
        else:
            _transform_with_commands(host, document, target_rect, percent, report)

        report.final_bounds = _layer_rect(_active_layer(document))
        report.state = PlacementState.DONE

    try:
        execute_as_modal(document.id, run, command_name=PLACE_COMMAND_NAME)
    except PlacementFailedError:
        raise
    except Exception as e:
        raise PlacementFailedError(f"Placing the image failed: {e}") from e
    finally:
        try:
            os.remove(asset)
        except OSError as e:
            logger.debug(f"Could not remove temporary asset {asset}: {e}")

    logger.info(
        f"Placed image via {report.transform_path}: scale {report.scale_percent:.2f}%, "
        f"offset ({report.offset[0]:.1f}, {report.offset[1]:.1f})"
    )
    return report
