"""
Rectangle geometry for capture and placement.

Classes:
    Rectangle: Axis-aligned rectangle in document pixels

Functions:
    to_int_bounds: Round edge bounds outward to an integer pixel rectangle
    normalize_target_bounds: Validate a placement target rectangle
    compute_cover_scale: Uniform scale that makes content cover a target
    compute_centering_offset: Translation that centers scaled content on a target
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Tuple

from AYA_Libs.errors import InvalidTargetBoundsError


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned rectangle.

    Attributes:
        left: X coordinate of the left edge
        top: Y coordinate of the top edge
        width: Horizontal extent (must be > 0 before use)
        height: Vertical extent (must be > 0 before use)
    """
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def edges(self) -> Dict[str, float]:
        """Return the {left, top, right, bottom} form."""
        return {
            "left": self.left,
            "top": self.top,
            "right": self.right,
            "bottom": self.bottom,
        }

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rectangle":
        """Create from a {left, top, width, height} or {left, top, right, bottom} mapping."""
        if "width" in data or "height" in data:
            return cls(
                left=float(data.get("left", 0)),
                top=float(data.get("top", 0)),
                width=float(data.get("width", 0)),
                height=float(data.get("height", 0)),
            )
        return cls.from_edges(
            float(data.get("left", 0)),
            float(data.get("top", 0)),
            float(data.get("right", 0)),
            float(data.get("bottom", 0)),
        )

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Rectangle":
        return cls(left=left, top=top, width=right - left, height=bottom - top)


def to_int_bounds(left: float, top: float, right: float, bottom: float) -> Rectangle:
    """
    Round edge bounds outward to an integer pixel rectangle.

    The min edges are floored and the max edges ceiled so a captured region
    never loses boundary pixels. Width and height are clamped to at least 1.

    Args:
        left, top: Minimum edges
        right, bottom: Maximum edges

    Returns:
        Integer Rectangle
    """
    int_left = math.floor(left)
    int_top = math.floor(top)
    int_right = math.ceil(right)
    int_bottom = math.ceil(bottom)
    return Rectangle(
        left=int_left,
        top=int_top,
        width=max(1, int_right - int_left),
        height=max(1, int_bottom - int_top),
    )


def normalize_target_bounds(target: Any) -> Rectangle:
    """
    Validate a placement target.

    Args:
        target: Rectangle or mapping with left/top/width/height

    Returns:
        Rectangle with float coordinates

    Raises:
        InvalidTargetBoundsError: If any value is non-numeric or non-finite,
            or width/height are not positive
    """
    try:
        if isinstance(target, Rectangle):
            values = (target.left, target.top, target.width, target.height)
        else:
            values = tuple(
                float(target[key]) for key in ("left", "top", "width", "height")
            )
        left, top, width, height = (float(v) for v in values)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTargetBoundsError(f"Placement target bounds are not numeric: {e}")

    if not all(math.isfinite(v) for v in (left, top, width, height)):
        raise InvalidTargetBoundsError("Placement target bounds must be finite numbers")
    if width <= 0 or height <= 0:
        raise InvalidTargetBoundsError(
            f"Placement target width and height must be greater than 0, got {width}x{height}"
        )
    return Rectangle(left=left, top=top, width=width, height=height)


def compute_cover_scale(target: Rectangle, content_width: float, content_height: float) -> float:
    """
    Uniform scale factor that makes content fully cover the target.

    Returns:
        max(target.width / content_width, target.height / content_height)
    """
    return max(target.width / content_width, target.height / content_height)


def compute_centering_offset(
    target: Rectangle,
    current_left: float,
    current_top: float,
    scaled_width: float,
    scaled_height: float,
) -> Tuple[float, float]:
    """
    Translation that centers scaled content on the target, splitting overflow evenly.

    Returns:
        (dx, dy) to apply to the content's current position
    """
    dx = target.left + (target.width - scaled_width) / 2 - current_left
    dy = target.top + (target.height - scaled_height) / 2 - current_top
    return dx, dy
