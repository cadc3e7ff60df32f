"""
Host boundary adapters.

Host objects come in unstable shapes: unit-value objects with several
possible representations, pixel buffers with different read methods, bounds
exposed as mappings or attributes. These adapters try a short ordered list of
strategies and return the first that works, so core logic only ever sees
plain numbers and bytes.

Functions:
    first_successful: Return the first strategy result that does not raise
    unit_to_pixels: Normalize a unit value to a pixel float
    read_buffer_bytes: Read chunky bytes from a host pixel buffer
    edges_to_pixels: Normalize a bounds object to {left, top, right, bottom}
"""

import math
from typing import Any, Callable, Dict, Iterable

_EDGE_NAMES = ("left", "top", "right", "bottom")


def first_successful(strategies: Iterable[Callable[[], Any]]) -> Any:
    """
    Try each zero-argument strategy in order and return the first result.

    A strategy fails by raising. If every strategy fails, the last error is
    re-raised.

    Raises:
        ValueError: If no strategies were given
        Exception: The last strategy's error when all fail
    """
    last_error = None
    for strategy in strategies:
        try:
            return strategy()
        except Exception as e:
            last_error = e
    if last_error is None:
        raise ValueError("No strategies given")
    raise last_error


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


def unit_to_pixels(value: Any) -> float:
    """
    Convert a host unit value to a plain pixel number.

    Order: plain number, unit-conversion method `as_unit("px")`, raw numeric
    `.value`, then float coercion. Values that cannot be converted become 0.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    strategies = []
    if callable(getattr(value, "as_unit", None)):
        strategies.append(lambda: _finite(value.as_unit("px")))
    if isinstance(getattr(value, "value", None), (int, float)):
        strategies.append(lambda: _finite(value.value))
    strategies.append(lambda: _finite(value))

    try:
        return first_successful(strategies)
    except (TypeError, ValueError):
        return 0.0


def read_buffer_bytes(buffer: Any) -> bytes:
    """Read chunky pixel bytes from a host buffer object."""
    return bytes(first_successful([
        lambda: buffer.get_data(chunky=True),
        lambda: buffer.get_data(),
        lambda: buffer.tobytes(),
        lambda: bytes(buffer),
    ]))


def _edge(bounds: Any, name: str) -> Any:
    if isinstance(bounds, dict):
        return bounds[name]
    return getattr(bounds, name)


def edges_to_pixels(bounds: Any) -> Dict[str, float]:
    """
    Normalize a bounds object to pixel edges.

    Returns:
        {"left", "top", "right", "bottom", "width", "height"} as floats

    Raises:
        ValueError: If bounds is missing or an edge is not a finite number
    """
    if bounds is None:
        raise ValueError("Bounds are not available")
    try:
        edges = {name: unit_to_pixels(_edge(bounds, name)) for name in _EDGE_NAMES}
    except (KeyError, AttributeError) as e:
        raise ValueError(f"Bounds are missing an edge: {e}")
    if not all(math.isfinite(v) for v in edges.values()):
        raise ValueError("Bounds contain non-finite values")
    edges["width"] = edges["right"] - edges["left"]
    edges["height"] = edges["bottom"] - edges["top"]
    return edges
