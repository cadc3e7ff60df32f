"""
In-memory document host backed by Pillow.

Implements the host surface the pipeline talks to: documents with layers and
a selection mask, pixel reads through disposable buffers, file placement,
layer resize/translate, and low-level `batch_play` commands. It lets the
pipeline run against plain image files and makes every stage testable.

Classes:
    UnitValue: Host unit value (px or in)
    PixelBuffer: Disposable chunky pixel buffer returned by pixel reads
    MemoryImaging: Pixel-read capability (get_pixels / get_selection)
    MemoryLayer: Layer without direct transform methods
    TransformableLayer: Layer exposing resize() and translate()
    LayerCompositor: Flattens layers onto the canvas
    MemoryDocument: Canvas, layers and selection
    MemoryHost: Document registry, placement and command execution

Example:
    >>> host = MemoryHost()
    >>> doc = host.new_document(400, 300)
    >>> doc.select_rect(10, 10, 110, 60)
    >>> doc.selection_bounds["left"].as_unit("px")
    10.0
"""

import itertools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from AYA_Libs.constants import ANCHOR_TOPLEFT, CENTER_AVERAGE
from AYA_Libs.errors import EditScopeError, NoDocumentError
from AYA_Libs.HostLib.edit_scope import in_edit_scope

logger = logging.getLogger(__name__)

RgbaColor = Tuple[int, int, int, int]


@dataclass(frozen=True)
class UnitValue:
    """A length with a unit, as hosts report bounds."""
    value: float
    unit: str = "px"
    resolution: float = 72.0

    def as_unit(self, unit: str) -> float:
        if unit == self.unit:
            return float(self.value)
        if self.unit == "in" and unit == "px":
            return float(self.value) * self.resolution
        if self.unit == "px" and unit == "in":
            return float(self.value) / self.resolution
        raise ValueError(f"Cannot convert {self.unit} to {unit}")


def _unit_edges(left: float, top: float, right: float, bottom: float) -> Dict[str, UnitValue]:
    return {
        "left": UnitValue(float(left)),
        "top": UnitValue(float(top)),
        "right": UnitValue(float(right)),
        "bottom": UnitValue(float(bottom)),
    }


class PixelBuffer:
    """Chunky pixel data that must be disposed by the caller."""

    def __init__(self, owner: "MemoryImaging", width: int, height: int, components: int, data: bytes):
        self._owner = owner
        self.width = width
        self.height = height
        self.components = components
        self._data = data
        self.disposed = False

    def get_data(self, chunky: bool = True) -> bytes:
        if self.disposed:
            raise RuntimeError("Pixel buffer has been disposed")
        if chunky or self.components == 1:
            return self._data
        array = np.frombuffer(self._data, dtype=np.uint8).reshape(
            (self.height, self.width, self.components)
        )
        return np.ascontiguousarray(array.transpose(2, 0, 1)).tobytes()

    def dispose(self) -> None:
        if not self.disposed:
            self.disposed = True
            self._data = b""
            self._owner._release(self)


class MemoryImaging:
    """Pixel-read capability of the memory host."""

    def __init__(self, host: "MemoryHost", selection_readable: bool = True):
        self._host = host
        self.selection_readable = selection_readable
        self._live: List[PixelBuffer] = []

    @property
    def live_buffers(self) -> int:
        return len(self._live)

    def _release(self, buffer: PixelBuffer) -> None:
        if buffer in self._live:
            self._live.remove(buffer)

    def _track(self, image: "Image.Image", components: int) -> PixelBuffer:
        buffer = PixelBuffer(self, image.width, image.height, components, image.tobytes())
        self._live.append(buffer)
        return buffer

    @staticmethod
    def _box(source_bounds: Dict[str, Any]) -> Tuple[int, int, int, int]:
        return (
            int(source_bounds["left"]),
            int(source_bounds["top"]),
            int(source_bounds["right"]),
            int(source_bounds["bottom"]),
        )

    def get_pixels(self, document_id: Any, source_bounds: Dict[str, Any]) -> PixelBuffer:
        """Read composited pixels; RGBA for transparent documents, RGB otherwise."""
        if not in_edit_scope():
            raise EditScopeError("get_pixels requires an edit scope")
        document = self._host.get_document(document_id)
        flat = document.flatten()
        region = flat.crop(self._box(source_bounds))
        if document.background is None:
            return self._track(region.convert("RGBA"), 4)
        return self._track(region.convert("RGB"), 3)

    def get_selection(self, document_id: Any, source_bounds: Dict[str, Any]) -> PixelBuffer:
        """Read the selection mask, one byte per pixel."""
        if not in_edit_scope():
            raise EditScopeError("get_selection requires an edit scope")
        if not self.selection_readable:
            raise RuntimeError("Selection mask cannot be read on this host")
        document = self._host.get_document(document_id)
        if document.selection_mask is None:
            raise RuntimeError("Document has no selection")
        return self._track(document.selection_mask.crop(self._box(source_bounds)), 1)


class MemoryLayer:
    """A raster layer positioned on the canvas with float offsets."""

    def __init__(self, layer_id: int, image: "Image.Image", left: float = 0.0, top: float = 0.0,
                 name: str = "Layer", opacity: int = 255):
        if not (0 <= opacity <= 255):
            raise ValueError(f"opacity must be 0-255, got {opacity}")
        self.id = layer_id
        self.image = image.convert("RGBA")
        self.left = float(left)
        self.top = float(top)
        self.name = name
        self.opacity = opacity
        self.visible = True

    @property
    def bounds(self) -> Dict[str, UnitValue]:
        return _unit_edges(
            self.left,
            self.top,
            self.left + self.image.width,
            self.top + self.image.height,
        )

    def _scale(self, width_pct: float, height_pct: float, anchor: str) -> None:
        old_w, old_h = self.image.size
        new_w = max(1, int(round(old_w * width_pct / 100.0)))
        new_h = max(1, int(round(old_h * height_pct / 100.0)))
        if (new_w, new_h) != (old_w, old_h):
            self.image = self.image.resize((new_w, new_h), Image.Resampling.LANCZOS)
        if anchor == CENTER_AVERAGE:
            self.left += (old_w - new_w) / 2.0
            self.top += (old_h - new_h) / 2.0

    def _offset(self, dx: float, dy: float) -> None:
        self.left += float(dx)
        self.top += float(dy)


class TransformableLayer(MemoryLayer):
    """Layer with direct transform methods."""

    def resize(self, width_pct: float, height_pct: float, anchor: str = ANCHOR_TOPLEFT) -> None:
        if not in_edit_scope():
            raise EditScopeError("resize requires an edit scope")
        self._scale(width_pct, height_pct, anchor)

    def translate(self, dx: float, dy: float) -> None:
        if not in_edit_scope():
            raise EditScopeError("translate requires an edit scope")
        self._offset(dx, dy)


class LayerCompositor:
    """Flattens positioned layers onto a canvas with standard alpha compositing."""

    @staticmethod
    def composite_layers(
        size: Tuple[int, int],
        layers: List[MemoryLayer],
        background: Optional[RgbaColor] = None,
    ) -> "Image.Image":
        """
        Composite layers bottom to top.

        Args:
            size: Canvas (width, height)
            layers: Layers ordered bottom to top
            background: Opaque fill colour, or None for a transparent canvas

        Returns:
            RGBA PIL Image of the canvas
        """
        result = Image.new("RGBA", size, background or (0, 0, 0, 0))
        for layer in layers:
            if not layer.visible:
                continue
            overlay = Image.new("RGBA", size, (0, 0, 0, 0))
            overlay.paste(layer.image, (int(round(layer.left)), int(round(layer.top))))
            if layer.opacity < 255:
                overlay = LayerCompositor._apply_opacity(overlay, layer.opacity)
            result = Image.alpha_composite(result, overlay)
        return result

    @staticmethod
    def _apply_opacity(image: "Image.Image", opacity: int) -> "Image.Image":
        """Scale the alpha channel by opacity / 255."""
        r, g, b, a = image.split()
        alpha = np.asarray(a, dtype=np.float64) * (opacity / 255.0)
        new_alpha = Image.fromarray(alpha.astype(np.uint8), mode="L")
        return Image.merge("RGBA", (r, g, b, new_alpha))


class MemoryDocument:
    """A document: canvas size, optional background, layers and selection."""

    def __init__(self, host: "MemoryHost", doc_id: int, width: int, height: int,
                 background: Optional[RgbaColor] = (255, 255, 255, 255), name: str = "Untitled"):
        if width < 1 or height < 1:
            raise ValueError(f"Document size must be positive, got {width}x{height}")
        self._host = host
        self.id = doc_id
        self.width = width
        self.height = height
        self.background = background
        self.name = name
        self.layers: List[MemoryLayer] = []
        self.selection_mask: Optional["Image.Image"] = None
        self._active_layer: Optional[MemoryLayer] = None

    @property
    def active_layers(self) -> List[MemoryLayer]:
        return [self._active_layer] if self._active_layer is not None else []

    @property
    def selection_bounds(self) -> Optional[Dict[str, UnitValue]]:
        if self.selection_mask is None:
            return None
        bbox = self.selection_mask.getbbox()
        if bbox is None:
            return None
        return _unit_edges(*bbox)

    def select_rect(self, left: float, top: float, right: float, bottom: float,
                    feather: float = 0.0) -> None:
        """Replace the selection with a rectangle, optionally feathered."""
        mask = Image.new("L", (self.width, self.height), 0)
        draw = ImageDraw.Draw(mask)
        draw.rectangle(
            (int(round(left)), int(round(top)), int(round(right)) - 1, int(round(bottom)) - 1),
            fill=255,
        )
        if feather > 0:
            mask = mask.filter(ImageFilter.GaussianBlur(radius=feather))
        self.selection_mask = mask

    def select_mask(self, mask: "Image.Image") -> None:
        mask = mask.convert("L")
        if mask.size != (self.width, self.height):
            raise ValueError(
                f"Mask size {mask.size} does not match document {self.width}x{self.height}"
            )
        self.selection_mask = mask

    def deselect(self) -> None:
        self.selection_mask = None

    def add_layer(self, image: "Image.Image", left: Optional[float] = None,
                  top: Optional[float] = None, name: str = "Layer") -> MemoryLayer:
        """Add a layer on top and make it active; centered when no position is given."""
        if left is None:
            left = (self.width - image.width) / 2.0
        if top is None:
            top = (self.height - image.height) / 2.0
        layer = self._host._new_layer(image, left, top, name)
        self.layers.append(layer)
        self._active_layer = layer
        return layer

    def find_layer(self, layer_id: int) -> MemoryLayer:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        raise KeyError(f"No layer with id {layer_id}")

    def flatten(self) -> "Image.Image":
        return LayerCompositor.composite_layers(
            (self.width, self.height), self.layers, self.background
        )

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        image = self.flatten()
        if path.suffix.lower() in (".jpg", ".jpeg"):
            image = image.convert("RGB")
        image.save(path)
        return path


class MemoryHost:
    """
    Host holding MemoryDocuments.

    Args:
        dom_transforms: Layers expose resize()/translate() when True; otherwise
            only `batch_play` transform commands can move them
        selection_readable: Whether selection masks can be read
        pixel_reads: Whether the imaging capability exists at all
    """

    def __init__(self, dom_transforms: bool = True, selection_readable: bool = True,
                 pixel_reads: bool = True):
        self.dom_transforms = dom_transforms
        self.imaging = MemoryImaging(self, selection_readable) if pixel_reads else None
        self.documents: Dict[int, MemoryDocument] = {}
        self.active_document_id: Optional[int] = None
        self.command_log: List[Dict[str, Any]] = []
        self._doc_ids = itertools.count(1)
        self._layer_ids = itertools.count(1)

    @property
    def active_document(self) -> Optional[MemoryDocument]:
        if self.active_document_id is None:
            return None
        return self.documents.get(self.active_document_id)

    def new_document(self, width: int, height: int,
                     background: Optional[RgbaColor] = (255, 255, 255, 255),
                     name: str = "Untitled") -> MemoryDocument:
        document = MemoryDocument(self, next(self._doc_ids), width, height, background, name)
        self.documents[document.id] = document
        self.active_document_id = document.id
        return document

    def open_document(self, path: Path) -> MemoryDocument:
        """Open an image file as a single-layer document."""
        path = Path(path)
        with Image.open(path) as source:
            has_alpha = source.mode in ("RGBA", "LA", "PA") or "transparency" in source.info
            image = source.convert("RGBA")
        background = None if has_alpha else (255, 255, 255, 255)
        document = self.new_document(image.width, image.height, background, name=path.stem)
        document.add_layer(image, 0, 0, name="Background")
        logger.info(f"Opened {path} as document {document.id} ({image.width}x{image.height})")
        return document

    def get_document(self, document_id: Any) -> MemoryDocument:
        document = self.documents.get(document_id)
        if document is None:
            raise NoDocumentError(f"Document {document_id!r} is not open")
        return document

    def close_document(self, document_id: Any) -> None:
        self.documents.pop(document_id, None)
        if self.active_document_id == document_id:
            self.active_document_id = next(iter(self.documents), None)

    def _new_layer(self, image: "Image.Image", left: float, top: float, name: str) -> MemoryLayer:
        layer_class = TransformableLayer if self.dom_transforms else MemoryLayer
        return layer_class(next(self._layer_ids), image, left, top, name)

    def place_file(self, document: MemoryDocument, path: Path) -> MemoryLayer:
        """Insert an image file as a new, centered, active layer."""
        if not in_edit_scope():
            raise EditScopeError("place_file requires an edit scope")
        path = Path(path)
        with Image.open(path) as source:
            image = source.convert("RGBA")
        return document.add_layer(image, name=path.stem)

    def batch_play(self, commands: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Execute low-level commands sequentially.

        Supported commands:
            {"command": "get", "property": "layerID", "target": "active_layer"}
            {"command": "transform", "target": {"layer_id": id}, "center": "average",
             "width": {"unit": "percent", "value": pct}, "height": {...}}
            {"command": "transform", "target": {"layer_id": id},
             "offset": {"horizontal": {"unit": "pixels", "value": dx}, "vertical": {...}}}

        Returns:
            One result dict per command

        Raises:
            EditScopeError: If called outside an edit scope
            ValueError: For unsupported commands
        """
        if not in_edit_scope():
            raise EditScopeError("batch_play requires an edit scope")
        document = self.active_document
        if document is None:
            raise NoDocumentError()

        results = []
        for command in commands:
            self.command_log.append(command)
            kind = command.get("command")
            if kind == "get" and command.get("property") == "layerID":
                layer = document.active_layers[0] if document.active_layers else None
                results.append({"layerID": layer.id} if layer else {})
            elif kind == "transform":
                layer = document.find_layer(command["target"]["layer_id"])
                if "width" in command or "height" in command:
                    width_pct = float(command.get("width", {}).get("value", 100.0))
                    height_pct = float(command.get("height", {}).get("value", 100.0))
                    layer._scale(width_pct, height_pct, command.get("center", CENTER_AVERAGE))
                if "offset" in command:
                    offset = command["offset"]
                    layer._offset(
                        float(offset["horizontal"]["value"]),
                        float(offset["vertical"]["value"]),
                    )
                results.append({})
            else:
                raise ValueError(f"Unsupported command: {command!r}")
        return results
