"""
Tests for the in-memory document host.

Tests cover:
- Document creation, opening and selection
- Pixel and selection reads with buffer accounting
- Layer compositing
- File placement and layer transforms
- batch_play commands
- Edit scope enforcement
"""

import tempfile
import unittest
from pathlib import Path

from PIL import Image

from AYA_Libs.errors import EditScopeError, NoDocumentError
from AYA_Libs.HostLib.edit_scope import execute_as_modal
from AYA_Libs.HostLib.host_adapters import edges_to_pixels
from AYA_Libs.HostLib.memory_host import (
    LayerCompositor,
    MemoryHost,
    MemoryLayer,
    TransformableLayer,
    UnitValue,
)


class TestUnitValue(unittest.TestCase):
    """Test UnitValue conversions."""

    def test_same_unit(self):
        """Test converting to the same unit."""
        self.assertEqual(UnitValue(12).as_unit("px"), 12.0)

    def test_unknown_conversion(self):
        """Test unsupported conversions raise ValueError."""
        with self.assertRaises(ValueError):
            UnitValue(1, "cm").as_unit("px")


class TestMemoryDocument(unittest.TestCase):
    """Test documents and selections."""

    def setUp(self):
        """Create a host with one white document."""
        self.host = MemoryHost()
        self.doc = self.host.new_document(40, 30)

    def test_active_document(self):
        """Test the newest document becomes active."""
        self.assertIs(self.host.active_document, self.doc)

    def test_no_selection_by_default(self):
        """Test documents start without a selection."""
        self.assertIsNone(self.doc.selection_bounds)

    def test_select_rect_bounds(self):
        """Test rectangular selection bounds."""
        self.doc.select_rect(5, 6, 15, 26)
        edges = edges_to_pixels(self.doc.selection_bounds)
        self.assertEqual((edges["left"], edges["top"], edges["right"], edges["bottom"]),
                         (5, 6, 15, 26))

    def test_deselect(self):
        """Test deselect clears the selection."""
        self.doc.select_rect(0, 0, 10, 10)
        self.doc.deselect()
        self.assertIsNone(self.doc.selection_bounds)

    def test_select_mask_size_checked(self):
        """Test mask size must match the document."""
        with self.assertRaises(ValueError):
            self.doc.select_mask(Image.new("L", (5, 5), 255))

    def test_invalid_size(self):
        """Test non-positive document sizes are rejected."""
        with self.assertRaises(ValueError):
            self.host.new_document(0, 10)

    def test_get_document_unknown(self):
        """Test unknown document ids raise NoDocumentError."""
        with self.assertRaises(NoDocumentError):
            self.host.get_document(999)

    def test_close_document(self):
        """Test closing the active document."""
        self.host.close_document(self.doc.id)
        self.assertIsNone(self.host.active_document)

    def test_add_layer_centered(self):
        """Test layers without a position are centered."""
        layer = self.doc.add_layer(Image.new("RGBA", (10, 10), (0, 0, 255, 255)))
        self.assertEqual((layer.left, layer.top), (15.0, 10.0))
        self.assertIs(self.doc.active_layers[0], layer)

    def test_flatten_composites_layers(self):
        """Test layers are composited over the background."""
        self.doc.add_layer(Image.new("RGBA", (10, 10), (255, 0, 0, 255)), 0, 0)
        flat = self.doc.flatten()
        self.assertEqual(flat.getpixel((0, 0)), (255, 0, 0, 255))
        self.assertEqual(flat.getpixel((20, 20)), (255, 255, 255, 255))

    def test_save_jpeg(self):
        """Test saving a flattened document as JPEG."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = self.doc.save(Path(tmpdir) / "nested" / "out.jpg")
            with Image.open(path) as saved:
                self.assertEqual(saved.size, (40, 30))
                self.assertEqual(saved.mode, "RGB")


class TestLayerCompositor(unittest.TestCase):
    """Test LayerCompositor."""

    def test_transparent_canvas(self):
        """Test a canvas without background stays transparent."""
        result = LayerCompositor.composite_layers((4, 4), [], None)
        self.assertEqual(result.getpixel((1, 1)), (0, 0, 0, 0))

    def test_opacity(self):
        """Test layer opacity scales alpha."""
        layer = MemoryLayer(1, Image.new("RGBA", (4, 4), (0, 255, 0, 255)), opacity=128)
        result = LayerCompositor.composite_layers((4, 4), [layer], None)
        self.assertEqual(result.getpixel((0, 0))[3], 128)

    def test_hidden_layer_skipped(self):
        """Test invisible layers are not composited."""
        layer = MemoryLayer(1, Image.new("RGBA", (4, 4), (0, 255, 0, 255)))
        layer.visible = False
        result = LayerCompositor.composite_layers((4, 4), [layer], (255, 255, 255, 255))
        self.assertEqual(result.getpixel((0, 0)), (255, 255, 255, 255))

    def test_invalid_opacity(self):
        """Test opacity outside 0-255 is rejected."""
        with self.assertRaises(ValueError):
            MemoryLayer(1, Image.new("RGBA", (1, 1)), opacity=300)


class TestPixelReads(unittest.TestCase):
    """Test imaging reads."""

    def setUp(self):
        """Create a transparent document with a red square."""
        self.host = MemoryHost()
        self.doc = self.host.new_document(20, 20, background=None)
        self.doc.add_layer(Image.new("RGBA", (10, 10), (255, 0, 0, 255)), 0, 0)
        self.doc.select_rect(0, 0, 10, 10)
        self.bounds = {"left": 0, "top": 0, "right": 10, "bottom": 10}

    def test_reads_require_scope(self):
        """Test reads outside an edit scope are refused."""
        with self.assertRaises(EditScopeError):
            self.host.imaging.get_pixels(self.doc.id, self.bounds)

    def test_get_pixels_rgba(self):
        """Test transparent documents read as RGBA."""
        def read():
            buffer = self.host.imaging.get_pixels(self.doc.id, self.bounds)
            data = buffer.get_data(chunky=True)
            components = buffer.components
            buffer.dispose()
            return data, components

        data, components = execute_as_modal(self.doc.id, read)
        self.assertEqual(components, 4)
        self.assertEqual(len(data), 10 * 10 * 4)
        self.assertEqual(data[:4], bytes([255, 0, 0, 255]))
        self.assertEqual(self.host.imaging.live_buffers, 0)

    def test_planar_read(self):
        """Test planar reads group channels."""
        def read():
            buffer = self.host.imaging.get_pixels(self.doc.id, {"left": 0, "top": 0, "right": 2, "bottom": 1})
            try:
                return buffer.get_data(chunky=False)
            finally:
                buffer.dispose()

        data = execute_as_modal(self.doc.id, read)
        self.assertEqual(data, bytes([255, 255, 0, 0, 0, 0, 255, 255]))

    def test_disposed_buffer(self):
        """Test disposed buffers cannot be read."""
        def read():
            buffer = self.host.imaging.get_pixels(self.doc.id, self.bounds)
            buffer.dispose()
            return buffer

        buffer = execute_as_modal(self.doc.id, read)
        with self.assertRaises(RuntimeError):
            buffer.get_data()

    def test_get_selection(self):
        """Test selection masks read one byte per pixel."""
        def read():
            buffer = self.host.imaging.get_selection(self.doc.id, self.bounds)
            try:
                return buffer.get_data(), buffer.components
            finally:
                buffer.dispose()

        data, components = execute_as_modal(self.doc.id, read)
        self.assertEqual(components, 1)
        self.assertEqual(data, bytes([255]) * 100)

    def test_unreadable_selection(self):
        """Test hosts can refuse selection reads."""
        self.host.imaging.selection_readable = False
        with self.assertRaises(RuntimeError):
            execute_as_modal(
                self.doc.id,
                lambda: self.host.imaging.get_selection(self.doc.id, self.bounds),
            )


class TestPlacementSurface(unittest.TestCase):
    """Test place_file, layer transforms and batch_play."""

    def setUp(self):
        """Write a 100x100 PNG and create a 400x300 document."""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.asset = Path(self.tmpdir.name) / "asset.png"
        Image.new("RGBA", (100, 100), (0, 0, 255, 255)).save(self.asset)

    def tearDown(self):
        """Remove temporary files."""
        self.tmpdir.cleanup()

    def _place(self, host):
        doc = host.new_document(400, 300)
        layer = execute_as_modal(doc.id, lambda: host.place_file(doc, self.asset))
        return doc, layer

    def test_place_requires_scope(self):
        """Test placing outside an edit scope is refused."""
        host = MemoryHost()
        doc = host.new_document(10, 10)
        with self.assertRaises(EditScopeError):
            host.place_file(doc, self.asset)

    def test_place_centers_layer(self):
        """Test placed files are centered and active."""
        doc, layer = self._place(MemoryHost())
        edges = edges_to_pixels(layer.bounds)
        self.assertEqual((edges["left"], edges["top"], edges["width"]), (150, 100, 100))
        self.assertIs(doc.active_layers[0], layer)
        self.assertIsInstance(layer, TransformableLayer)

    def test_layer_class_follows_dom_transforms(self):
        """Test hosts without DOM transforms create plain layers."""
        _, layer = self._place(MemoryHost(dom_transforms=False))
        self.assertFalse(hasattr(layer, "resize"))

    def test_resize_topleft_and_translate(self):
        """Test resize keeps the top-left corner and translate moves."""
        host = MemoryHost()
        doc, layer = self._place(host)

        def transform():
            layer.resize(200, 200, "TOPLEFT")
            layer.translate(-150, -150)

        execute_as_modal(doc.id, transform)
        edges = edges_to_pixels(layer.bounds)
        self.assertEqual((edges["left"], edges["top"], edges["width"], edges["height"]),
                         (0, -50, 200, 200))

    def test_batch_play_scale_about_center(self):
        """Test batch_play scale keeps the layer centre."""
        host = MemoryHost(dom_transforms=False)
        doc, layer = self._place(host)

        def transform():
            layer_id = host.batch_play([
                {"command": "get", "property": "layerID", "target": "active_layer"}
            ])[0]["layerID"]
            host.batch_play([{
                "command": "transform",
                "target": {"layer_id": layer_id},
                "center": "average",
                "width": {"unit": "percent", "value": 200},
                "height": {"unit": "percent", "value": 200},
            }])

        execute_as_modal(doc.id, transform)
        edges = edges_to_pixels(layer.bounds)
        self.assertEqual((edges["left"], edges["top"], edges["width"]), (100, 50, 200))
        self.assertEqual([c["command"] for c in host.command_log], ["get", "transform"])

    def test_batch_play_unknown_command(self):
        """Test unsupported commands raise ValueError."""
        host = MemoryHost()
        doc, _ = self._place(host)
        with self.assertRaises(ValueError):
            execute_as_modal(doc.id, lambda: host.batch_play([{"command": "explode"}]))

    def test_open_document(self):
        """Test opening a PNG file as a document."""
        host = MemoryHost()
        doc = host.open_document(self.asset)
        self.assertEqual((doc.width, doc.height), (100, 100))
        self.assertIsNone(doc.background)
        self.assertEqual(len(doc.layers), 1)


if __name__ == "__main__":
    unittest.main()
