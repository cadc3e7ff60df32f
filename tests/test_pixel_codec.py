"""
Tests for the pixel codec.

Tests cover:
- Base64 normalization and validation
- Data URI building and parsing
- Mask compositing into alpha
- Flattening over white
- PNG/JPEG encoding and decoding back to pixels
- Alpha-not-supported signalling
"""

import base64
import unittest

import numpy as np

from AYA_Libs.errors import AlphaNotSupportedError, InvalidImagePayloadError
from AYA_Libs.ImageCodecLib.pixel_codec import (
    build_data_uri,
    composite_mask_into_alpha,
    decode_base64,
    decode_base64_pixels,
    encode_base64,
    encode_pixels,
    encode_pixels_base64,
    flatten_over_white,
    is_valid_base64,
    normalize_base64,
    normalize_mime,
    parse_data_uri,
)


class TestBase64(unittest.TestCase):
    """Test Base64 helpers."""

    def test_normalize_strips_whitespace_and_prefix(self):
        """Test whitespace and data URI prefix are removed."""
        self.assertEqual(normalize_base64("data:image/png;base64,QUJD\nREVG "), "QUJDREVG")

    def test_valid_base64(self):
        """Test a well-formed payload is accepted."""
        self.assertTrue(is_valid_base64(encode_base64(b"hello world")))

    def test_invalid_base64(self):
        """Test malformed payloads are rejected."""
        self.assertFalse(is_valid_base64("not base64!"))
        self.assertFalse(is_valid_base64("abc"))
        self.assertFalse(is_valid_base64(""))
        self.assertFalse(is_valid_base64(None))

    def test_decode_invalid_raises(self):
        """Test decoding malformed Base64 raises InvalidImagePayloadError."""
        with self.assertRaises(InvalidImagePayloadError):
            decode_base64("%%%%")

    def test_decode_round_trip(self):
        """Test bytes survive encode and decode."""
        self.assertEqual(decode_base64(encode_base64(b"\x00\x01\xff")), b"\x00\x01\xff")


class TestDataUri(unittest.TestCase):
    """Test data URI helpers."""

    def test_normalize_mime(self):
        """Test MIME normalization defaults to image/png."""
        self.assertEqual(normalize_mime("image/jpeg"), "image/jpeg")
        self.assertEqual(normalize_mime("IMAGE/WEBP"), "image/webp")
        self.assertEqual(normalize_mime("text/plain"), "image/png")
        self.assertEqual(normalize_mime(None), "image/png")

    def test_build_data_uri(self):
        """Test data URI construction."""
        self.assertEqual(build_data_uri("image/jpeg", "QUJD"), "data:image/jpeg;base64,QUJD")
        self.assertEqual(build_data_uri("bogus", "QUJD"), "data:image/png;base64,QUJD")

    def test_parse_base64_data_uri(self):
        """Test a Base64 data URI decodes to its payload."""
        payload = base64.b64encode(b"png-bytes").decode("ascii")
        mime, data = parse_data_uri(f"data:image/png;base64,{payload}")
        self.assertEqual(mime, "image/png")
        self.assertEqual(data, b"png-bytes")

    def test_parse_percent_encoded_data_uri(self):
        """Test a percent-encoded data URI decodes to its payload."""
        mime, data = parse_data_uri("data:image/svg+xml,%3Csvg%3E%3C/svg%3E")
        self.assertEqual(mime, "image/svg+xml")
        self.assertEqual(data, b"<svg></svg>")

    def test_parse_missing_comma(self):
        """Test a data URI without separator is rejected."""
        with self.assertRaises(InvalidImagePayloadError):
            parse_data_uri("data:image/png;base64")

    def test_parse_bad_base64(self):
        """Test a data URI with corrupt Base64 is rejected."""
        with self.assertRaises(InvalidImagePayloadError):
            parse_data_uri("data:image/png;base64,@@@@")


class TestCompositing(unittest.TestCase):
    """Test mask compositing and flattening."""

    def test_mask_becomes_alpha_for_rgb(self):
        """Test RGB sources take the mask as alpha."""
        rgb = bytes([10, 20, 30, 40, 50, 60])
        mask = bytes([255, 128])
        out = composite_mask_into_alpha(rgb, 2, 1, 3, mask)
        self.assertEqual(out, bytes([10, 20, 30, 255, 40, 50, 60, 128]))

    def test_mask_multiplies_source_alpha(self):
        """Test RGBA sources combine alpha and mask with rounding."""
        rgba = bytes([1, 2, 3, 200, 4, 5, 6, 255])
        mask = bytes([128, 0])
        out = composite_mask_into_alpha(rgba, 2, 1, 4, mask)
        self.assertEqual(out[3], round(200 * 128 / 255))
        self.assertEqual(out[7], 0)

    def test_colour_channels_unchanged(self):
        """Test colour channels are copied, never premultiplied."""
        rgba = bytes([100, 150, 200, 255])
        out = composite_mask_into_alpha(rgba, 1, 1, 4, bytes([10]))
        self.assertEqual(out[:3], bytes([100, 150, 200]))

    def test_missing_mask_is_opaque(self):
        """Test a missing mask keeps every pixel selected."""
        out = composite_mask_into_alpha(bytes([1, 2, 3]), 1, 1, 3, None)
        self.assertEqual(out[3], 255)

    def test_rejects_bad_components(self):
        """Test only RGB and RGBA are accepted."""
        with self.assertRaises(ValueError):
            composite_mask_into_alpha(bytes([1]), 1, 1, 1)

    def test_flatten_over_white(self):
        """Test alpha blending over white."""
        rgba = bytes([0, 0, 0, 0, 0, 0, 0, 255, 100, 100, 100, 128])
        out = flatten_over_white(rgba, 3, 1)
        self.assertEqual(out[:3], bytes([255, 255, 255]))
        self.assertEqual(out[3:6], bytes([0, 0, 0]))
        expected = round(100 * (128 / 255) + 255 * (1 - 128 / 255))
        self.assertEqual(out[6], expected)


class TestEncoding(unittest.TestCase):
    """Test container encoding and decoding."""

    def setUp(self):
        """Create a 6x4 RGBA gradient."""
        self.width, self.height = 6, 4
        array = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        array[:, :, 0] = np.arange(self.width) * 40
        array[:, :, 3] = 200
        self.rgba = array.tobytes()

    def test_png_keeps_alpha(self):
        """Test PNG decodes to width*height*4 bytes."""
        mime, data = encode_pixels_base64(self.rgba, self.width, self.height, 4, "PNG")
        self.assertEqual(mime, "image/png")
        pixels, width, height, components = decode_base64_pixels(data)
        self.assertEqual((width, height, components), (self.width, self.height, 4))
        self.assertEqual(len(pixels), self.width * self.height * 4)
        self.assertEqual(pixels, self.rgba)

    def test_jpeg_rgb(self):
        """Test JPEG decodes to width*height*3 bytes."""
        rgb = flatten_over_white(self.rgba, self.width, self.height)
        mime, data = encode_pixels_base64(rgb, self.width, self.height, 3, "jpg")
        self.assertEqual(mime, "image/jpeg")
        pixels, width, height, components = decode_base64_pixels(data)
        self.assertEqual(components, 3)
        self.assertEqual(len(pixels), self.width * self.height * 3)

    def test_jpeg_with_alpha_raises(self):
        """Test JPEG refuses RGBA with AlphaNotSupportedError."""
        with self.assertRaises(AlphaNotSupportedError):
            encode_pixels(self.rgba, self.width, self.height, 4, "JPEG")

    def test_short_buffer_raises(self):
        """Test a truncated buffer is rejected."""
        with self.assertRaises(ValueError):
            encode_pixels(b"\x00" * 5, self.width, self.height, 4)

    def test_unsupported_components(self):
        """Test unknown component counts are rejected."""
        with self.assertRaises(ValueError):
            encode_pixels(b"\x00" * 48, self.width, self.height, 2)


if __name__ == "__main__":
    unittest.main()
