"""
Pytest configuration and shared fixtures for Aya Image Edit tests.

This module provides shared test fixtures and helpers used across
multiple test modules.
"""

import base64
from io import BytesIO
from unittest.mock import MagicMock

import pytest
from PIL import Image


def png_bytes(size=(4, 4), color=(255, 0, 0, 255)):
    """Encode a solid RGBA image as PNG bytes."""
    buffer = BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(size=(4, 4), color=(255, 0, 0, 255)):
    """A solid RGBA PNG as a data URI."""
    return "data:image/png;base64," + base64.b64encode(png_bytes(size, color)).decode("ascii")


def mock_response(status=200, json_data=None, reason="OK"):
    """A stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 400
    response.reason = reason
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = {} if json_data is None else json_data
    return response


@pytest.fixture
def temp_project_dir(tmp_path):
    """
    Provide a temporary directory for settings, logs and outputs.

    Args:
        tmp_path: Pytest's built-in temporary directory fixture

    Returns:
        Path object pointing to a temporary directory
    """
    return tmp_path


@pytest.fixture
def sample_rgba_colors():
    """
    Provide a list of sample RGBA color tuples for testing.

    Returns:
        List of (R, G, B, A) tuples with common test colors
    """
    return [
        (255, 0, 0, 255),    # Red
        (0, 255, 0, 255),    # Green
        (0, 0, 255, 255),    # Blue
        (255, 255, 255, 255),  # White
        (0, 0, 0, 255),      # Black
        (128, 128, 128, 128),  # Half-transparent gray
    ]


@pytest.fixture
def red_png_data_uri():
    """A 100x100 opaque red PNG data URI."""
    return png_data_uri((100, 100), (255, 0, 0, 255))
