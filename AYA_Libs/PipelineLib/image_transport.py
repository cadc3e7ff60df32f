"""
Image Transport.

Resolves image references (data URIs and remote URLs) to raw bytes, and
manages best-effort local preview files.

Functions:
    resolve_to_bytes: Decode a data URI or download a remote image
    infer_mime_type: MIME type of a reference, default image/png
    materialize_local_preview: Write a reference to a local preview file
    release_local_preview: Delete a preview file created by this module
    materialize_previews: Materialize several references concurrently
"""

import itertools
import logging
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Set

import requests

from AYA_Libs.constants import (
    DEFAULT_MIME,
    DOWNLOAD_CHUNK_SIZE,
    DOWNLOAD_TIMEOUT_SECONDS,
    PREVIEW_FILE_PREFIX,
)
from AYA_Libs.errors import DownloadError
from AYA_Libs.HostLib.edit_scope import ensure_outside_edit_scope
from AYA_Libs.ImageCodecLib.image_models import ImageRef
from AYA_Libs.ImageCodecLib.pixel_codec import normalize_mime, parse_data_uri

logger = logging.getLogger(__name__)

PREVIEW_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

_created_previews: Set[str] = set()
_created_lock = threading.Lock()
_preview_sequence = itertools.count(1)


def infer_mime_type(ref: ImageRef) -> str:
    """MIME type from a data URI prefix; remote URLs and others default to image/png."""
    text = str(ref or "")
    if text.startswith("data:"):
        meta = text[5:].split(",", 1)[0]
        return normalize_mime(meta.split(";", 1)[0])
    return DEFAULT_MIME


def _stream_body(url: str, timeout: float, cancelled: threading.Event) -> bytes:
    """Stream a URL until done or `cancelled` is set; socket timeouts apply per read."""
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            if not response.ok:
                raise DownloadError(
                    url,
                    f"Image download failed ({response.status_code}): {response.reason}",
                    status=response.status_code,
                )
            chunks = []
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if cancelled.is_set():
                    return b""
                if chunk:
                    chunks.append(chunk)
            return b"".join(chunks)
    except requests.exceptions.Timeout as e:
        raise DownloadError(url, f"Image download timed out after {timeout}s") from e
    except requests.exceptions.RequestException as e:
        raise DownloadError(url, f"Image download failed: {e}") from e


def _download(url: str, timeout: float) -> bytes:
    """
    Download a URL within an overall deadline of `timeout` seconds.

    The body is read on a daemon worker so a server that keeps trickling
    bytes cannot hold the caller past the deadline. A worker that overruns
    is told to stop and its result is discarded.
    """
    outcome = {}
    cancelled = threading.Event()

    def worker():
        try:
            outcome["data"] = _stream_body(url, timeout, cancelled)
        except Exception as e:
            outcome["error"] = e

    thread = threading.Thread(target=worker, name="aya-image-download", daemon=True)
    thread.start()
    thread.join(timeout)
    if thread.is_alive():
        cancelled.set()
        raise DownloadError(url, f"Image download timed out after {timeout}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["data"]


def resolve_to_bytes(ref: ImageRef, timeout: float = DOWNLOAD_TIMEOUT_SECONDS) -> bytes:
    """
    Resolve an image reference to raw bytes.

    Data URIs are decoded in-process. http(s) URLs are downloaded with an
    overall deadline of `timeout` seconds.

    Raises:
        InvalidImagePayloadError: If a data URI is malformed
        DownloadError: On download failure, timeout or unsupported reference
        EditScopeError: If a download is attempted inside an edit scope
    """
    text = str(ref or "").strip()
    if text.startswith("data:"):
        _, payload = parse_data_uri(text)
        return payload
    if text.startswith(("http://", "https://")):
        ensure_outside_edit_scope("Image download")
        data = _download(text, timeout)
        logger.debug(f"Downloaded {len(data)} bytes from {text}")
        return data
    raise DownloadError(text, f"Unsupported image reference: {text[:60]!r}")


def materialize_local_preview(ref: ImageRef, directory: Optional[Path] = None) -> Optional[str]:
    """
    Write an image reference to a local preview file.

    Never raises: any failure is logged at debug level and yields None.

    Returns:
        Path of the created file, or None
    """
    try:
        data = resolve_to_bytes(ref)
        suffix = PREVIEW_EXTENSIONS.get(infer_mime_type(ref), ".png")
        target_dir = Path(directory) if directory else Path(tempfile.gettempdir())
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / f"{PREVIEW_FILE_PREFIX}{time.time_ns()}-{next(_preview_sequence)}{suffix}"
        path.write_bytes(data)
    except Exception as e:
        logger.debug(f"Local preview unavailable: {e}")
        return None

    with _created_lock:
        _created_previews.add(str(path))
    return str(path)


def release_local_preview(handle: Optional[str]) -> bool:
    """
    Delete a preview file previously created by materialize_local_preview.

    Handles this module did not create are left alone. Never raises.

    Returns:
        True if a file was released
    """
    if not handle:
        return False
    key = str(handle)
    with _created_lock:
        if key not in _created_previews:
            return False
        _created_previews.discard(key)
    try:
        Path(key).unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not delete preview {key}: {e}")
        return False
    return True


def materialize_previews(refs: List[ImageRef], directory: Optional[Path] = None,
                         max_workers: int = 4) -> List[Optional[str]]:
    """Materialize previews concurrently; results keep the order of `refs`."""
    if not refs:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(refs)))) as executor:
        return list(executor.map(lambda ref: materialize_local_preview(ref, directory), refs))
