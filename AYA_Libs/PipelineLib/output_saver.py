"""
Output saver.

Saves a generated image reference to a user-chosen file. The destination is
obtained through a picker callable so front ends decide how to ask.

Functions:
    suggested_file_name: Default name offered to the picker
    save_image_ref: Resolve an image reference and write it to disk
"""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Union

from AYA_Libs.constants import RESULT_FILE_PREFIX, RESULT_FILE_SUFFIX
from AYA_Libs.errors import FilePermissionError, FileWriteError
from AYA_Libs.ImageCodecLib.image_models import ImageRef, SaveOutcome
from AYA_Libs.PipelineLib.image_transport import resolve_to_bytes

logger = logging.getLogger(__name__)

DestinationPicker = Callable[[str], Optional[Union[str, Path]]]

PERMISSION_HINT = (
    "Choose a folder you can write to, or check the file and folder permissions"
)


def suggested_file_name() -> str:
    return f"{RESULT_FILE_PREFIX}{int(time.time() * 1000)}{RESULT_FILE_SUFFIX}"


def save_image_ref(image_ref: ImageRef, choose_destination: DestinationPicker) -> SaveOutcome:
    """
    Save an image reference to a file chosen by `choose_destination`.

    Args:
        image_ref: Data URI or remote URL
        choose_destination: Called with a suggested file name; returns the
            destination path, or None when the user cancels

    Returns:
        SaveOutcome; saved=False with reason "canceled" when the picker was dismissed

    Raises:
        InvalidImagePayloadError / DownloadError: If the image cannot be resolved
        FilePermissionError: If writing the destination is not permitted
        FileWriteError: If the destination cannot be written for another reason
    """
    data = resolve_to_bytes(image_ref)

    destination = choose_destination(suggested_file_name())
    if not destination:
        logger.info("Save canceled")
        return SaveOutcome(saved=False, reason="canceled")

    output_file = Path(destination)
    try:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_bytes(data)
    except PermissionError as e:
        raise FilePermissionError(f"Permission denied writing {output_file}", PERMISSION_HINT) from e
    except OSError as e:
        raise FileWriteError(f"Could not write {output_file}: {e.strerror or e}") from e

    logger.info(f"Saved {len(data)} bytes to {output_file}")
    return SaveOutcome(saved=True, target=str(output_file))
