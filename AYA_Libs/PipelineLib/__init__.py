"""
PipelineLib - Round-trip image pipeline

Selection capture, image transport, placement, previews, saving, settings
and the generation session that strings them together.
"""

from AYA_Libs.PipelineLib.selection_capture import (
    get_selection_bounds,
    capture_selection_as_image,
)
from AYA_Libs.PipelineLib.image_transport import (
    resolve_to_bytes,
    infer_mime_type,
    materialize_local_preview,
    release_local_preview,
    materialize_previews,
)
from AYA_Libs.PipelineLib.placement_engine import (
    PlacementState,
    PlacementReport,
    place,
)
from AYA_Libs.PipelineLib.preview_store import PreviewCollection
from AYA_Libs.PipelineLib.output_saver import save_image_ref, suggested_file_name
from AYA_Libs.PipelineLib.settings_store import (
    DEFAULT_SETTINGS,
    default_settings,
    normalize_settings,
    read_settings,
    write_settings,
    get_settings_path,
)
from AYA_Libs.PipelineLib.generation_cycle import CycleOutcome, GenerationSession

__all__ = [
    "get_selection_bounds",
    "capture_selection_as_image",
    "resolve_to_bytes",
    "infer_mime_type",
    "materialize_local_preview",
    "release_local_preview",
    "materialize_previews",
    "PlacementState",
    "PlacementReport",
    "place",
    "PreviewCollection",
    "save_image_ref",
    "suggested_file_name",
    "DEFAULT_SETTINGS",
    "default_settings",
    "normalize_settings",
    "read_settings",
    "write_settings",
    "get_settings_path",
    "CycleOutcome",
    "GenerationSession",
]
