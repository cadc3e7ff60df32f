"""
HostLib - Host document boundary

Edit-scope serialization, adapters that normalize unstable host shapes, and
an in-memory Pillow host implementing the document surface the pipeline uses.
"""

from AYA_Libs.HostLib.edit_scope import (
    execute_as_modal,
    in_edit_scope,
    current_scope_name,
    ensure_outside_edit_scope,
)
from AYA_Libs.HostLib.host_adapters import (
    first_successful,
    unit_to_pixels,
    read_buffer_bytes,
    edges_to_pixels,
)
from AYA_Libs.HostLib.memory_host import (
    UnitValue,
    PixelBuffer,
    MemoryImaging,
    MemoryLayer,
    TransformableLayer,
    LayerCompositor,
    MemoryDocument,
    MemoryHost,
)

__all__ = [
    "execute_as_modal",
    "in_edit_scope",
    "current_scope_name",
    "ensure_outside_edit_scope",
    "first_successful",
    "unit_to_pixels",
    "read_buffer_bytes",
    "edges_to_pixels",
    "UnitValue",
    "PixelBuffer",
    "MemoryImaging",
    "MemoryLayer",
    "TransformableLayer",
    "LayerCompositor",
    "MemoryDocument",
    "MemoryHost",
]
