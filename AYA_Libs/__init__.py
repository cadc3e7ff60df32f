"""
AYA_Libs - Aya Image Edit Library Modules

This package contains the round-trip image pipeline that sends a selected
document region to an image-generation backend and composites the result
back, organized into specialized sub-packages:

- ImageCodecLib: Geometry, data models and the pixel codec
- HostLib: Exclusive edit scope, host adapters and the in-memory document host
- ProvidersLib: Provider variants, registry and request dispatch
- PipelineLib: Selection capture, image transport, placement and collaborators
"""

__version__ = "0.1.0"
