"""
ModelSmith - Turn imported 3D scenes into engine-ready model assets

Groups and splits scene objects into separate assets, compacts material
slots, packs lightmap UVs into a shared atlas and serializes models, skinned
models and animations into chunked binary asset containers.
"""

from modelsmith.importer.orchestrator import CreateAssetResult, ImportOrchestrator, ImportResult
from modelsmith.options import ImportOptions, LightmapUVsSource, ModelType

__version__ = "0.1.0"
__all__ = [
    "CreateAssetResult",
    "ImportOrchestrator",
    "ImportResult",
    "ImportOptions",
    "LightmapUVsSource",
    "ModelType",
]
