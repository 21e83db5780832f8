"""
Texturing utilities for imported models.

Includes the rectangle packer and the lightmap UV atlas planner.
"""
from .rect_pack import RectanglePacker, RectPackNode
from .lightmap_atlas import (
    AtlasPlan,
    AtlasSlot,
    apply_atlas_plan,
    plan_lightmap_atlas,
    render_atlas_preview,
    repack_lightmap_uvs,
)

__all__ = [
    'RectanglePacker',
    'RectPackNode',
    'AtlasPlan',
    'AtlasSlot',
    'apply_atlas_plan',
    'plan_lightmap_atlas',
    'render_atlas_preview',
    'repack_lightmap_uvs',
]
