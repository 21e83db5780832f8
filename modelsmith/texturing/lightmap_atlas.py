"""
Lightmap UV Atlas Planner

The scene importer generates lightmap UVs per mesh, each filling the whole
[0,1] x [0,1] space. When a model has several meshes those islands overlap,
so they get packed into one shared atlas where every mesh owns an exclusive
square region sized by its surface area (bigger meshes get more texels).

Atlas sizing:
    footprint(mesh) = sqrt(area(mesh))
    atlas side      = sqrt(sum(areas)) * 1.02, grown x1.5 per failed attempt
    padding         = 4/256 of the atlas side, reserved around every slot

UV remap per mesh:
    uv' = uv * (slot_size - padding) / atlas + slot_origin / atlas
"""

import colorsys
import hashlib
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageDraw

from modelsmith.model.data import MeshData, ModelData
from modelsmith.texturing.rect_pack import RectanglePacker

logger = logging.getLogger(__name__)

ATLAS_SLACK = 1.02
ATLAS_GROWTH = 1.5
ATLAS_PADDING_RATIO = 4.0 / 256.0
MAX_PACK_ATTEMPTS = 10
ZERO_TOLERANCE = 1e-6


@dataclass
class AtlasSlot:
    """The region of the atlas assigned to one mesh (size includes trailing padding)."""
    mesh: MeshData
    area: float
    size: float
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class AtlasPlan:
    """Result of a successful packing attempt."""
    atlas_size: float
    padding: float
    initial_size: float
    attempts: int
    slots: List[AtlasSlot] = field(default_factory=list)

    def uv_transform(self, slot: AtlasSlot) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Return (scale, offset) mapping the mesh's [0,1] UVs into its slot."""
        inv = 1.0 / self.atlas_size
        scale = ((slot.width - self.padding) * inv, (slot.height - self.padding) * inv)
        offset = (slot.x * inv, slot.y * inv)
        return scale, offset


def plan_lightmap_atlas(meshes: Sequence[MeshData]) -> Optional[AtlasPlan]:
    """
    Find a non-overlapping square slot for every mesh.

    Args:
        meshes: Meshes of a single LOD, in packing order

    Returns:
        AtlasPlan, or None when the meshes have no area or no layout was
        found within MAX_PACK_ATTEMPTS (soft failure, UVs stay untouched)
    """
    slots = []
    area_sum = 0.0
    for mesh in meshes:
        area = mesh.calculate_triangles_area()
        slots.append(AtlasSlot(mesh=mesh, area=area, size=math.sqrt(area)))
        area_sum += area

    if area_sum <= ZERO_TOLERANCE:
        logger.warning("Meshes have no surface area, skipping lightmap UVs packing")
        return None

    initial_size = math.sqrt(area_sum) * ATLAS_SLACK
    atlas_size = initial_size
    for attempt in range(1, MAX_PACK_ATTEMPTS + 1):
        padding = ATLAS_PADDING_RATIO * atlas_size
        packer = RectanglePacker.square(atlas_size, margin=padding)
        all_fit = True
        for slot in slots:
            node = packer.insert(slot.size, slot.size, padding)
            if node is None:
                all_fit = False
                break
            slot.x, slot.y = node.x, node.y
            slot.width, slot.height = node.width, node.height

        if all_fit:
            logger.info(
                f"Packed {len(slots)} lightmap charts into atlas of size {atlas_size:.4f} "
                f"(attempt {attempt})"
            )
            return AtlasPlan(
                atlas_size=atlas_size,
                padding=padding,
                initial_size=initial_size,
                attempts=attempt,
                slots=slots,
            )

        atlas_size *= ATLAS_GROWTH

    logger.warning(f"Failed to pack lightmap UVs of {len(slots)} meshes after {MAX_PACK_ATTEMPTS} attempts")
    return None


def apply_atlas_plan(plan: AtlasPlan) -> None:
    """Remap every planned mesh's lightmap UVs into its atlas slot (in place)."""
    for slot in plan.slots:
        uvs = slot.mesh.lightmap_uvs
        if uvs is None or len(uvs) == 0:
            continue
        scale, offset = plan.uv_transform(slot)
        uvs[:, 0] = uvs[:, 0] * scale[0] + offset[0]
        uvs[:, 1] = uvs[:, 1] * scale[1] + offset[1]


def repack_lightmap_uvs(data: ModelData) -> Optional[AtlasPlan]:
    """
    Pack the LOD 0 meshes' lightmap UVs into a single shared atlas.

    Not idempotent: areas come from geometry, not from the current UV
    extents, so calling this twice on the same data shrinks the islands again.
    """
    if not data.lods:
        return None
    plan = plan_lightmap_atlas(data.lods[0].meshes)
    if plan is not None:
        apply_atlas_plan(plan)
    return plan


def _pastel_color(seed: str) -> Tuple[int, int, int]:
    digest = hashlib.md5(seed.encode("utf-8")).digest()
    hue = digest[0] / 255.0
    r, g, b = colorsys.hls_to_rgb(hue, 0.8, 0.6)
    return int(r * 255), int(g * 255), int(b * 255)


def render_atlas_preview(plan: AtlasPlan, size: int = 256) -> Image.Image:
    """
    Draw the planned slots into an image for eyeballing a layout.

    Each slot is filled with a pastel colour derived from its mesh name; the
    trailing padding is left as background.
    """
    image = Image.new("RGBA", (size, size), (40, 40, 40, 255))
    draw = ImageDraw.Draw(image)
    px = size / plan.atlas_size

    for index, slot in enumerate(plan.slots):
        x1 = slot.x * px
        y1 = slot.y * px
        x2 = (slot.x + slot.width - plan.padding) * px
        y2 = (slot.y + slot.height - plan.padding) * px
        color = _pastel_color(f"{slot.mesh.name}:{index}")
        draw.rectangle([x1, y1, max(x1, x2 - 1), max(y1, y2 - 1)], fill=color)
        border = tuple(max(0, c - 40) for c in color)
        draw.rectangle([x1, y1, max(x1, x2 - 1), max(y1, y2 - 1)], outline=border)

    return image
