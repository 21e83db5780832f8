"""
In-memory model data produced by a scene import.

OWNERSHIP:
A ModelData exclusively owns its LODs, the meshes inside them and its
material slots. Meshes are compared by identity (never by value) so that a
mesh moved from one ModelData into another can be found and removed from
the source list without touching a lookalike.

MATERIALS:
Meshes reference material slots by index into ModelData.materials. Any code
that rewrites the slot list must remap every mesh's material_slot_index
before the data is used again (see modelsmith.importer.materials).

GEOMETRY:
Vertex attributes are numpy arrays, one row per vertex:
- positions      (N, 3) float32
- normals        (N, 3) float32
- uvs            (N, 2) float32
- lightmap_uvs   (N, 2) float32, lightmap channel in [0, 1] x [0, 1]
- colors         (N, 4) float32
- blend_indices  (N, 4) uint16, skinned meshes only
- blend_weights  (N, 4) float32, skinned meshes only
Triangles are an (M, 3) uint32 array of vertex indices.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Optional, Tuple
import uuid

import numpy as np

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]
Quat4 = Tuple[float, float, float, float]  # [x, y, z, w]


def _as_array(value, dtype, width: int) -> Optional[np.ndarray]:
    if value is None:
        return None
    array = np.asarray(value, dtype=dtype)
    if array.size == 0:
        return np.zeros((0, width), dtype=dtype)
    return array.reshape(-1, width)


class ShadowsCastingMode(IntEnum):
    NONE = 0
    STATIC_ONLY = 1
    DYNAMIC_ONLY = 2
    ALL = 3


@dataclass
class MaterialSlot:
    """A named indirection between meshes and the material they render with."""
    name: str = ""
    shadows_mode: ShadowsCastingMode = ShadowsCastingMode.ALL
    material_id: Optional[uuid.UUID] = None

    def copy(self) -> "MaterialSlot":
        return replace(self)


@dataclass(eq=False)
class MeshData:
    """
    A single mesh: vertex buffers, triangle list, a (non-unique) name and a
    material slot reference.
    """
    name: str
    positions: np.ndarray
    indices: np.ndarray
    material_slot_index: int = 0
    normals: Optional[np.ndarray] = None
    uvs: Optional[np.ndarray] = None
    lightmap_uvs: Optional[np.ndarray] = None
    colors: Optional[np.ndarray] = None
    blend_indices: Optional[np.ndarray] = None
    blend_weights: Optional[np.ndarray] = None
    released: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.positions = _as_array(self.positions, np.float32, 3)
        self.indices = _as_array(self.indices, np.uint32, 3)
        self.normals = _as_array(self.normals, np.float32, 3)
        self.uvs = _as_array(self.uvs, np.float32, 2)
        self.lightmap_uvs = _as_array(self.lightmap_uvs, np.float32, 2)
        self.colors = _as_array(self.colors, np.float32, 4)
        self.blend_indices = _as_array(self.blend_indices, np.uint16, 4)
        self.blend_weights = _as_array(self.blend_weights, np.float32, 4)

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices)

    def calculate_triangles_area(self) -> float:
        """Sum of the surface area of all triangles."""
        if self.triangle_count == 0:
            return 0.0
        tris = self.positions[self.indices.astype(np.int64)]
        edges_a = tris[:, 1] - tris[:, 0]
        edges_b = tris[:, 2] - tris[:, 0]
        cross = np.cross(edges_a.astype(np.float64), edges_b.astype(np.float64))
        return float(0.5 * np.linalg.norm(cross, axis=1).sum())

    def bounding_box(self) -> Tuple[np.ndarray, np.ndarray]:
        if self.vertex_count == 0:
            zero = np.zeros(3, dtype=np.float32)
            return zero, zero.copy()
        return self.positions.min(axis=0), self.positions.max(axis=0)

    def bounding_sphere(self) -> Tuple[np.ndarray, float]:
        box_min, box_max = self.bounding_box()
        center = (box_min + box_max) * 0.5
        if self.vertex_count == 0:
            return center, 0.0
        radius = float(np.linalg.norm(self.positions - center, axis=1).max())
        return center, radius

    def release(self) -> None:
        """Drop the vertex and index buffers of a mesh that is no longer owned."""
        self.positions = np.zeros((0, 3), dtype=np.float32)
        self.indices = np.zeros((0, 3), dtype=np.uint32)
        self.normals = None
        self.uvs = None
        self.lightmap_uvs = None
        self.colors = None
        self.blend_indices = None
        self.blend_weights = None
        self.released = True


@dataclass
class LodData:
    """One level of detail: ordered meshes plus the screen size it switches at."""
    meshes: List[MeshData] = field(default_factory=list)
    screen_size: float = 1.0


@dataclass
class Node:
    name: str
    parent_index: int = -1
    position: Vec3 = (0.0, 0.0, 0.0)
    orientation: Quat4 = (0.0, 0.0, 0.0, 1.0)
    scale: Vec3 = (1.0, 1.0, 1.0)


@dataclass
class SkeletonBone:
    parent_index: int
    node_index: int
    offset_matrix: Tuple[float, ...] = (
        1.0, 0.0, 0.0, 0.0,
        0.0, 1.0, 0.0, 0.0,
        0.0, 0.0, 1.0, 0.0,
        0.0, 0.0, 0.0, 1.0,
    )


@dataclass
class SkeletonData:
    nodes: List[Node] = field(default_factory=list)
    bones: List[SkeletonBone] = field(default_factory=list)


@dataclass
class AnimationChannel:
    """Keyframes for one node: (time, value) pairs per transform component."""
    node_name: str
    position_keys: List[Tuple[float, Vec3]] = field(default_factory=list)
    rotation_keys: List[Tuple[float, Quat4]] = field(default_factory=list)
    scale_keys: List[Tuple[float, Vec3]] = field(default_factory=list)


@dataclass
class AnimationData:
    name: str
    duration: float = 0.0  # In frames
    frames_per_second: float = 30.0
    channels: List[AnimationChannel] = field(default_factory=list)
    root_node_name: str = ""
    enable_root_motion: bool = False


@dataclass
class ModelData:
    """The unit of work moved through the import pipeline."""
    lods: List[LodData] = field(default_factory=list)
    materials: List[MaterialSlot] = field(default_factory=list)
    skeleton: SkeletonData = field(default_factory=SkeletonData)
    nodes: List[Node] = field(default_factory=list)
    animations: List[AnimationData] = field(default_factory=list)
    min_screen_size: float = 0.0

    @property
    def lod_count(self) -> int:
        return len(self.lods)

    def iter_meshes(self):
        """Yield every mesh in LOD order."""
        for lod in self.lods:
            yield from lod.meshes

    def calculate_lod_screen_sizes(self) -> None:
        """Assign default LOD transitions: 1.0 for LOD 0, halving per level."""
        for lod_index, lod in enumerate(self.lods):
            lod.screen_size = 1.0 if lod_index == 0 else 0.5 ** lod_index
