"""
JSON Scene Schema

Interchange description of an already-parsed 3D scene, used as input by the
JSON scene importer. Third-party formats are converted to this upstream.

COORDINATES:
- Positions in model space, right-handed, Y-up
- Orientations are quaternions [x, y, z, w]
- UV channels are per-vertex [u, v] pairs; lightmap UVs are expected in [0, 1]

STRUCTURE:
- materials: flat list of material slots, referenced by index
- lods: LOD 0 first; every mesh names its object (names are not unique)
- nodes / skeleton / animations: optional, for skinned models and animations

Example:
    {
      "materials": [{"name": "Paint"}],
      "lods": [{"meshes": [{"name": "Body", "material": 0,
                            "positions": [[0,0,0],[1,0,0],[0,1,0]],
                            "triangles": [[0,1,2]]}]}]
    }
"""

from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Vec4 = Tuple[float, float, float, float]

#########################
# GEOMETRY
#########################

class MaterialSlotDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field("", description="Slot name.")
    shadows_mode: int = Field(3, ge=0, le=3, description="0 none, 1 static only, 2 dynamic only, 3 all.")
    material_id: Optional[uuid.UUID] = Field(None, description="Referenced material asset.")


class MeshDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(..., description="Object name; meshes with equal names form one object.")
    material: int = Field(0, ge=0, description="Material slot index.")
    positions: List[Vec3] = Field(..., description="Vertex positions.")
    triangles: List[Tuple[int, int, int]] = Field(..., description="Vertex indices, three per triangle.")
    normals: Optional[List[Vec3]] = None
    uv_channels: List[List[Vec2]] = Field(default_factory=list, description="Texture coordinate channels.")
    lightmap_uvs: Optional[List[Vec2]] = Field(None, description="Authored lightmap UVs in [0, 1].")
    colors: Optional[List[Vec4]] = None
    blend_indices: Optional[List[Tuple[int, int, int, int]]] = None
    blend_weights: Optional[List[Vec4]] = None

    @model_validator(mode='after')
    def validate_vertex_streams(self):
        count = len(self.positions)
        streams = {
            'normals': self.normals,
            'lightmap_uvs': self.lightmap_uvs,
            'colors': self.colors,
            'blend_indices': self.blend_indices,
            'blend_weights': self.blend_weights,
        }
        for i, channel in enumerate(self.uv_channels):
            streams[f'uv_channels[{i}]'] = channel
        for name, stream in streams.items():
            if stream is not None and len(stream) != count:
                raise ValueError(f"'{name}' has {len(stream)} entries for {count} positions")
        for tri in self.triangles:
            if any(i < 0 or i >= count for i in tri):
                raise ValueError(f"Triangle {list(tri)} references a missing vertex")
        return self


class LodDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    screen_size: float = Field(1.0, ge=0, description="Screen size the LOD switches at.")
    meshes: List[MeshDefinition] = Field(default_factory=list)

#########################
# SKELETON & ANIMATION
#########################

class NodeDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str
    parent: int = Field(-1, ge=-1)
    position: Vec3 = (0.0, 0.0, 0.0)
    orientation: Vec4 = (0.0, 0.0, 0.0, 1.0)
    scale: Vec3 = (1.0, 1.0, 1.0)


class BoneDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    node: int = Field(..., ge=0, description="Skeleton node index.")
    parent: int = Field(-1, ge=-1, description="Parent bone index.")
    offset_matrix: List[float] = Field(
        default_factory=lambda: [1.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 0.0, 1.0],
        min_length=16,
        max_length=16,
    )


class SkeletonDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    nodes: List[NodeDefinition] = Field(default_factory=list)
    bones: List[BoneDefinition] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_bones(self):
        for bone in self.bones:
            if bone.node >= len(self.nodes):
                raise ValueError(f"Bone references missing node {bone.node}")
        return self


class ChannelDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    node: str
    position_keys: List[Tuple[float, Vec3]] = Field(default_factory=list)
    rotation_keys: List[Tuple[float, Vec4]] = Field(default_factory=list)
    scale_keys: List[Tuple[float, Vec3]] = Field(default_factory=list)

    @field_validator('position_keys', 'rotation_keys', 'scale_keys')
    @classmethod
    def validate_key_times(cls, v):
        prev_time = None
        for time, _ in v:
            if prev_time is not None and time < prev_time:
                raise ValueError("Key times must not decrease")
            prev_time = time
        return v


class AnimationDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str
    duration: float = Field(..., gt=0, description="Length in frames.")
    fps: float = Field(30.0, gt=0)
    channels: List[ChannelDefinition] = Field(default_factory=list)
    root_node: str = ""
    root_motion: bool = False

#########################
# TOP-LEVEL
#########################

class SceneDefinition(BaseModel):
    model_config = ConfigDict(extra='forbid')

    materials: List[MaterialSlotDefinition] = Field(default_factory=list)
    lods: List[LodDefinition] = Field(default_factory=list)
    nodes: List[NodeDefinition] = Field(default_factory=list)
    skeleton: Optional[SkeletonDefinition] = None
    animations: List[AnimationDefinition] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_material_references(self):
        for lod in self.lods:
            for mesh in lod.meshes:
                if mesh.material >= len(self.materials):
                    raise ValueError(f"Mesh '{mesh.name}' uses missing material slot {mesh.material}")
        return self
