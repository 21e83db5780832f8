"""In-memory model data structures."""
from .data import (
    AnimationChannel,
    AnimationData,
    LodData,
    MaterialSlot,
    MeshData,
    ModelData,
    Node,
    ShadowsCastingMode,
    SkeletonBone,
    SkeletonData,
)

__all__ = [
    "AnimationChannel",
    "AnimationData",
    "LodData",
    "MaterialSlot",
    "MeshData",
    "ModelData",
    "Node",
    "ShadowsCastingMode",
    "SkeletonBone",
    "SkeletonData",
]
