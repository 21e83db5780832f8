"""Scene schema definitions."""
from .scene import (
    SceneDefinition,
    MaterialSlotDefinition,
    MeshDefinition,
    LodDefinition,
    NodeDefinition,
    BoneDefinition,
    SkeletonDefinition,
    ChannelDefinition,
    AnimationDefinition,
)

__all__ = [
    "SceneDefinition",
    "MaterialSlotDefinition",
    "MeshDefinition",
    "LodDefinition",
    "NodeDefinition",
    "BoneDefinition",
    "SkeletonDefinition",
    "ChannelDefinition",
    "AnimationDefinition",
]
