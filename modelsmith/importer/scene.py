"""
Scene import collaborators.

The pipeline only needs something that turns an input file into ModelData;
SceneImporter is that contract. JsonSceneImporter reads the JSON scene
schema (modelsmith.schema.scene) and is the importer used by default.
"""

import json
import logging
import os
from typing import Optional, Protocol

import numpy as np
from pydantic import ValidationError

from modelsmith.exceptions import SceneImportError
from modelsmith.model.data import (
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
from modelsmith.options import ImportOptions, LightmapUVsSource, ModelType
from modelsmith.schema.scene import MeshDefinition, NodeDefinition, SceneDefinition

logger = logging.getLogger(__name__)

_CHANNEL_SOURCES = {
    LightmapUVsSource.CHANNEL0: 0,
    LightmapUVsSource.CHANNEL1: 1,
    LightmapUVsSource.CHANNEL2: 2,
    LightmapUVsSource.CHANNEL3: 3,
}


class SceneImporter(Protocol):
    def import_scene(self, input_path: str, options: ImportOptions, auto_import_output: str) -> ModelData:
        """Parse input_path; raise SceneImportError when it cannot be imported."""
        ...


def _normalize_to_unit_square(coords: np.ndarray) -> np.ndarray:
    lo = coords.min(axis=0)
    extent = coords.max(axis=0) - lo
    extent[extent <= 0] = 1.0
    return ((coords - lo) / extent).astype(np.float32)


def _generate_lightmap_uvs(mesh: MeshDefinition) -> np.ndarray:
    """Stand-in chart: the last UV channel (or the XY projection) stretched to [0, 1]."""
    if mesh.lightmap_uvs is not None:
        source = np.asarray(mesh.lightmap_uvs, dtype=np.float32)
    elif mesh.uv_channels:
        source = np.asarray(mesh.uv_channels[-1], dtype=np.float32)
    else:
        source = np.asarray(mesh.positions, dtype=np.float32).reshape(-1, 3)[:, :2]
    if len(source) == 0:
        return np.zeros((0, 2), dtype=np.float32)
    return _normalize_to_unit_square(source)


def _lightmap_uvs(mesh: MeshDefinition, source: LightmapUVsSource) -> Optional[np.ndarray]:
    if source == LightmapUVsSource.DISABLE:
        return None
    if source == LightmapUVsSource.GENERATE:
        return _generate_lightmap_uvs(mesh)
    channel = _CHANNEL_SOURCES[source]
    if channel < len(mesh.uv_channels):
        return np.asarray(mesh.uv_channels[channel], dtype=np.float32)
    logger.warning(f"Mesh '{mesh.name}' has no UV channel {channel} for lightmap UVs")
    return None


def _to_node(node: NodeDefinition) -> Node:
    return Node(
        name=node.name,
        parent_index=node.parent,
        position=tuple(node.position),
        orientation=tuple(node.orientation),
        scale=tuple(node.scale),
    )


def _to_mesh(mesh: MeshDefinition, options: ImportOptions) -> MeshData:
    skinned = options.type == ModelType.SKINNED_MODEL
    return MeshData(
        name=mesh.name,
        material_slot_index=mesh.material,
        positions=mesh.positions,
        indices=mesh.triangles,
        normals=mesh.normals,
        uvs=mesh.uv_channels[0] if mesh.uv_channels else None,
        lightmap_uvs=_lightmap_uvs(mesh, options.lightmap_uvs_source),
        colors=mesh.colors,
        blend_indices=mesh.blend_indices if skinned else None,
        blend_weights=mesh.blend_weights if skinned else None,
    )


def scene_to_model_data(scene: SceneDefinition, options: ImportOptions) -> ModelData:
    """Build ModelData with the parts of the scene the requested asset type needs."""
    data = ModelData()
    data.nodes = [_to_node(node) for node in scene.nodes]

    if options.type == ModelType.ANIMATION:
        for animation in scene.animations:
            data.animations.append(AnimationData(
                name=animation.name,
                duration=animation.duration,
                frames_per_second=animation.fps,
                root_node_name=animation.root_node,
                enable_root_motion=animation.root_motion,
                channels=[
                    AnimationChannel(
                        node_name=channel.node,
                        position_keys=[(t, tuple(v)) for t, v in channel.position_keys],
                        rotation_keys=[(t, tuple(v)) for t, v in channel.rotation_keys],
                        scale_keys=[(t, tuple(v)) for t, v in channel.scale_keys],
                    )
                    for channel in animation.channels
                ],
            ))
        return data

    data.materials = [
        MaterialSlot(
            name=slot.name,
            shadows_mode=ShadowsCastingMode(slot.shadows_mode),
            material_id=slot.material_id,
        )
        for slot in scene.materials
    ]
    for lod in scene.lods:
        data.lods.append(LodData(
            meshes=[_to_mesh(mesh, options) for mesh in lod.meshes],
            screen_size=lod.screen_size,
        ))

    if options.type == ModelType.SKINNED_MODEL and scene.skeleton is not None:
        data.skeleton = SkeletonData(
            nodes=[_to_node(node) for node in scene.skeleton.nodes],
            bones=[
                SkeletonBone(parent_index=bone.parent, node_index=bone.node, offset_matrix=tuple(bone.offset_matrix))
                for bone in scene.skeleton.bones
            ],
        )
    return data


class JsonSceneImporter:
    """Imports `.json` scene descriptions."""

    def import_scene(self, input_path: str, options: ImportOptions, auto_import_output: str) -> ModelData:
        if not os.path.exists(input_path):
            raise SceneImportError(f"Input file not found: {input_path}")

        try:
            with open(input_path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SceneImportError(f"Cannot read scene file {input_path}: {e}") from e

        try:
            scene = SceneDefinition.model_validate(raw)
        except ValidationError as e:
            raise SceneImportError(f"Invalid scene file {input_path}: {e}") from e

        logger.debug(f"Parsed scene {input_path} (sub-assets folder: {auto_import_output})")
        return scene_to_model_data(scene, options)
