"""
Object splitting: turning one multi-object scene into one asset per object.

An "object" is a MeshGroup (LOD 0 meshes sharing a name). Selecting an
object for an asset works in one of two ways:

- The import owns the parsed data (it ran the scene importer itself):
  meshes outside the group are dropped from LOD 0 in place, higher LODs
  keep only same-named meshes, and everything dropped is returned so the
  caller can release it after packing.

- The data is a SceneCache shared with sibling split imports: the group's
  meshes are MOVED out of the shared data into a fresh ModelData (LOD 0
  first, then same-named meshes of each higher LOD until a LOD has none).
  Skeleton and nodes are shared by reference since split skinned meshes
  can use the same rig.

Either way the result's material slots are compacted to the slots its
meshes use.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Sequence

from modelsmith.importer.grouping import MeshGroup
from modelsmith.importer.materials import compact_material_slots
from modelsmith.model.data import LodData, MeshData, ModelData

logger = logging.getLogger(__name__)

OBJECT_PATH_DELIMITER = "|"
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass
class SceneCache:
    """A parsed scene shared by a primary import and the split imports it spawns."""
    data: ModelData
    groups: List[MeshGroup]


@dataclass
class Selection:
    data: ModelData
    meshes_to_release: List[MeshData] = field(default_factory=list)


def _remove_mesh(meshes: List[MeshData], mesh: MeshData) -> bool:
    for i, candidate in enumerate(meshes):
        if candidate is mesh:
            del meshes[i]
            return True
    return False


def _select_in_place(data: ModelData, group: MeshGroup) -> Selection:
    to_release: List[MeshData] = []

    lod0 = data.lods[0]
    to_release.extend(mesh for mesh in lod0.meshes if mesh not in group)
    lod0.meshes = list(group.meshes)

    for lod in data.lods[1:]:
        kept = []
        for lod_mesh in lod.meshes:
            if lod_mesh.name == group.key:
                kept.append(lod_mesh)
            else:
                to_release.append(lod_mesh)
        lod.meshes = kept

    compact_material_slots(data)
    return Selection(data=data, meshes_to_release=to_release)


def _move_out_of_shared(shared: ModelData, group: MeshGroup) -> Selection:
    result = ModelData(skeleton=shared.skeleton, nodes=shared.nodes, min_screen_size=shared.min_screen_size)

    result.lods.append(LodData(meshes=list(group.meshes), screen_size=shared.lods[0].screen_size))
    for mesh in group:
        _remove_mesh(shared.lods[0].meshes, mesh)

    for source_lod in shared.lods[1:]:
        moved = [mesh for mesh in source_lod.meshes if mesh.name == group.key]
        if not moved:
            # Higher LODs never hold an object a lower LOD lacks
            break
        source_lod.meshes = [mesh for mesh in source_lod.meshes if mesh.name != group.key]
        result.lods.append(LodData(meshes=moved, screen_size=source_lod.screen_size))

    compact_material_slots(result, shared.materials)
    return Selection(data=result)


def select_object(data: ModelData, groups: Sequence[MeshGroup], object_index: int, owns_data: bool) -> Selection:
    """
    Reduce the import to a single object.

    Args:
        data: Parsed model data
        groups: Mesh groups computed from data's LOD 0
        object_index: Index into groups
        owns_data: True when data was parsed by this import (filter in place),
                   False when it is a SceneCache shared with siblings (move out)
    """
    group = groups[object_index]
    logger.debug(f"Selecting object {object_index} '{group.key}' ({len(group)} mesh(es))")
    if owns_data:
        return _select_in_place(data, group)
    return _move_out_of_shared(data, group)


def split_object_suffix(object_name: str) -> str:
    """File name suffix for an object: last '|' segment with unsafe characters replaced."""
    suffix = object_name.rsplit(OBJECT_PATH_DELIMITER, 1)[-1]
    return _INVALID_FILENAME_CHARS.sub("_", suffix)


def split_output_path(target_path: str, object_name: str) -> str:
    """`<target without extension> <suffix><target extension>`"""
    base, ext = os.path.splitext(target_path)
    return f"{base} {split_object_suffix(object_name)}{ext}"
