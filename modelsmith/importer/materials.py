"""
Material slot compaction and reimport restoration.

Compaction keeps the invariant that every mesh's material_slot_index points
into ModelData.materials: after meshes are removed or moved between models,
the slot list is rebuilt from the slots the remaining meshes actually use,
in first-use order (LOD order, then mesh order), and the indices remapped.

Restoration copies name, shadows mode and material reference from the asset
being reimported onto the freshly imported slots, so user material
assignments survive a reimport.
"""

import logging
from typing import List, Optional, Sequence

from modelsmith.model.data import MaterialSlot, ModelData
from modelsmith.options import MaterialRestorePolicy

logger = logging.getLogger(__name__)

RESTORABLE_TYPES = ("Model", "SkinnedModel")


def compact_material_slots(data: ModelData, source_slots: Optional[Sequence[MaterialSlot]] = None) -> List[MaterialSlot]:
    """
    Rebuild data.materials with only the slots referenced by data's meshes.

    Args:
        data: Model whose meshes reference `source_slots` by index
        source_slots: Slot list the mesh indices currently point into
                      (defaults to data.materials)

    Returns:
        The new, compacted slot list (also assigned to data.materials)
    """
    if source_slots is None:
        source_slots = list(data.materials)

    table = [-1] * len(source_slots)
    compacted: List[MaterialSlot] = []
    for mesh in data.iter_meshes():
        new_index = table[mesh.material_slot_index]
        if new_index == -1:
            new_index = len(compacted)
            compacted.append(source_slots[mesh.material_slot_index].copy())
            table[mesh.material_slot_index] = new_index
        mesh.material_slot_index = new_index

    data.materials = compacted
    return compacted


def has_valid_material_slots(data: ModelData) -> bool:
    """True when every mesh's slot index is in range of data.materials."""
    count = len(data.materials)
    return all(0 <= mesh.material_slot_index < count for mesh in data.iter_meshes())


def restore_materials(
    storage,
    target_path: str,
    data: ModelData,
    policy: MaterialRestorePolicy = MaterialRestorePolicy.BY_INDEX,
) -> bool:
    """
    Copy slot settings from the existing asset at target_path onto data.

    Skipped silently (returns False) when the asset is missing, fails to
    load or is not a model-like asset.

    BY_INDEX pairs slots by position: a reimport that reorders slots will
    remap bindings. BY_NAME pairs each new slot with the first old slot of
    the same name and leaves unmatched slots untouched.
    """
    if not storage.exists(target_path):
        return False

    asset = storage.load(target_path)
    if asset is None:
        return False
    if not asset.wait_for_loaded():
        return False
    if asset.type_name not in RESTORABLE_TYPES:
        return False

    previous = asset.material_slots
    if policy == MaterialRestorePolicy.BY_NAME:
        by_name = {}
        for slot in previous:
            by_name.setdefault(slot.name, slot)
        pairs = [(dst, by_name.get(dst.name)) for dst in data.materials]
    else:
        pairs = [(dst, previous[i] if i < len(previous) else None) for i, dst in enumerate(data.materials)]

    restored = 0
    for dst, src in pairs:
        if src is None:
            continue
        dst.name = src.name
        dst.shadows_mode = src.shadows_mode
        dst.material_id = src.material_id
        restored += 1

    logger.info(f"Restored {restored} material slot(s) from {target_path}")
    return True
