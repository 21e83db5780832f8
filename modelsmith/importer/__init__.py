"""Model import pipeline: grouping, splitting, material slots and orchestration."""
from modelsmith.importer.grouping import MeshGroup, group_by_name, group_meshes
from modelsmith.importer.materials import compact_material_slots, has_valid_material_slots, restore_materials
from modelsmith.importer.splitter import SceneCache, select_object, split_output_path
from modelsmith.importer.scene import JsonSceneImporter, SceneImporter
from modelsmith.importer.orchestrator import (
    CreateAssetResult,
    ImportOrchestrator,
    ImportQueue,
    ImportResult,
    ImportTask,
)

__all__ = [
    "MeshGroup",
    "group_by_name",
    "group_meshes",
    "compact_material_slots",
    "has_valid_material_slots",
    "restore_materials",
    "SceneCache",
    "select_object",
    "split_output_path",
    "JsonSceneImporter",
    "SceneImporter",
    "CreateAssetResult",
    "ImportOrchestrator",
    "ImportQueue",
    "ImportResult",
    "ImportTask",
]
