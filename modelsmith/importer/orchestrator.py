"""
Model import orchestration

Runs one import job end to end:

    options -> scene import -> mesh grouping -> [split objects] -> [select object]
            -> [restore materials] -> [lightmap atlas] -> asset packing -> save

Splitting queues one ImportTask per extra object (mesh group, or animation
clip for animation imports). The tasks share the already parsed scene
through ImportOptions.cached, so the input file is parsed once, and they are
run to completion before the primary asset is finalized.
"""

import logging
import os
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Iterator, List, Mapping, Optional, Union

from pydantic import ValidationError

from modelsmith.assets.container import AssetContainer, FileAssetStorage
from modelsmith.assets.packer import AssetPacker
from modelsmith.exceptions import (
    AssetPackingError,
    ChunkAllocationError,
    SceneImportError,
)
from modelsmith.importer.grouping import group_meshes
from modelsmith.importer.materials import compact_material_slots, restore_materials
from modelsmith.importer.scene import JsonSceneImporter, SceneImporter
from modelsmith.importer.splitter import SceneCache, select_object, split_output_path
from modelsmith.model.data import MeshData, ModelData
from modelsmith.options import (
    ImportOptions,
    LightmapUVsSource,
    ModelType,
    SplitFailurePolicy,
    build_import_metadata,
    try_get_import_options,
)
from modelsmith.texturing.lightmap_atlas import repack_lightmap_uvs

logger = logging.getLogger(__name__)


class CreateAssetResult(str, Enum):
    OK = "ok"
    ERROR = "error"
    INPUT_ERROR = "input_error"
    CHUNK_ALLOCATION_FAILED = "chunk_allocation_failed"
    CONFIGURATION_INVALID = "configuration_invalid"


@dataclass
class ImportResult:
    """Outcome of one asset import (plus the split imports it spawned)."""
    kind: CreateAssetResult
    output_path: str
    message: str = ""
    container: Optional[AssetContainer] = None
    siblings: List["ImportResult"] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind == CreateAssetResult.OK

    def all_outputs(self) -> List[str]:
        """Paths of every asset written by this import and its split imports."""
        paths = [self.output_path] if self.ok else []
        for sibling in self.siblings:
            paths.extend(sibling.all_outputs())
        return paths


@dataclass
class ImportTask:
    input_path: str
    output_path: str
    options: Optional[Union[ImportOptions, Mapping[str, Any]]] = None


class ImportQueue:
    """FIFO of pending import tasks."""

    def __init__(self):
        self._tasks: Deque[ImportTask] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    def push(self, task: ImportTask) -> None:
        self._tasks.append(task)

    def drain(self) -> Iterator[ImportTask]:
        while self._tasks:
            yield self._tasks.popleft()


class ImportOrchestrator:
    """
    Coordinates model imports.

    Args:
        importer: Scene importer collaborator (default: JSON scene importer)
        storage: Asset storage used for reimport lookups and saving
        packer: Asset packer (carries the optional SDF generator)

    Example:
        >>> orchestrator = ImportOrchestrator()
        >>> result = orchestrator.import_file("car.json", "Content/car.msa",
        ...                                   ImportOptions(split_objects=True))
        >>> result.all_outputs()
        ['Content/car.msa', 'Content/car Wheel.msa']
    """

    def __init__(
        self,
        importer: Optional[SceneImporter] = None,
        storage: Optional[FileAssetStorage] = None,
        packer: Optional[AssetPacker] = None,
    ):
        self.importer = importer or JsonSceneImporter()
        self.storage = storage or FileAssetStorage()
        self.packer = packer or AssetPacker()

    def import_file(
        self,
        input_path: str,
        output_path: str,
        options: Optional[Union[ImportOptions, Mapping[str, Any]]] = None,
    ) -> ImportResult:
        """Import input_path into the asset at output_path."""
        return self.run(ImportTask(input_path, output_path, options))

    def run(self, task: ImportTask) -> ImportResult:
        try:
            options = self._resolve_options(task)
        except ValidationError as e:
            logger.error(f"Invalid import options for {task.output_path}: {e}")
            return ImportResult(CreateAssetResult.CONFIGURATION_INVALID, task.output_path, message=str(e))
        return self._import(task, options)

    def create(self, output_path: str, data: ModelData) -> ImportResult:
        """Create a model asset directly from in-memory model data."""
        if not data.lods or not data.lods[0].meshes:
            logger.warning("Model has no valid meshes")
            return ImportResult(CreateAssetResult.INPUT_ERROR, output_path, message="Model has no valid meshes")

        data.calculate_lod_screen_sizes()
        return self._pack_and_save(output_path, data, None, [], metadata=b"")

    #########################
    # PIPELINE STEPS
    #########################

    def _resolve_options(self, task: ImportTask) -> ImportOptions:
        if isinstance(task.options, ImportOptions):
            return task.options.model_copy()
        if task.options is not None:
            return ImportOptions.deserialize(task.options)

        # Restore the previous settings or use default ones
        options = try_get_import_options(task.output_path)
        if options is None:
            logger.warning("Missing model import options. Using default values.")
            options = ImportOptions()
        return options

    def _auto_import_output(self, task: ImportTask, options: ImportOptions) -> str:
        folder = options.sub_asset_folder.rstrip()
        if not folder:
            folder = os.path.splitext(os.path.basename(task.input_path))[0]
        return os.path.join(os.path.dirname(task.output_path), folder)

    def _import(self, task: ImportTask, options: ImportOptions) -> ImportResult:
        cache: Optional[SceneCache] = options.cached
        if cache is not None:
            data, groups, owns_data = cache.data, cache.groups, False
        else:
            try:
                data = self.importer.import_scene(task.input_path, options, self._auto_import_output(task, options))
            except SceneImportError as e:
                logger.error(f"Cannot import model file. {e}")
                return ImportResult(CreateAssetResult.INPUT_ERROR, task.output_path, message=str(e))
            # The same name can be used by several meshes (one per material)
            groups = group_meshes(data)
            owns_data = True

        siblings: List[ImportResult] = []
        if options.split_objects:
            cache = cache or SceneCache(data=data, groups=groups)
            options = options.model_copy(update={"split_objects": False, "object_index": 0, "cached": cache})
            failed = self._import_split_objects(task, options, data, groups, siblings)
            if failed is not None and options.split_failure_policy == SplitFailurePolicy.FAIL_FAST:
                return ImportResult(
                    failed.kind,
                    task.output_path,
                    message=f"Split object import failed ({failed.output_path}): {failed.message}",
                    siblings=siblings,
                )

        # Reduce a model import to a single object
        meshes_to_release: List[MeshData] = []
        if (options.type in (ModelType.MODEL, ModelType.SKINNED_MODEL)
                and 0 <= options.object_index < len(groups)):
            selection = select_object(data, groups, options.object_index, owns_data=owns_data)
            data = selection.data
            meshes_to_release = selection.meshes_to_release
        elif options.type != ModelType.ANIMATION and data.lods:
            compact_material_slots(data)

        problem = self._validate(data, options)
        if problem is not None:
            kind, message = problem
            logger.error(f"Cannot create asset {task.output_path}. {message}")
            self._release(meshes_to_release)
            return ImportResult(kind, task.output_path, message=message, siblings=siblings)

        if options.restore_materials_on_reimport and data.materials:
            restore_materials(self.storage, task.output_path, data, options.material_restore_policy)

        # Generated lightmap UVs fill [0,1] per mesh; give each mesh its own part of the space
        if (options.type == ModelType.MODEL
                and options.lightmap_uvs_source == LightmapUVsSource.GENERATE
                and data.lods
                and len(data.lods[0].meshes) > 1):
            repack_lightmap_uvs(data)

        result = self._pack_and_save(
            task.output_path,
            data,
            options,
            meshes_to_release,
            metadata=build_import_metadata(options, task.input_path),
        )
        result.siblings = siblings
        return result

    def _import_split_objects(
        self,
        task: ImportTask,
        options: ImportOptions,
        data: ModelData,
        groups,
        siblings: List[ImportResult],
    ) -> Optional[ImportResult]:
        """Queue and run one import per extra object; returns the first failure, if any."""
        if options.type == ModelType.ANIMATION:
            names = [animation.name for animation in data.animations]
            logger.info(f"Splitting imported {len(names)} animations")
        else:
            names = [group.key for group in groups]
            logger.info(f"Splitting imported {len(names)} meshes")

        queue = ImportQueue()
        used_paths = {task.output_path}
        for object_index in range(1, len(names)):
            output_path = split_output_path(task.output_path, names[object_index])
            if output_path in used_paths:
                logger.warning(
                    f"Split object '{names[object_index]}' maps to {output_path}, "
                    f"which another object already writes; the earlier asset will be overwritten"
                )
            used_paths.add(output_path)
            queue.push(ImportTask(task.input_path, output_path, options.split_copy(object_index)))

        first_failure = None
        for split_task in queue.drain():
            result = self.run(split_task)
            siblings.append(result)
            if result.ok:
                continue
            logger.error(f"Failed to import split object {split_task.output_path}: {result.message}")
            if first_failure is None:
                first_failure = result
            if options.split_failure_policy == SplitFailurePolicy.FAIL_FAST:
                break
        return first_failure

    def _validate(self, data: ModelData, options: ImportOptions):
        if options.type == ModelType.ANIMATION:
            if not data.animations:
                return CreateAssetResult.INPUT_ERROR, "Input file has no animations"
            animation_index = options.object_index if options.object_index != -1 else 0
            if animation_index >= len(data.animations):
                return (
                    CreateAssetResult.CONFIGURATION_INVALID,
                    f"Animation index {animation_index} is out of range ({len(data.animations)} animation(s))",
                )
            return None
        if not data.lods or not data.lods[0].meshes:
            return CreateAssetResult.INPUT_ERROR, "Model has no valid meshes"
        return None

    def _pack_and_save(
        self,
        output_path: str,
        data: ModelData,
        options: Optional[ImportOptions],
        meshes_to_release: List[MeshData],
        metadata: bytes,
    ) -> ImportResult:
        try:
            container = self.packer.create(data, options)
        except ChunkAllocationError as e:
            logger.error(f"Cannot allocate asset chunk for {output_path}. {e}")
            return ImportResult(CreateAssetResult.CHUNK_ALLOCATION_FAILED, output_path, message=str(e))
        except AssetPackingError as e:
            logger.error(f"Cannot create asset {output_path}. {e}")
            return ImportResult(CreateAssetResult.ERROR, output_path, message=str(e))
        finally:
            self._release(meshes_to_release)

        container.metadata = metadata
        try:
            self.storage.save(output_path, container)
        except OSError as e:
            logger.error(f"Cannot save asset {output_path}. {e}")
            return ImportResult(CreateAssetResult.ERROR, output_path, message=str(e))

        return ImportResult(CreateAssetResult.OK, output_path, container=container)

    @staticmethod
    def _release(meshes: List[MeshData]) -> None:
        for mesh in meshes:
            mesh.release()
        meshes.clear()
