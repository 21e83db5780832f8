"""
Asset packer: serializes ModelData into an AssetContainer.

Chunk layout:
    0       type-specific header (model / skinned model / animation)
    1..L    one chunk per LOD, all meshes of the LOD packed back to back
    15      optional SDF volume (models only)

Every LOD is packed through the same WriteStream, reset between LODs.
Skinned LOD chunks start with a one byte mesh data version.

Any header, mesh or chunk failure raises and the half-built container is
simply dropped by the caller; SDF failures only drop the SDF chunk.
"""

import logging
from typing import Callable, Optional

from modelsmith.assets import codec
from modelsmith.assets.container import HEADER_CHUNK, SDF_CHUNK, SERIALIZED_VERSIONS, AssetContainer
from modelsmith.exceptions import AssetPackingError, SDFGenerationError
from modelsmith.model.data import ModelData
from modelsmith.options import ImportOptions, ModelType

logger = logging.getLogger(__name__)

# (model data, resolution scale, LOD index) -> SDF volume bytes
SDFGenerator = Callable[[ModelData, float, int], bytes]


class AssetPacker:
    """Builds asset containers for the three importable asset types."""

    def __init__(self, sdf_generator: Optional[SDFGenerator] = None):
        self.sdf_generator = sdf_generator

    def create(self, data: ModelData, options: Optional[ImportOptions] = None) -> AssetContainer:
        """Create the asset kind selected by options.type."""
        model_type = options.type if options else ModelType.MODEL
        if model_type == ModelType.MODEL:
            return self.create_model(data, options)
        if model_type == ModelType.SKINNED_MODEL:
            return self.create_skinned_model(data, options)
        return self.create_animation(data, options)

    def _new_container(self, type_name: str) -> AssetContainer:
        return AssetContainer(type_name=type_name, serialized_version=SERIALIZED_VERSIONS[type_name])

    def _pack_header(self, container: AssetContainer, stream: codec.WriteStream, pack, *args) -> None:
        pack(stream, *args)
        container.allocate_chunk(HEADER_CHUNK)
        container.set_chunk(HEADER_CHUNK, stream.getvalue())

    def _pack_lods(self, container: AssetContainer, stream: codec.WriteStream, data: ModelData,
                   pack_mesh, version_tag: Optional[int] = None) -> None:
        for lod_index, lod in enumerate(data.lods):
            stream.reset()
            if version_tag is not None:
                stream.write_byte(version_tag)
            for mesh in lod.meshes:
                try:
                    pack_mesh(stream, mesh)
                except AssetPackingError:
                    logger.warning("Cannot pack mesh.")
                    raise
            chunk_index = lod_index + 1
            container.allocate_chunk(chunk_index)
            container.set_chunk(chunk_index, stream.getvalue())

    def create_model(self, data: ModelData, options: Optional[ImportOptions] = None) -> AssetContainer:
        container = self._new_container("Model")
        stream = codec.WriteStream(4096)
        self._pack_header(container, stream, codec.pack_model_header, data)
        self._pack_lods(container, stream, data, codec.pack_model_mesh)

        if options is not None and options.generate_sdf:
            self._pack_sdf(container, data, options.sdf_resolution)

        return container

    def create_skinned_model(self, data: ModelData, options: Optional[ImportOptions] = None) -> AssetContainer:
        container = self._new_container("SkinnedModel")
        stream = codec.WriteStream(4096)
        self._pack_header(container, stream, codec.pack_skinned_model_header, data)
        self._pack_lods(container, stream, data, codec.pack_skinned_mesh,
                        version_tag=codec.SKINNED_MESH_DATA_VERSION)
        return container

    def create_animation(self, data: ModelData, options: Optional[ImportOptions] = None) -> AssetContainer:
        """Pack a single animation clip (options.object_index, or clip 0)."""
        container = self._new_container("Animation")
        stream = codec.WriteStream(8192)
        animation_index = options.object_index if options is not None and options.object_index != -1 else 0
        self._pack_header(container, stream, codec.pack_animation_header, data, animation_index)
        return container

    def _pack_sdf(self, container: AssetContainer, data: ModelData, resolution: float) -> None:
        if self.sdf_generator is None:
            logger.warning("SDF generation requested but no SDF generator is configured")
            return
        try:
            volume = self.sdf_generator(data, resolution, data.lod_count - 1)
        except SDFGenerationError as e:
            logger.warning(f"Failed to generate model SDF: {e}")
            return
        except Exception as e:
            logger.warning(f"Failed to generate model SDF: {type(e).__name__}: {e}")
            return
        if not isinstance(volume, (bytes, bytearray)):
            logger.warning(f"Failed to generate model SDF: generator returned {type(volume).__name__}, not bytes")
            return
        container.allocate_chunk(SDF_CHUNK)
        container.set_chunk(SDF_CHUNK, volume)
