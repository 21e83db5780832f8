"""Binary layouts for asset chunk payloads.

All values are little-endian. Strings are a u16 byte length followed by
UTF-8 bytes. Packing functions write into a WriteStream and raise
AssetPackingError on invalid input; nothing is written to disk here.
"""

from __future__ import annotations

import struct
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from modelsmith.exceptions import AssetFormatError, AssetPackingError
from modelsmith.model.data import (
    AnimationData,
    MaterialSlot,
    MeshData,
    ModelData,
    ShadowsCastingMode,
)

__all__ = [
    "WriteStream",
    "ReadStream",
    "MAX_LODS",
    "SKINNED_MESH_DATA_VERSION",
    "pack_model_header",
    "pack_skinned_model_header",
    "pack_animation_header",
    "pack_model_mesh",
    "pack_skinned_mesh",
    "unpack_model_header",
    "ModelHeader",
    "LodHeader",
]

MODEL_HEADER_VERSION = 2
ANIMATION_HEADER_VERSION = 1
SKINNED_MESH_DATA_VERSION = 1
MAX_LODS = 6
MAX_U16_INDEX = 0xFFFF
MATERIAL_ID_SIZE = 16


class WriteStream:
    """Growable in-memory write buffer, reset (not reallocated) between uses."""

    def __init__(self, capacity: int = 4096):
        self._buffer = bytearray(capacity)
        self.position = 0

    def reset(self) -> None:
        self.position = 0

    def write(self, data: bytes) -> None:
        end = self.position + len(data)
        if end > len(self._buffer):
            self._buffer.extend(b"\x00" * max(end - len(self._buffer), len(self._buffer)))
        self._buffer[self.position:end] = data
        self.position = end

    def write_struct(self, fmt: str, *values) -> None:
        self.write(struct.pack("<" + fmt, *values))

    def write_byte(self, value: int) -> None:
        self.write_struct("B", value)

    def write_string(self, value: str) -> None:
        encoded = value.encode("utf-8")
        if len(encoded) > 0xFFFF:
            raise AssetPackingError(f"String too long to pack ({len(encoded)} bytes)")
        self.write_struct("H", len(encoded))
        self.write(encoded)

    def write_array(self, array: np.ndarray, dtype: str) -> None:
        self.write(np.ascontiguousarray(array, dtype=np.dtype(dtype).newbyteorder("<")).tobytes())

    def getvalue(self) -> bytes:
        return bytes(self._buffer[:self.position])


class ReadStream:
    """Sequential reader over a bytes payload."""

    def __init__(self, data: bytes):
        self._data = data
        self.position = 0

    def read(self, size: int) -> bytes:
        end = self.position + size
        if end > len(self._data):
            raise AssetFormatError(f"Unexpected end of data at offset {self.position} (wanted {size} bytes)")
        chunk = self._data[self.position:end]
        self.position = end
        return chunk

    def read_struct(self, fmt: str) -> Tuple:
        fmt = "<" + fmt
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))

    def read_string(self) -> str:
        (length,) = self.read_struct("H")
        try:
            return self.read(length).decode("utf-8")
        except UnicodeDecodeError as e:
            raise AssetFormatError(f"Invalid string data: {e}") from e


#########################
# HEADERS
#########################

@dataclass
class LodHeader:
    screen_size: float
    mesh_names: List[str] = field(default_factory=list)
    mesh_material_slots: List[int] = field(default_factory=list)


@dataclass
class ModelHeader:
    """Decoded model header (the part shared by models and skinned models)."""
    version: int
    min_screen_size: float
    material_slots: List[MaterialSlot]
    lods: List[LodHeader]


def _material_id_bytes(material_id: Optional[uuid.UUID]) -> bytes:
    if material_id is None:
        return b"\x00" * MATERIAL_ID_SIZE
    return material_id.bytes


def _write_model_header(stream: WriteStream, data: ModelData) -> None:
    if not data.lods:
        raise AssetPackingError("Model has no LODs")
    if len(data.lods) > MAX_LODS:
        raise AssetPackingError(f"Too many LODs ({len(data.lods)}, max {MAX_LODS})")
    if len(data.materials) > 0xFFFF:
        raise AssetPackingError(f"Too many material slots ({len(data.materials)})")

    stream.write_byte(MODEL_HEADER_VERSION)
    stream.write_struct("f", data.min_screen_size)

    stream.write_struct("H", len(data.materials))
    for slot in data.materials:
        stream.write(_material_id_bytes(slot.material_id))
        stream.write_byte(int(slot.shadows_mode))
        stream.write_string(slot.name)

    stream.write_byte(len(data.lods))
    for lod in data.lods:
        stream.write_struct("f", lod.screen_size)
        stream.write_struct("H", len(lod.meshes))
        for mesh in lod.meshes:
            if not 0 <= mesh.material_slot_index < len(data.materials):
                raise AssetPackingError(
                    f"Mesh '{mesh.name}' references missing material slot {mesh.material_slot_index}"
                )
            box_min, box_max = mesh.bounding_box()
            center, radius = mesh.bounding_sphere()
            stream.write_string(mesh.name)
            stream.write_struct("H", mesh.material_slot_index)
            stream.write_struct("6f", *box_min, *box_max)
            stream.write_struct("4f", *center, radius)
            stream.write_byte(1 if mesh.lightmap_uvs is not None else 0)


def pack_model_header(stream: WriteStream, data: ModelData) -> None:
    _write_model_header(stream, data)


def pack_skinned_model_header(stream: WriteStream, data: ModelData) -> None:
    _write_model_header(stream, data)

    skeleton = data.skeleton
    stream.write_struct("H", len(skeleton.nodes))
    for node in skeleton.nodes:
        stream.write_struct("i", node.parent_index)
        stream.write_struct("10f", *node.position, *node.orientation, *node.scale)
        stream.write_string(node.name)

    stream.write_struct("H", len(skeleton.bones))
    for bone in skeleton.bones:
        if not 0 <= bone.node_index < len(skeleton.nodes):
            raise AssetPackingError(f"Skeleton bone references missing node {bone.node_index}")
        if len(bone.offset_matrix) != 16:
            raise AssetPackingError("Skeleton bone offset matrix must have 16 values")
        stream.write_struct("i", bone.parent_index)
        stream.write_struct("i", bone.node_index)
        stream.write_struct("16f", *bone.offset_matrix)


def pack_animation_header(stream: WriteStream, data: ModelData, animation_index: int) -> None:
    if not 0 <= animation_index < len(data.animations):
        raise AssetPackingError(
            f"Animation index {animation_index} is out of range ({len(data.animations)} animation(s))"
        )
    animation: AnimationData = data.animations[animation_index]
    if animation.duration <= 0 or animation.frames_per_second <= 0:
        raise AssetPackingError(f"Animation '{animation.name}' has invalid duration or frame rate")

    stream.write_byte(ANIMATION_HEADER_VERSION)
    stream.write_struct("d", animation.duration)
    stream.write_struct("d", animation.frames_per_second)
    stream.write_byte(1 if animation.enable_root_motion else 0)
    stream.write_string(animation.root_node_name)
    stream.write_struct("H", len(animation.channels))
    for channel in animation.channels:
        stream.write_string(channel.node_name)
        for keys, width in (
            (channel.position_keys, 3),
            (channel.rotation_keys, 4),
            (channel.scale_keys, 3),
        ):
            stream.write_struct("I", len(keys))
            for time, value in keys:
                if len(value) != width:
                    raise AssetPackingError(
                        f"Animation channel '{channel.node_name}' has a key with {len(value)} values (expected {width})"
                    )
                stream.write_struct(f"f{width}f", time, *value)


def unpack_model_header(payload: bytes) -> ModelHeader:
    """Decode the model header prefix (material slots and LOD layout)."""
    stream = ReadStream(payload)
    (version,) = stream.read_struct("B")
    if version != MODEL_HEADER_VERSION:
        raise AssetFormatError(f"Unsupported model header version {version}")
    (min_screen_size,) = stream.read_struct("f")

    (slot_count,) = stream.read_struct("H")
    slots = []
    for _ in range(slot_count):
        raw_id = stream.read(MATERIAL_ID_SIZE)
        (shadows,) = stream.read_struct("B")
        name = stream.read_string()
        material_id = None if raw_id == b"\x00" * MATERIAL_ID_SIZE else uuid.UUID(bytes=raw_id)
        try:
            shadows_mode = ShadowsCastingMode(shadows)
        except ValueError as e:
            raise AssetFormatError(f"Invalid shadows mode {shadows}") from e
        slots.append(MaterialSlot(name=name, shadows_mode=shadows_mode, material_id=material_id))

    (lod_count,) = stream.read_struct("B")
    lods = []
    for _ in range(lod_count):
        (screen_size,) = stream.read_struct("f")
        (mesh_count,) = stream.read_struct("H")
        lod = LodHeader(screen_size=screen_size)
        for _ in range(mesh_count):
            lod.mesh_names.append(stream.read_string())
            (slot_index,) = stream.read_struct("H")
            lod.mesh_material_slots.append(slot_index)
            stream.read_struct("6f")
            stream.read_struct("4f")
            stream.read_struct("B")
        lods.append(lod)

    return ModelHeader(version=version, min_screen_size=min_screen_size, material_slots=slots, lods=lods)


#########################
# MESHES
#########################

def _checked_attribute(mesh: MeshData, name: str, width: int, required: bool = False) -> Optional[np.ndarray]:
    value = getattr(mesh, name)
    if value is None:
        if required:
            raise AssetPackingError(f"Mesh '{mesh.name}' is missing {name}")
        return None
    if value.shape != (mesh.vertex_count, width):
        raise AssetPackingError(
            f"Mesh '{mesh.name}' has {len(value)} {name} for {mesh.vertex_count} vertices"
        )
    return value


def _write_mesh(stream: WriteStream, mesh: MeshData) -> None:
    if mesh.released:
        raise AssetPackingError(f"Mesh '{mesh.name}' was released")
    if mesh.vertex_count == 0 or mesh.triangle_count == 0:
        raise AssetPackingError(f"Mesh '{mesh.name}' is empty")
    if int(mesh.indices.max()) >= mesh.vertex_count:
        raise AssetPackingError(f"Mesh '{mesh.name}' has an index out of range")

    normals = _checked_attribute(mesh, "normals", 3)
    uvs = _checked_attribute(mesh, "uvs", 2)
    lightmap_uvs = _checked_attribute(mesh, "lightmap_uvs", 2)
    colors = _checked_attribute(mesh, "colors", 4)

    vertex_count = mesh.vertex_count
    use_32bit = vertex_count > MAX_U16_INDEX
    stream.write_struct("II", vertex_count, mesh.triangle_count)
    stream.write_struct(
        "BBB",
        1 if use_32bit else 0,
        1 if lightmap_uvs is not None else 0,
        1 if colors is not None else 0,
    )
    stream.write_array(mesh.positions, "f4")
    stream.write_array(normals if normals is not None else np.zeros((vertex_count, 3)), "f4")
    stream.write_array(uvs if uvs is not None else np.zeros((vertex_count, 2)), "f4")
    if lightmap_uvs is not None:
        stream.write_array(lightmap_uvs, "f4")
    if colors is not None:
        stream.write_array(colors, "f4")
    stream.write_array(mesh.indices, "u4" if use_32bit else "u2")


def pack_model_mesh(stream: WriteStream, mesh: MeshData) -> None:
    _write_mesh(stream, mesh)


def pack_skinned_mesh(stream: WriteStream, mesh: MeshData) -> None:
    blend_indices = _checked_attribute(mesh, "blend_indices", 4, required=True)
    blend_weights = _checked_attribute(mesh, "blend_weights", 4, required=True)
    _write_mesh(stream, mesh)
    stream.write_array(blend_indices, "u2")
    stream.write_array(blend_weights, "f4")
