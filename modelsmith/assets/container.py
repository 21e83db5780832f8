"""
Asset container format and file storage.

FILE LAYOUT (little-endian):
    magic              4 bytes  b"MSAF"
    container version  u32
    entry count        u32      (always 1: one asset per file)
    entry:
        type name          u16 length + UTF-8
        serialized version u32
        metadata           u32 length + UTF-8 JSON
        chunk mask         u16      (bit i set => chunk i present)
        chunks             u32 length + bytes, for each present index ascending

Chunk 0 is the type-specific header, chunks 1..L the LOD payloads and
chunk 15 the optional SDF volume.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from modelsmith.assets.codec import ReadStream, WriteStream, unpack_model_header
from modelsmith.exceptions import AssetFormatError, ChunkAllocationError
from modelsmith.model.data import MaterialSlot

logger = logging.getLogger(__name__)

MAGIC = b"MSAF"
CONTAINER_VERSION = 1
MAX_CHUNKS = 16
HEADER_CHUNK = 0
SDF_CHUNK = 15

# Current serialized version written for each asset type
SERIALIZED_VERSIONS = {
    "Model": 25,
    "SkinnedModel": 5,
    "Animation": 1,
}

# Oldest serialized version whose metadata still carries usable import options
MIN_OPTIONS_VERSIONS = {
    "Model": 4,
    "SkinnedModel": 1,
    "Animation": 1,
}


@dataclass
class AssetContainer:
    """One asset: type tag, version, import metadata and numbered chunks."""
    type_name: str
    serialized_version: int
    metadata: bytes = b""
    chunks: Dict[int, bytes] = field(default_factory=dict)

    def allocate_chunk(self, index: int) -> None:
        if not 0 <= index < MAX_CHUNKS:
            raise ChunkAllocationError(f"Chunk index {index} is out of range (0..{MAX_CHUNKS - 1})")
        if index in self.chunks:
            raise ChunkAllocationError(f"Chunk {index} is already allocated")
        self.chunks[index] = b""

    def set_chunk(self, index: int, data: bytes) -> None:
        if index not in self.chunks:
            raise ChunkAllocationError(f"Chunk {index} was not allocated")
        self.chunks[index] = bytes(data)

    def has_chunk(self, index: int) -> bool:
        return index in self.chunks

    @property
    def lod_chunk_count(self) -> int:
        return sum(1 for index in self.chunks if 0 < index < SDF_CHUNK)

    def to_bytes(self) -> bytes:
        stream = WriteStream(256 + sum(len(c) for c in self.chunks.values()))
        stream.write(MAGIC)
        stream.write_struct("II", CONTAINER_VERSION, 1)
        stream.write_string(self.type_name)
        stream.write_struct("I", self.serialized_version)
        stream.write_struct("I", len(self.metadata))
        stream.write(self.metadata)
        mask = 0
        for index in self.chunks:
            mask |= 1 << index
        stream.write_struct("H", mask)
        for index in sorted(self.chunks):
            stream.write_struct("I", len(self.chunks[index]))
            stream.write(self.chunks[index])
        return stream.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "AssetContainer":
        stream = ReadStream(data)
        if stream.read(len(MAGIC)) != MAGIC:
            raise AssetFormatError("Not an asset container (bad magic)")
        version, entries = stream.read_struct("II")
        if version != CONTAINER_VERSION:
            raise AssetFormatError(f"Unsupported container version {version}")
        if entries != 1:
            raise AssetFormatError(f"Expected a single asset entry, found {entries}")
        type_name = stream.read_string()
        (serialized_version,) = stream.read_struct("I")
        (metadata_length,) = stream.read_struct("I")
        metadata = stream.read(metadata_length)
        (mask,) = stream.read_struct("H")
        container = cls(type_name=type_name, serialized_version=serialized_version, metadata=metadata)
        for index in range(MAX_CHUNKS):
            if mask & (1 << index):
                (length,) = stream.read_struct("I")
                container.chunks[index] = stream.read(length)
        return container


def write_asset(path: str, container: AssetContainer) -> None:
    """Write a container atomically (temp file in the same folder, then replace)."""
    payload = container.to_bytes()
    folder = os.path.dirname(os.path.abspath(path))
    os.makedirs(folder, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", dir=folder)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(payload)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


def read_asset(path: str) -> AssetContainer:
    with open(path, "rb") as f:
        return AssetContainer.from_bytes(f.read())


class LoadedAsset:
    """Handle to an asset on disk, decoded on wait_for_loaded()."""

    def __init__(self, path: str):
        self.path = path
        self.container: Optional[AssetContainer] = None
        self.material_slots: List[MaterialSlot] = []
        self._failed: Optional[bool] = None

    @property
    def type_name(self) -> Optional[str]:
        return self.container.type_name if self.container else None

    def wait_for_loaded(self) -> bool:
        """Decode the asset; returns True when it loaded successfully."""
        if self._failed is None:
            try:
                self.container = read_asset(self.path)
                if self.container.type_name in ("Model", "SkinnedModel"):
                    header = self.container.chunks.get(HEADER_CHUNK)
                    if header is None:
                        raise AssetFormatError("Model asset has no header chunk")
                    self.material_slots = unpack_model_header(header).material_slots
                self._failed = False
            except (OSError, AssetFormatError) as e:
                logger.warning(f"Failed to load asset {self.path}: {e}")
                self._failed = True
        return not self._failed


class FileAssetStorage:
    """Assets stored as one container file per path."""

    def exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def load(self, path: str) -> Optional[LoadedAsset]:
        if not self.exists(path):
            return None
        return LoadedAsset(path)

    def save(self, path: str, container: AssetContainer) -> None:
        write_asset(path, container)
        logger.info(f"Saved {container.type_name} asset to {path}")
