"""
Tests for the asset container format and file storage
"""
import os

import pytest

from conftest import model_with, quad_mesh
from modelsmith.assets.container import (
    AssetContainer,
    FileAssetStorage,
    LoadedAsset,
    read_asset,
    write_asset,
)
from modelsmith.assets.packer import AssetPacker
from modelsmith.exceptions import AssetFormatError, ChunkAllocationError


class TestAssetContainer:
    """Test chunk allocation and byte layout"""

    def test_round_trip(self):
        """Type, version, metadata and chunks survive encoding"""
        container = AssetContainer(type_name="Model", serialized_version=25, metadata=b'{"type":"Model"}')
        for index, payload in ((0, b"header"), (1, b"lod0"), (15, b"")):
            container.allocate_chunk(index)
            container.set_chunk(index, payload)

        decoded = AssetContainer.from_bytes(container.to_bytes())

        assert decoded == container
        assert decoded.to_bytes()[:4] == b"MSAF"

    def test_allocation_out_of_range(self):
        """Only chunk indices 0..15 exist"""
        container = AssetContainer(type_name="Model", serialized_version=25)
        with pytest.raises(ChunkAllocationError):
            container.allocate_chunk(16)
        with pytest.raises(ChunkAllocationError):
            container.allocate_chunk(-1)

    def test_double_allocation(self):
        """A chunk can be allocated once"""
        container = AssetContainer(type_name="Model", serialized_version=25)
        container.allocate_chunk(3)
        with pytest.raises(ChunkAllocationError, match="already"):
            container.allocate_chunk(3)

    def test_set_requires_allocation(self):
        """Writing an unallocated chunk is an error"""
        container = AssetContainer(type_name="Model", serialized_version=25)
        with pytest.raises(ChunkAllocationError, match="not allocated"):
            container.set_chunk(1, b"data")

    def test_bad_magic(self):
        """Foreign files are rejected"""
        with pytest.raises(AssetFormatError, match="magic"):
            AssetContainer.from_bytes(b"GLTF" + b"\x00" * 32)

    def test_truncated_data(self):
        """A cut-off file is a format error"""
        container = AssetContainer(type_name="Model", serialized_version=25)
        container.allocate_chunk(0)
        container.set_chunk(0, b"x" * 100)
        with pytest.raises(AssetFormatError):
            AssetContainer.from_bytes(container.to_bytes()[:-10])


class TestAssetFiles:
    """Test writing, reading and loading asset files"""

    def test_write_is_atomic_and_clean(self, tmp_path):
        """No temporary files are left next to the asset"""
        path = tmp_path / "Content" / "car.msa"
        container = AssetContainer(type_name="Animation", serialized_version=1)

        write_asset(str(path), container)
        write_asset(str(path), container)

        assert os.listdir(path.parent) == ["car.msa"]
        assert read_asset(str(path)) == container

    def test_loaded_asset_reads_material_slots(self, tmp_path):
        """Model assets expose their slots once loaded"""
        path = str(tmp_path / "car.msa")
        write_asset(path, AssetPacker().create_model(model_with([quad_mesh("Body")])))

        asset = LoadedAsset(path)
        assert asset.type_name is None
        assert asset.wait_for_loaded()
        assert asset.type_name == "Model"
        assert [s.name for s in asset.material_slots] == ["Slot0"]

    def test_loaded_asset_failure(self, tmp_path):
        """A broken file reports a failed load"""
        path = tmp_path / "broken.msa"
        path.write_bytes(b"MSAF")
        assert not LoadedAsset(str(path)).wait_for_loaded()

    def test_storage(self, tmp_path):
        """Storage saves, checks and loads by path"""
        storage = FileAssetStorage()
        path = str(tmp_path / "anim.msa")

        assert not storage.exists(path)
        assert storage.load(path) is None

        storage.save(path, AssetContainer(type_name="Animation", serialized_version=1))

        assert storage.exists(path)
        asset = storage.load(path)
        assert asset.wait_for_loaded()
        assert asset.type_name == "Animation"
