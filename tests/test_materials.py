"""
Tests for material slot compaction and reimport restoration
"""
import uuid

import pytest

from conftest import model_with, quad_mesh
from modelsmith.assets.container import AssetContainer, FileAssetStorage, write_asset
from modelsmith.assets.packer import AssetPacker
from modelsmith.importer.materials import (
    compact_material_slots,
    has_valid_material_slots,
    restore_materials,
)
from modelsmith.model.data import MaterialSlot, ShadowsCastingMode
from modelsmith.options import MaterialRestorePolicy


def _slots(*names):
    return [MaterialSlot(name=n) for n in names]


class TestCompaction:
    """Test slot reindexing"""

    def test_drops_unused_and_remaps_in_first_use_order(self):
        """Slots are renumbered in the order meshes first use them"""
        a = quad_mesh("A", material=3)
        b = quad_mesh("B", material=1)
        c = quad_mesh("C", material=3)
        data = model_with([a, b, c], materials=_slots("s0", "s1", "s2", "s3"))

        compacted = compact_material_slots(data)

        assert [s.name for s in compacted] == ["s3", "s1"]
        assert [m.material_slot_index for m in (a, b, c)] == [0, 1, 0]
        assert data.materials is compacted
        assert has_valid_material_slots(data)

    def test_walks_lods_in_order(self):
        """A slot only used by a higher LOD is appended after LOD 0 slots"""
        lod0 = quad_mesh("A", material=2)
        lod1 = quad_mesh("A", material=0)
        data = model_with([lod0], [lod1], materials=_slots("s0", "s1", "s2"))

        compact_material_slots(data)

        assert [s.name for s in data.materials] == ["s2", "s0"]
        assert lod1.material_slot_index == 1

    def test_copies_slots_from_source_list(self):
        """Compacting against another model's slots copies them, never shares them"""
        source = _slots("s0", "s1")
        data = model_with([quad_mesh("A", material=1)], materials=[])

        compact_material_slots(data, source)
        data.materials[0].name = "renamed"

        assert source[1].name == "s1"

    def test_is_idempotent(self):
        """Running compaction twice changes nothing the second time"""
        meshes = [quad_mesh("A", material=2), quad_mesh("B", material=0), quad_mesh("C", material=2)]
        data = model_with(meshes, materials=_slots("s0", "s1", "s2", "s3"))

        compact_material_slots(data)
        names = [s.name for s in data.materials]
        indices = [m.material_slot_index for m in meshes]
        compact_material_slots(data)

        assert [s.name for s in data.materials] == names
        assert [m.material_slot_index for m in meshes] == indices

    def test_invalid_index_detected(self):
        """has_valid_material_slots flags out-of-range references"""
        data = model_with([quad_mesh("A", material=0)], materials=_slots("s0"))
        data.lods[0].meshes[0].material_slot_index = 4
        assert not has_valid_material_slots(data)


class TestRestoration:
    """Test copying slot settings from the asset being reimported"""

    @pytest.fixture
    def previous_asset(self, tmp_path):
        """An existing model asset with two customized slots"""
        path = str(tmp_path / "car.msa")
        old = model_with(
            [quad_mesh("Body", material=0), quad_mesh("Wheel", material=1)],
            materials=[
                MaterialSlot("Paint", ShadowsCastingMode.NONE, uuid.UUID(int=1)),
                MaterialSlot("Rubber", ShadowsCastingMode.STATIC_ONLY, uuid.UUID(int=2)),
            ],
        )
        write_asset(path, AssetPacker().create_model(old))
        return path

    def test_restores_by_index(self, previous_asset):
        """Slot i takes name, shadows and material of old slot i"""
        data = model_with(
            [quad_mesh("Wheel", material=0), quad_mesh("Body", material=1), quad_mesh("Roof", material=2)],
            materials=_slots("Rubber", "Paint", "Glass"),
        )

        assert restore_materials(FileAssetStorage(), previous_asset, data)

        assert [s.name for s in data.materials] == ["Paint", "Rubber", "Glass"]
        assert data.materials[0].material_id == uuid.UUID(int=1)
        assert data.materials[1].shadows_mode == ShadowsCastingMode.STATIC_ONLY
        assert data.materials[2].material_id is None

    def test_restores_by_name(self, previous_asset):
        """BY_NAME follows slot names across reordering"""
        data = model_with(
            [quad_mesh("Wheel", material=0), quad_mesh("Body", material=1)],
            materials=_slots("Rubber", "Paint"),
        )

        restore_materials(FileAssetStorage(), previous_asset, data, MaterialRestorePolicy.BY_NAME)

        assert data.materials[0].material_id == uuid.UUID(int=2)
        assert data.materials[1].material_id == uuid.UUID(int=1)

    def test_missing_asset_is_skipped(self, tmp_path):
        """Nothing to restore from when the target does not exist"""
        data = model_with([quad_mesh("A")], materials=_slots("s0"))
        assert not restore_materials(FileAssetStorage(), str(tmp_path / "missing.msa"), data)
        assert data.materials[0].name == "s0"

    def test_corrupt_asset_is_skipped(self, tmp_path):
        """A file that fails to load is ignored"""
        path = tmp_path / "broken.msa"
        path.write_bytes(b"not an asset")
        data = model_with([quad_mesh("A")], materials=_slots("s0"))
        assert not restore_materials(FileAssetStorage(), str(path), data)

    def test_non_model_asset_is_skipped(self, tmp_path):
        """Animation assets have no slots to restore from"""
        path = str(tmp_path / "anim.msa")
        write_asset(path, AssetContainer(type_name="Animation", serialized_version=1))
        data = model_with([quad_mesh("A")], materials=_slots("s0"))
        assert not restore_materials(FileAssetStorage(), path, data)
