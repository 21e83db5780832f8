"""
Tests for selecting and splitting objects out of a parsed scene
"""
from collections import Counter

from conftest import model_with, quad_mesh
from modelsmith.importer.grouping import group_meshes
from modelsmith.importer.materials import has_valid_material_slots
from modelsmith.importer.splitter import select_object, split_object_suffix, split_output_path
from modelsmith.model.data import MaterialSlot, Node, SkeletonData


def _car():
    """LOD 0: Body (x2), Wheel, Door. LOD 1: Body, Wheel. LOD 2: Body."""
    lod0 = [
        quad_mesh("Body", material=0),
        quad_mesh("Wheel", material=2),
        quad_mesh("Body", material=1),
        quad_mesh("Door", material=0),
    ]
    lod1 = [quad_mesh("Body", material=0), quad_mesh("Wheel", material=2)]
    lod2 = [quad_mesh("Body", material=0)]
    materials = [MaterialSlot("Paint"), MaterialSlot("Chrome"), MaterialSlot("Rubber")]
    return model_with(lod0, lod1, lod2, materials=materials)


class TestSelectInPlace:
    """Test selecting one object from data the import owns"""

    def test_keeps_group_and_releases_the_rest(self):
        """LOD 0 is reduced to the group and higher LODs to same-named meshes"""
        data = _car()
        groups = group_meshes(data)  # Body, Door, Wheel
        wheel_lod0 = data.lods[0].meshes[1]
        wheel_lod1 = data.lods[1].meshes[1]

        selection = select_object(data, groups, 2, owns_data=True)

        assert selection.data is data
        assert data.lods[0].meshes == [wheel_lod0]
        assert data.lods[1].meshes == [wheel_lod1]
        assert data.lods[2].meshes == []
        released_names = Counter(m.name for m in selection.meshes_to_release)
        assert released_names == Counter({"Body": 4, "Door": 1})

    def test_compacts_materials(self):
        """Only the selected object's slots remain"""
        data = _car()
        select_object(data, group_meshes(data), 2, owns_data=True)

        assert [s.name for s in data.materials] == ["Rubber"]
        assert has_valid_material_slots(data)


class TestMoveOutOfShared:
    """Test moving objects out of a scene shared by split imports"""

    def test_moves_meshes_and_lods(self):
        """The group leaves the shared data and lands in a new model"""
        shared = _car()
        groups = group_meshes(shared)
        body_lod0 = list(groups[0].meshes)

        selection = select_object(shared, groups, 0, owns_data=False)
        result = selection.data

        assert result is not shared
        assert selection.meshes_to_release == []
        assert result.lods[0].meshes == body_lod0
        assert [len(lod.meshes) for lod in result.lods] == [2, 1, 1]
        # Moved, not copied
        assert all(m.name != "Body" for lod in shared.lods for m in lod.meshes)
        assert [s.name for s in result.materials] == ["Paint", "Chrome"]
        assert has_valid_material_slots(result)
        # Shared slot list is left as is for the other objects
        assert len(shared.materials) == 3

    def test_stops_at_first_lod_without_the_object(self):
        """A LOD lacking the object ends the LOD chain"""
        shared = _car()
        groups = group_meshes(shared)
        result = select_object(shared, groups, 2, owns_data=False).data  # Wheel

        assert len(result.lods) == 2
        assert result.lods[1].screen_size == shared.lods[1].screen_size

    def test_shares_skeleton_by_reference(self):
        """Split skinned objects reuse the same rig"""
        shared = _car()
        shared.skeleton = SkeletonData(nodes=[Node("root")])
        shared.nodes = [Node("root")]
        result = select_object(shared, group_meshes(shared), 1, owns_data=False).data

        assert result.skeleton is shared.skeleton
        assert result.nodes is shared.nodes

    def test_union_of_split_outputs_is_the_input(self):
        """Every mesh ends up in exactly one output"""
        shared = _car()
        scene_meshes = [m for lod in shared.lods for m in lod.meshes]
        groups = group_meshes(shared)

        outputs = [select_object(shared, groups, i, owns_data=False).data for i in range(1, len(groups))]
        primary = select_object(shared, groups, 0, owns_data=True)

        collected = [m for data in outputs + [primary.data] for lod in data.lods for m in lod.meshes]
        assert Counter(map(id, collected)) == Counter(map(id, scene_meshes))
        assert primary.meshes_to_release == []


class TestSplitNaming:
    """Test output names of split objects"""

    def test_suffix_uses_last_path_segment(self):
        """Composite names keep only the part after the last '|'"""
        assert split_object_suffix("Root|Car|Wheel") == "Wheel"
        assert split_object_suffix("Wheel") == "Wheel"

    def test_suffix_replaces_unsafe_characters(self):
        """Path separators cannot escape the output folder"""
        assert split_object_suffix("a/b:c") == "a_b_c"

    def test_output_path(self):
        """`<stem> <suffix>.<ext>` next to the target"""
        assert split_output_path("Content/car.msa", "Root|Wheel") == "Content/car Wheel.msa"
