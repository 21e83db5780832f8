"""
Tests for grouping meshes into named objects
"""
from collections import Counter

from conftest import model_with, quad_mesh
from modelsmith.importer.grouping import group_by_name, group_meshes
from modelsmith.model.data import ModelData


class TestMeshGrouping:
    """Test name-based grouping and ordering"""

    def test_groups_by_exact_name(self):
        """Meshes sharing a name end up in one group, in first-seen order"""
        body_a = quad_mesh("Body")
        wheel = quad_mesh("Wheel")
        body_b = quad_mesh("Body")

        groups = group_by_name([body_a, wheel, body_b])

        assert [g.key for g in groups] == ["Body", "Wheel"]
        assert groups[0].meshes[0] is body_a
        assert groups[0].meshes[1] is body_b
        assert len(groups[1]) == 1

    def test_order_is_ordinal_and_input_independent(self):
        """Sorting is by code point and does not depend on mesh order"""
        names = ["wheel", "Body", "Wheel", "axle", "Body"]
        forward = group_by_name([quad_mesh(n) for n in names])
        backward = group_by_name([quad_mesh(n) for n in reversed(names)])

        assert [g.key for g in forward] == ["Body", "Wheel", "axle", "wheel"]
        assert [g.key for g in backward] == [g.key for g in forward]

    def test_names_are_not_trimmed(self):
        """Whitespace is part of the grouping key"""
        groups = group_by_name([quad_mesh("Body"), quad_mesh("Body "), quad_mesh(" Body")])
        assert [g.key for g in groups] == [" Body", "Body", "Body "]

    def test_flattening_groups_gives_back_input(self):
        """Grouping neither loses nor duplicates meshes"""
        meshes = [quad_mesh(n) for n in ["c", "a", "b", "a", "c", "c"]]
        groups = group_by_name(meshes)

        flattened = [mesh for group in groups for mesh in group]
        assert Counter(map(id, flattened)) == Counter(map(id, meshes))

    def test_group_membership_is_identity_based(self):
        """A lookalike mesh is not a member"""
        mesh = quad_mesh("Body")
        group = group_by_name([mesh])[0]
        assert mesh in group
        assert quad_mesh("Body") not in group

    def test_only_lod0_is_grouped(self):
        """Higher LODs do not add groups"""
        data = model_with([quad_mesh("Body")], [quad_mesh("Body"), quad_mesh("Extra")])
        assert [g.key for g in group_meshes(data)] == ["Body"]

    def test_empty_inputs(self):
        """No LODs or an empty LOD 0 yields no groups"""
        assert group_meshes(ModelData()) == []
        assert group_meshes(model_with([])) == []
