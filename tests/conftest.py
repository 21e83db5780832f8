"""
Shared builders for model data and scene files.
"""
import json

import numpy as np
import pytest

from modelsmith.model.data import LodData, MaterialSlot, MeshData, ModelData


def quad_mesh(name, material=0, size=1.0, offset=(0.0, 0.0, 0.0), skinned=False):
    """A size x size quad in the XY plane (area size**2) with unit-square lightmap UVs."""
    ox, oy, oz = offset
    positions = [
        [ox, oy, oz],
        [ox + size, oy, oz],
        [ox + size, oy + size, oz],
        [ox, oy + size, oz],
    ]
    unit = [[0, 0], [1, 0], [1, 1], [0, 1]]
    mesh = MeshData(
        name=name,
        material_slot_index=material,
        positions=positions,
        indices=[[0, 1, 2], [0, 2, 3]],
        normals=[[0, 0, 1]] * 4,
        uvs=unit,
        lightmap_uvs=unit,
    )
    if skinned:
        mesh.blend_indices = np.zeros((4, 4), dtype=np.uint16)
        mesh.blend_weights = np.tile(np.array([1, 0, 0, 0], dtype=np.float32), (4, 1))
    return mesh


def model_with(*lods, materials=None):
    """ModelData from lists of meshes (one list per LOD)."""
    data = ModelData(lods=[LodData(meshes=list(meshes), screen_size=0.5 ** i) for i, meshes in enumerate(lods)])
    if materials is None:
        count = 1 + max((m.material_slot_index for lod in lods for m in lod), default=0)
        materials = [MaterialSlot(name=f"Slot{i}") for i in range(count)]
    data.materials = materials
    return data


def scene_mesh(name, material=0, size=1.0, offset=0.0):
    """JSON scene mesh dict for a quad."""
    return {
        "name": name,
        "material": material,
        "positions": [[offset, 0, 0], [offset + size, 0, 0], [offset + size, size, 0], [offset, size, 0]],
        "triangles": [[0, 1, 2], [0, 2, 3]],
        "normals": [[0, 0, 1]] * 4,
        "uv_channels": [[[0, 0], [1, 0], [1, 1], [0, 1]]],
    }


def car_scene():
    """Meshes "Body", "Body", "Wheel" with Body and Wheel on distinct material slots."""
    return {
        "materials": [{"name": "Paint"}, {"name": "Rubber"}, {"name": "Unused"}],
        "lods": [
            {
                "screen_size": 1.0,
                "meshes": [
                    scene_mesh("Body", material=0, size=2.0),
                    scene_mesh("Body", material=0, size=1.0, offset=3.0),
                    scene_mesh("Wheel", material=1, size=0.5, offset=5.0),
                ],
            },
            {
                "screen_size": 0.5,
                "meshes": [
                    scene_mesh("Body", material=0, size=2.0),
                    scene_mesh("Wheel", material=1, size=0.5, offset=5.0),
                ],
            },
        ],
    }


@pytest.fixture
def write_scene(tmp_path):
    """Write a scene dict to tmp_path and return its path."""
    def _write(scene, name="car.json"):
        path = tmp_path / name
        path.write_text(json.dumps(scene))
        return str(path)
    return _write
