"""
Mesh grouping by name.

A source file can hold the same object name on several meshes (one mesh per
material is common), so "objects" are the LOD 0 meshes grouped by exact name.
Groups are ordered by name so that object indices are stable regardless of
the order the importer produced meshes in.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple

from modelsmith.model.data import MeshData, ModelData


@dataclass(frozen=True)
class MeshGroup:
    """Read-only view over the LOD 0 meshes sharing one name."""
    key: str
    meshes: Tuple[MeshData, ...]

    def __iter__(self) -> Iterator[MeshData]:
        return iter(self.meshes)

    def __len__(self) -> int:
        return len(self.meshes)

    def __contains__(self, mesh) -> bool:
        return any(m is mesh for m in self.meshes)


def group_by_name(meshes: Sequence[MeshData]) -> List[MeshGroup]:
    """Group meshes by name (first-seen order inside a group), sorted ordinally by name."""
    buckets: Dict[str, List[MeshData]] = {}
    for mesh in meshes:
        buckets.setdefault(mesh.name, []).append(mesh)
    return [MeshGroup(key, tuple(members)) for key, members in sorted(buckets.items(), key=lambda item: item[0])]


def group_meshes(data: ModelData) -> List[MeshGroup]:
    """Group the LOD 0 meshes of a model; no LODs means no groups."""
    if not data.lods:
        return []
    return group_by_name(data.lods[0].meshes)
