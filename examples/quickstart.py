"""
ModelSmith Quick Start Example

This example writes a small JSON scene and imports it twice: once as a
single model asset and once split into one asset per object.
"""

import json
import os

from modelsmith import ImportOptions, ImportOrchestrator, LightmapUVsSource


def quad(name, material, offset):
    return {
        "name": name,
        "material": material,
        "positions": [[offset, 0, 0], [offset + 1, 0, 0], [offset + 1, 1, 0], [offset, 1, 0]],
        "triangles": [[0, 1, 2], [0, 2, 3]],
        "uv_channels": [[[0, 0], [1, 0], [1, 1], [0, 1]]],
    }


scene = {
    "materials": [{"name": "Paint"}, {"name": "Rubber"}],
    "lods": [{"meshes": [quad("Body", 0, 0), quad("Body", 0, 2), quad("Wheel", 1, 4)]}],
}

os.makedirs("output", exist_ok=True)
with open("output/car.json", "w") as f:
    json.dump(scene, f)

orchestrator = ImportOrchestrator()

print("Importing the whole scene...")
result = orchestrator.import_file(
    "output/car.json",
    "output/car.msa",
    ImportOptions(lightmap_uvs_source=LightmapUVsSource.GENERATE),
)
print(f"✅ {result.kind.value}: {result.output_path}")

print("\nImporting one asset per object...")
result = orchestrator.import_file("output/car.json", "output/split/car.msa", ImportOptions(split_objects=True))
for path in result.all_outputs():
    print(f"✅ Saved {path}")

print("\nDone! Inspect an asset with: modelsmith inspect output/car.msa")
