"""
Import options and import metadata.

ImportOptions is the single source of truth for how a source file becomes an
asset. The effective options are serialized into the asset's metadata so a
later reimport of the same asset can recover them.
"""

from __future__ import annotations

import getpass
import json
import logging
import os
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from modelsmith.assets.container import MIN_OPTIONS_VERSIONS, read_asset
from modelsmith.exceptions import AssetFormatError

logger = logging.getLogger(__name__)


class ModelType(str, Enum):
    MODEL = "Model"
    SKINNED_MODEL = "SkinnedModel"
    ANIMATION = "Animation"


class LightmapUVsSource(str, Enum):
    DISABLE = "Disable"
    GENERATE = "Generate"
    CHANNEL0 = "Channel0"
    CHANNEL1 = "Channel1"
    CHANNEL2 = "Channel2"
    CHANNEL3 = "Channel3"


class MaterialRestorePolicy(str, Enum):
    BY_INDEX = "by_index"  # Pair slots by position
    BY_NAME = "by_name"    # Pair slots by slot name


class SplitFailurePolicy(str, Enum):
    BEST_EFFORT = "best_effort"  # Log a failed split object and keep going
    FAIL_FAST = "fail_fast"      # Abort the primary asset on the first failure


class ImportOptions(BaseModel):
    """How a source file becomes an asset; stored in the asset metadata for reimports."""
    model_config = ConfigDict(extra='ignore', validate_assignment=True, arbitrary_types_allowed=True)

    type: ModelType = Field(ModelType.MODEL, description="Asset type to create.")
    split_objects: bool = Field(False, description="Import every object (mesh group or animation) as its own asset.")
    object_index: int = Field(-1, ge=-1, description="Import only this object index (-1 for all).")
    lightmap_uvs_source: LightmapUVsSource = Field(LightmapUVsSource.DISABLE, description="Where lightmap UVs come from.")
    restore_materials_on_reimport: bool = Field(True, description="Keep material slots of the asset being reimported.")
    material_restore_policy: MaterialRestorePolicy = Field(
        MaterialRestorePolicy.BY_INDEX,
        description="How restored slots are matched: by position or by slot name.",
    )
    split_failure_policy: SplitFailurePolicy = Field(
        SplitFailurePolicy.BEST_EFFORT,
        description="What a failed split object import does to the primary asset.",
    )
    generate_sdf: bool = Field(False, description="Bake a signed distance field into the model.")
    sdf_resolution: float = Field(1.0, gt=0, description="SDF resolution scale.")
    sub_asset_folder: str = Field("", description="Folder for sub-assets created by the scene importer.")
    cached: Optional[Any] = Field(None, exclude=True, description="Parsed scene shared with split imports.")

    def serialize(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"cached"})

    @classmethod
    def deserialize(cls, data: Mapping[str, Any]) -> "ImportOptions":
        """Build options from a metadata mapping; unknown keys are ignored."""
        known = {key: value for key, value in data.items() if key in cls.model_fields and key != "cached"}
        return cls.model_validate(known)

    def split_copy(self, object_index: int) -> "ImportOptions":
        """Options for one split object sharing this import's cached scene."""
        return self.model_copy(update={"split_objects": False, "object_index": object_index})


def build_import_metadata(options: ImportOptions, input_path: str) -> bytes:
    """Compact JSON: import context followed by the serialized options."""
    try:
        username = getpass.getuser()
    except (KeyError, OSError):
        username = ""
    meta: Dict[str, Any] = {
        "import_path": os.path.abspath(input_path),
        "import_username": username,
        "imported_at": datetime.now(timezone.utc).isoformat(),
    }
    meta.update(options.serialize())
    return json.dumps(meta, separators=(",", ":")).encode("utf-8")


def try_get_import_options(path: str) -> Optional[ImportOptions]:
    """
    Recover the options an existing asset was imported with.

    Returns None when the file is missing, unreadable, too old for its asset
    type, or its metadata does not parse.
    """
    if not os.path.isfile(path):
        return None
    try:
        container = read_asset(path)
    except (OSError, AssetFormatError) as e:
        logger.debug(f"Cannot read asset {path}: {e}")
        return None

    min_version = MIN_OPTIONS_VERSIONS.get(container.type_name)
    if min_version is None or container.serialized_version < min_version:
        return None

    try:
        metadata = json.loads(container.metadata.decode("utf-8"))
        if not isinstance(metadata, dict):
            return None
        return ImportOptions.deserialize(metadata)
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        logger.debug(f"Cannot parse import options of {path}: {e}")
        return None
