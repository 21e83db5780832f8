"""Asset container format and storage. The packer lives in modelsmith.assets.packer."""
from .container import (
    AssetContainer,
    FileAssetStorage,
    LoadedAsset,
    HEADER_CHUNK,
    SDF_CHUNK,
    read_asset,
    write_asset,
)

__all__ = [
    "AssetContainer",
    "FileAssetStorage",
    "LoadedAsset",
    "HEADER_CHUNK",
    "SDF_CHUNK",
    "read_asset",
    "write_asset",
]
