"""Custom exceptions for model import and asset creation"""


class ModelImportError(Exception):
    """Base exception for model import errors"""
    pass


class SceneImportError(ModelImportError):
    """The scene importer could not produce model data from the input file"""
    pass


class AssetPackingError(ModelImportError):
    """Packing a header or mesh into binary form failed (includes empty meshes)"""
    pass


class ChunkAllocationError(ModelImportError):
    """An asset chunk index is out of range or already allocated"""
    pass


class AssetFormatError(ModelImportError):
    """An asset container file could not be decoded"""
    pass


class SDFGenerationError(ModelImportError):
    """Signed distance field generation failed (never fatal to the asset)"""
    pass
