"""Upload policy: allowed MIME types and per-type size ceilings."""

import mimetypes
from dataclasses import dataclass
from typing import Optional

from assethub.schemas.asset import AssetType

MB = 1024 * 1024

FILE_SIZE_LIMITS = {
    AssetType.IMAGE: 50 * MB,
    AssetType.VIDEO: 500 * MB,
    AssetType.DOCUMENT: 100 * MB,
    AssetType.AUDIO: 200 * MB,
    AssetType.MODEL_3D: 200 * MB,
    AssetType.DESIGN: 100 * MB,
}

ALLOWED_MIME_TYPES = {
    AssetType.IMAGE: (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "image/bmp",
        "image/tiff",
    ),
    AssetType.VIDEO: (
        "video/mp4",
        "video/mpeg",
        "video/quicktime",
        "video/x-msvideo",
        "video/x-ms-wmv",
        "video/webm",
        "video/ogg",
    ),
    AssetType.DOCUMENT: (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
    ),
    AssetType.AUDIO: (
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/ogg",
        "audio/webm",
        "audio/aac",
        "audio/flac",
    ),
    AssetType.MODEL_3D: (
        "model/gltf-binary",
        "model/gltf+json",
        "model/obj",
        "application/octet-stream",
    ),
    AssetType.DESIGN: (
        "application/postscript",
        "image/vnd.adobe.photoshop",
        "application/x-photoshop",
        "application/x-sketch",
    ),
}

EXTENSION_TYPES = {
    "glb": AssetType.MODEL_3D,
    "gltf": AssetType.MODEL_3D,
    "obj": AssetType.MODEL_3D,
    "fbx": AssetType.MODEL_3D,
    "ai": AssetType.DESIGN,
    "eps": AssetType.DESIGN,
    "psd": AssetType.DESIGN,
    "sketch": AssetType.DESIGN,
}

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def get_asset_type_from_mime(mime_type: str, filename: Optional[str] = None) -> str:
    """Classify a MIME type, falling back on the file extension."""
    mime_type = (mime_type or "").lower()
    for asset_type, allowed in ALLOWED_MIME_TYPES.items():
        if mime_type in allowed and mime_type != DEFAULT_CONTENT_TYPE:
            return asset_type

    if filename and "." in filename:
        extension = filename.rsplit(".", 1)[-1].lower()
        if extension in EXTENSION_TYPES:
            return EXTENSION_TYPES[extension]

    if mime_type == DEFAULT_CONTENT_TYPE:
        return AssetType.MODEL_3D
    return AssetType.OTHER


def get_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


def validate_file(mime_type: str, file_size: int, filename: Optional[str] = None) -> ValidationResult:
    """Check a declared upload against the policy.

    Examples:
        >>> validate_file("image/jpeg", 150000)
        ValidationResult(valid=True, error=None)
        >>> validate_file("image/jpeg", 60 * MB).error
        'File size exceeds 50MB limit'
    """
    asset_type = get_asset_type_from_mime(mime_type, filename)

    if asset_type == AssetType.OTHER or asset_type not in FILE_SIZE_LIMITS:
        return ValidationResult(False, "Unsupported file type")

    if file_size is None or file_size <= 0:
        return ValidationResult(False, "File size must be greater than zero")

    limit = FILE_SIZE_LIMITS[asset_type]
    if file_size > limit:
        return ValidationResult(False, f"File size exceeds {limit // MB}MB limit")

    return ValidationResult(True)
