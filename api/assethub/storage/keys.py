"""Object key layout for uploaded assets and their variants."""

import re
import secrets
import string
from datetime import datetime
from typing import Dict, Optional

VARIANT_DIRECTORIES = {
    "THUMBNAIL": "thumbnails",
    "PREVIEW": "previews",
    "WEB_OPTIMIZED": "web",
    "MOBILE": "mobile",
}

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def sanitize_filename(filename: str) -> str:
    """Replace anything outside ``[A-Za-z0-9.-]`` with an underscore."""
    return _UNSAFE_CHARS.sub("_", filename)


def uploader_prefix(user_id: int) -> str:
    """Key prefix owned by an uploader."""
    return f"assets/{user_id}/"


def generate_file_key(
    file_name: str,
    asset_type: str,
    user_id: int,
    now: Optional[datetime] = None,
) -> str:
    """Build a unique object key for a new upload.

    Layout: ``assets/{user_id}/{type}/{YYYY}/{MM}/{ts}_{rand}_{name}``,
    where ``type`` is the first segment of the MIME type.

    Example:
        >>> generate_file_key("My Photo.jpg", "image", 7)
        'assets/7/image/2024/05/1715000000000_k3j9x0_My_Photo.jpg'
    """
    now = now or datetime.utcnow()
    timestamp = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    coarse_type = (asset_type or "other").split("/")[0].lower() or "other"
    return (
        f"{uploader_prefix(user_id)}{coarse_type}/{now:%Y}/{now:%m}/"
        f"{timestamp}_{suffix}_{sanitize_filename(file_name)}"
    )


def generate_variant_keys(original_key: str) -> Dict[str, str]:
    """Deterministic variant keys next to the original object."""
    directory, _, file_name = original_key.rpartition("/")
    base = f"{directory}/" if directory else ""
    return {
        variant_type: f"{base}{folder}/{file_name}"
        for variant_type, folder in VARIANT_DIRECTORIES.items()
    }


def replace_extension(key: str, extension: str) -> str:
    """Swap the extension of the final key segment."""
    head, _, name = key.rpartition("/")
    stem = name.rsplit(".", 1)[0] if "." in name else name
    new_name = f"{stem}.{extension}"
    return f"{head}/{new_name}" if head else new_name
