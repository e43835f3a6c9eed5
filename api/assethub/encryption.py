"""Encryption of persisted credentials."""

import base64
import hashlib
import json
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

from assethub.config import settings


def _get_fernet(key_material: Optional[str] = None) -> Fernet:
    """Build a Fernet cipher from configured key material.

    A proper Fernet key is used as-is; anything else is stretched with
    SHA-256 so development keys still produce a valid cipher.
    """
    raw = (key_material or settings.config_encryption_key).encode()
    try:
        return Fernet(raw)
    except ValueError:
        return Fernet(base64.urlsafe_b64encode(hashlib.sha256(raw).digest()))


def encrypt_credentials(credentials: Dict[str, Any], key_material: Optional[str] = None) -> str:
    """Encrypt a credentials dict to a token safe for database storage.

    Example:
        >>> token = encrypt_credentials({"aws_access_key_id": "AKIA..."})
        >>> token.startswith("gAAAAA")
        True
    """
    return _get_fernet(key_material).encrypt(json.dumps(credentials).encode()).decode()


def decrypt_credentials(encrypted: str, key_material: Optional[str] = None) -> Dict[str, Any]:
    """Decrypt a token produced by :func:`encrypt_credentials`.

    Raises:
        ValueError: If the token was produced with another key or is corrupted
    """
    try:
        return json.loads(_get_fernet(key_material).decrypt(encrypted.encode()).decode())
    except InvalidToken as e:
        raise ValueError(f"Failed to decrypt credentials: {e!r}")
