"""
Hash primitives used by the SigV4 signer
"""

import hashlib
import hmac
from typing import Union


def sha256_hex(data: Union[bytes, str]) -> str:
    """Lowercase hex SHA-256 of a payload."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256(key: bytes, message: str) -> bytes:
    """Raw HMAC-SHA256, so the output can key the next step of a chain."""
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def hmac_sha256_hex(key: bytes, message: str) -> str:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).hexdigest()
