"""
Credential handling for Cloudflare R2
"""

import hmac
from dataclasses import dataclass, field
from typing import Union

from .error import CredentialsException


_JURISDICTION_HOSTS = {
    "default": "r2.cloudflarestorage.com",
    "eu": "eu.r2.cloudflarestorage.com",
    "fedramp": "fedramp.r2.cloudflarestorage.com",
}


class SecretKey:
    """
    Wrapper around secret key material.

    The value is only reachable through ``reveal()``; ``repr`` and ``str``
    are masked so the secret cannot leak into logs or tracebacks.
    """

    __slots__ = ("_value",)

    def __init__(self, value: str):
        self._value = value

    @classmethod
    def wrap(cls, value: Union["SecretKey", str]) -> "SecretKey":
        return value if isinstance(value, SecretKey) else cls(value or "")

    def reveal(self) -> str:
        return self._value

    def __bool__(self) -> bool:
        return bool(self._value)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SecretKey):
            return NotImplemented
        return hmac.compare_digest(self._value.encode(), other._value.encode())

    __hash__ = None

    def __repr__(self) -> str:
        return "SecretKey('**********')"

    __str__ = __repr__


@dataclass
class R2Credentials:
    """S3-compatible credentials for an R2 account."""
    account_id: str
    access_key_id: str
    secret_access_key: SecretKey
    jurisdiction: str = "default"
    endpoint: str = field(init=False)

    def __post_init__(self):
        self.secret_access_key = SecretKey.wrap(self.secret_access_key)
        self.jurisdiction = (self.jurisdiction or "default").lower()

        if not self.account_id or not self.access_key_id or not self.secret_access_key:
            raise CredentialsException(
                "R2 credentials are missing or invalid. Provide the account ID, "
                "R2 access key ID and R2 secret access key."
            )
        if self.jurisdiction not in _JURISDICTION_HOSTS:
            raise CredentialsException(
                f"Unknown R2 jurisdiction '{self.jurisdiction}'. "
                f"Expected one of: {', '.join(_JURISDICTION_HOSTS)}."
            )

        self.endpoint = f"https://{self.account_id}.{_JURISDICTION_HOSTS[self.jurisdiction]}"
