"""
AWS Signature V4 signer for the R2 storage client
"""

import logging
from datetime import datetime, UTC
from typing import Dict, Mapping, Optional, Tuple, Union
from urllib.parse import SplitResult, parse_qsl, urlsplit, urlunsplit

from ._canonical import (
    HEADER_MODE_SIGNED_HEADERS,
    PRESIGNED_MODE_SIGNED_HEADERS,
    UNSIGNED_PAYLOAD,
    build_canonical_request,
    canonical_headers,
    canonical_query_string,
    canonical_uri,
    hash_payload,
    signed_header_names,
)
from ._hashing import hmac_sha256, hmac_sha256_hex, sha256_hex
from .credentials import SecretKey
from .error import SigningException
from .models import SigningRequest


ALGORITHM = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR = "aws4_request"

_DEFAULT_PORTS = {"http": 80, "https": 443}
# Caller-supplied headers with these names are replaced by the signer's values.
_MANAGED_HEADERS = {"host", "x-amz-date", "x-amz-content-sha256", "authorization"}

logger = logging.getLogger(__name__)


def amz_timestamps(now: Optional[datetime] = None) -> Tuple[str, str]:
    """Return ``(amz_date, date_stamp)`` for an instant, e.g. ``20240101T120000Z``."""
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    else:
        now = now.astimezone(UTC)

    amz_date = now.strftime("%Y%m%dT%H%M%SZ")
    return amz_date, amz_date[:8]


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{SCOPE_TERMINATOR}"


def string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    return "\n".join([
        ALGORITHM,
        amz_date,
        scope,
        sha256_hex(canonical_request),
    ])


def derive_signing_key(
    secret_key: Union[SecretKey, str],
    date_stamp: str,
    region: str,
    service: str,
) -> bytes:
    """
    Derive the SigV4 signing key.

    Each step keys the next HMAC with the previous raw digest:
    date stamp, region, service, then the scope terminator.
    """
    key = f"AWS4{SecretKey.wrap(secret_key).reveal()}".encode("utf-8")
    for part in (date_stamp, region, service, SCOPE_TERMINATOR):
        key = hmac_sha256(key, part)
    return key


def _host_header(parts: SplitResult) -> str:
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and port != _DEFAULT_PORTS.get(parts.scheme):
        host = f"{host}:{port}"
    return host


def _validate(request: SigningRequest) -> SplitResult:
    """Reject unusable input before any hashing happens."""
    if not request.method:
        raise SigningException("HTTP method is required for signing.")

    for label, value in (
        ("access key id", request.access_key_id),
        ("secret key", request.secret_key),
        ("region", request.region),
        ("service", request.service),
    ):
        if not value:
            raise SigningException(f"Cannot sign request: {label} is empty.")

    if not isinstance(request.url, str) or not request.url:
        raise SigningException("Cannot sign request: URL is empty.")

    try:
        parts = urlsplit(request.url)
        parts.port  # raises on a malformed port
    except ValueError as ex:
        raise SigningException(f"Cannot sign request: invalid URL '{request.url}': {ex}") from ex

    if parts.scheme.lower() not in _DEFAULT_PORTS or not parts.hostname:
        raise SigningException(
            f"Cannot sign request: URL '{request.url}' must be an absolute http(s) URL with a host."
        )
    return parts


def sign_request(request: SigningRequest, now: Optional[datetime] = None) -> Dict[str, str]:
    """
    Sign a request with an ``Authorization`` header.

    Returns a new header map holding the caller's headers plus ``host``,
    ``x-amz-date``, ``x-amz-content-sha256`` and ``Authorization``, ready
    to be sent verbatim. The payload is hashed and bound into the signature.
    """
    parts = _validate(request)
    amz_date, date_stamp = amz_timestamps(now)
    payload_hash = hash_payload(request.body)
    host = _host_header(parts)

    headers = {
        name: value for name, value in request.headers.items()
        if name.lower() not in _MANAGED_HEADERS
    }
    headers["host"] = host
    headers["x-amz-date"] = amz_date
    headers["x-amz-content-sha256"] = payload_hash

    uri = canonical_uri(parts.path)
    canonical_request = build_canonical_request(
        request.method,
        uri,
        canonical_query_string(parse_qsl(parts.query, keep_blank_values=True)),
        canonical_headers(headers, HEADER_MODE_SIGNED_HEADERS),
        HEADER_MODE_SIGNED_HEADERS,
        payload_hash,
    )

    scope = credential_scope(date_stamp, request.region, request.service)
    signing_key = derive_signing_key(request.secret_key, date_stamp, request.region, request.service)
    signature = hmac_sha256_hex(signing_key, string_to_sign(amz_date, scope, canonical_request))

    logger.debug(
        "Signed %s %s%s scope=%s signed_headers=%s",
        request.method.upper(),
        host,
        uri,
        scope,
        signed_header_names(HEADER_MODE_SIGNED_HEADERS),
    )

    headers["Authorization"] = (
        f"{ALGORITHM} Credential={request.access_key_id}/{scope}, "
        f"SignedHeaders={signed_header_names(HEADER_MODE_SIGNED_HEADERS)}, "
        f"Signature={signature}"
    )
    return headers


def sign_url(
    request: SigningRequest,
    expires_in: int,
    now: Optional[datetime] = None,
) -> str:
    """
    Produce a presigned URL carrying the signature in its query string.

    The payload is never hashed: the canonical request uses ``UNSIGNED-PAYLOAD``
    and only ``host`` is signed, so request headers and body are ignored.

    ``expires_in`` is copied into ``X-Amz-Expires`` unmodified. No range or
    clock check happens here; the object store decides when a URL expires.
    """
    parts = _validate(request)
    if isinstance(expires_in, bool) or not isinstance(expires_in, int):
        raise SigningException(f"expires_in must be an integer number of seconds, got {expires_in!r}.")

    amz_date, date_stamp = amz_timestamps(now)
    scope = credential_scope(date_stamp, request.region, request.service)
    host = _host_header(parts)

    signing_params = [
        ("X-Amz-Algorithm", ALGORITHM),
        ("X-Amz-Credential", f"{request.access_key_id}/{scope}"),
        ("X-Amz-Date", amz_date),
        ("X-Amz-Expires", str(expires_in)),
        ("X-Amz-SignedHeaders", signed_header_names(PRESIGNED_MODE_SIGNED_HEADERS)),
    ]
    reserved = {name for name, _ in signing_params} | {"X-Amz-Signature"}
    params = [
        (name, value) for name, value in parse_qsl(parts.query, keep_blank_values=True)
        if name not in reserved
    ]
    query = canonical_query_string(params + signing_params)

    uri = canonical_uri(parts.path)
    canonical_request = build_canonical_request(
        request.method,
        uri,
        query,
        canonical_headers({"host": host}, PRESIGNED_MODE_SIGNED_HEADERS),
        PRESIGNED_MODE_SIGNED_HEADERS,
        UNSIGNED_PAYLOAD,
    )

    signing_key = derive_signing_key(request.secret_key, date_stamp, request.region, request.service)
    signature = hmac_sha256_hex(signing_key, string_to_sign(amz_date, scope, canonical_request))

    logger.debug(
        "Presigned %s %s%s scope=%s expires_in=%s",
        request.method.upper(),
        host,
        uri,
        scope,
        expires_in,
    )

    return urlunsplit((parts.scheme.lower(), host, uri, f"{query}&X-Amz-Signature={signature}", ""))


class AwsSignatureV4Signer:
    """
    Signs requests using AWS Signature Version 4.

    Holds one set of credentials and a fixed region/service pair; every
    call is independent and shares no intermediate state with others.
    """

    def __init__(
        self,
        access_key: str,
        secret_key: Union[SecretKey, str],
        region: str = "auto",
        service: str = "s3",
    ):
        self.access_key = access_key
        self.secret_key = SecretKey.wrap(secret_key)
        self.region = region
        self.service = service

    def _request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[bytes, str]] = None,
    ) -> SigningRequest:
        return SigningRequest(
            method=method,
            url=url,
            access_key_id=self.access_key,
            secret_key=self.secret_key,
            region=self.region,
            service=self.service,
            headers=dict(headers or {}),
            body=body,
        )

    def sign_request(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[bytes, str]] = None,
        timestamp: Optional[datetime] = None,
    ) -> Dict[str, str]:
        """Sign a request and return headers with authorization."""
        return sign_request(self._request(method, url, headers, body), now=timestamp)

    def generate_presigned_url(
        self,
        method: str,
        url: str,
        expires_in: int = 3600,
        timestamp: Optional[datetime] = None,
    ) -> str:
        """Generate a presigned URL with AWS Signature V4."""
        return sign_url(self._request(method, url), expires_in, now=timestamp)
