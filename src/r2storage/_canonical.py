"""
Canonical request construction for AWS Signature V4
"""

from typing import Iterable, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote

from ._hashing import sha256_hex


# Header signing covers the payload hash and timestamp; presigned URLs bind
# only the host because the bearer sends no extra headers.
HEADER_MODE_SIGNED_HEADERS: Tuple[str, ...] = ("host", "x-amz-content-sha256", "x-amz-date")
PRESIGNED_MODE_SIGNED_HEADERS: Tuple[str, ...] = ("host",)

UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

_UNRESERVED = "-_.~"


def signed_header_names(signed_headers: Iterable[str]) -> str:
    """Render a signed-header set as the ``;`` joined list used on the wire."""
    return ";".join(sorted(name.lower() for name in signed_headers))


def canonical_uri(path: str) -> str:
    """
    Normalize a URL path to its canonical form.

    The path is decoded once and re-encoded so that an already-encoded path
    and its raw equivalent produce the same string. S3 does not double-encode.
    """
    if not path:
        return "/"
    return quote(unquote(path), safe="/" + _UNRESERVED)


def canonical_query_string(params: Iterable[Tuple[str, str]]) -> str:
    """Encode and sort query parameters by key, then value."""
    encoded = sorted(
        (quote(key, safe=_UNRESERVED), quote(value, safe=_UNRESERVED))
        for key, value in params
    )
    return "&".join(f"{key}={value}" for key, value in encoded)


def canonical_headers(headers: Mapping[str, str], signed_headers: Iterable[str]) -> str:
    """
    Build the canonical header block.

    Only names in ``signed_headers`` are kept. Every line ends in a newline,
    so joining the block with the next field yields the required blank line.
    """
    wanted = {name.lower() for name in signed_headers}
    selected = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered in wanted:
            selected[lowered] = str(value).strip()
    return "".join(f"{name}:{selected[name]}\n" for name in sorted(selected))


def hash_payload(body: Optional[Union[bytes, str]]) -> str:
    """Hash the request payload; an absent body hashes as empty bytes."""
    return sha256_hex(body if body is not None else b"")


def build_canonical_request(
    method: str,
    uri: str,
    query: str,
    headers_block: str,
    signed_headers: Iterable[str],
    payload_hash: str,
) -> str:
    return "\n".join([
        method.upper(),
        uri or "/",
        query,
        headers_block,
        signed_header_names(signed_headers),
        payload_hash,
    ])
