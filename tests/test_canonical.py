import hashlib
import hmac

from r2storage._canonical import (
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
from r2storage._hashing import hmac_sha256, hmac_sha256_hex, sha256_hex


def test_sha256_hex_of_empty_payload():
    assert sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    assert sha256_hex("") == sha256_hex(b"")


def test_hmac_raw_and_hex_variants_agree():
    raw = hmac_sha256(b"key", "message")

    assert raw == hmac.new(b"key", b"message", hashlib.sha256).digest()
    assert hmac_sha256_hex(b"key", "message") == raw.hex()


def test_signed_header_sets_are_distinct():
    assert signed_header_names(HEADER_MODE_SIGNED_HEADERS) == "host;x-amz-content-sha256;x-amz-date"
    assert signed_header_names(PRESIGNED_MODE_SIGNED_HEADERS) == "host"


def test_canonical_uri_defaults_to_root():
    assert canonical_uri("") == "/"
    assert canonical_uri("/") == "/"


def test_canonical_uri_encodes_once():
    assert canonical_uri("/bucket/my file.txt") == "/bucket/my%20file.txt"
    assert canonical_uri("/bucket/my%20file.txt") == "/bucket/my%20file.txt"
    assert canonical_uri("/bucket/a~b_c-d.e") == "/bucket/a~b_c-d.e"


def test_canonical_query_string_sorts_and_encodes():
    query = canonical_query_string([
        ("prefix", "photos/2024 jan"),
        ("list-type", "2"),
        ("delete", ""),
    ])

    assert query == "delete=&list-type=2&prefix=photos%2F2024%20jan"


def test_canonical_query_string_empty():
    assert canonical_query_string([]) == ""


def test_canonical_headers_filters_lowercases_trims_and_sorts():
    block = canonical_headers(
        {
            "X-Amz-Date": "20240101T000000Z",
            "Content-Type": "text/plain",
            "Host": "  bucket.example.com ",
            "x-amz-content-sha256": "abc",
        },
        HEADER_MODE_SIGNED_HEADERS,
    )

    assert block == (
        "host:bucket.example.com\n"
        "x-amz-content-sha256:abc\n"
        "x-amz-date:20240101T000000Z\n"
    )


def test_presigned_mode_only_keeps_host():
    block = canonical_headers(
        {"host": "bucket.example.com", "x-amz-date": "20240101T000000Z"},
        PRESIGNED_MODE_SIGNED_HEADERS,
    )

    assert block == "host:bucket.example.com\n"


def test_hash_payload_treats_missing_body_as_empty():
    assert hash_payload(None) == sha256_hex(b"")
    assert hash_payload(b"abc") == hashlib.sha256(b"abc").hexdigest()


def test_canonical_request_layout():
    request = build_canonical_request(
        "get",
        "",
        "a=1",
        "host:bucket.example.com\n",
        PRESIGNED_MODE_SIGNED_HEADERS,
        UNSIGNED_PAYLOAD,
    )

    assert request == "GET\n/\na=1\nhost:bucket.example.com\n\nhost\nUNSIGNED-PAYLOAD"
