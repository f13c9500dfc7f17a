"""
R2Client - S3-compatible client for Cloudflare R2
"""

import logging
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, UTC
from email.utils import parsedate_to_datetime
from typing import Optional, Dict, BinaryIO, Union
from urllib.parse import quote, urlencode, urlsplit

import httpx

from ._http import HttpClient
from ._signer import AwsSignatureV4Signer
from .credentials import R2Credentials
from .models import (
    Bucket,
    BucketInfo,
    CopyObjectResult,
    DownloadedObject,
    ListBucketsResult,
    ListObjectsResult,
    ObjectMetadata,
    Owner,
    PresignedUrlResult,
    PutObjectResult,
)
from .error import (
    AccessDeniedException,
    BucketNotEmptyException,
    BucketNotFoundException,
    ObjectNotFoundException,
    ServerException,
)


R2_REGION = "auto"
R2_SERVICE = "s3"
MAX_PRESIGNED_EXPIRY = 604800


def _local_name(tag: str) -> str:
    return tag.split("}")[-1]


def _child_text(node: ET.Element, name: str, default: str = "") -> str:
    for child in node:
        if _local_name(child.tag) == name:
            return (child.text or "").strip()
    return default


def _children(node: ET.Element, name: str):
    return [child for child in node if _local_name(child.tag) == name]


def _parse_xml(body: str) -> Optional[ET.Element]:
    if not body.strip():
        return None
    try:
        return ET.fromstring(body)
    except ET.ParseError:
        return None


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 (XML body) or RFC 1123 (header) timestamp."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


def _clean_etag(etag: Optional[str]) -> Optional[str]:
    if not etag:
        return None
    return etag.replace('"', "") or None


class R2Client:
    """
    S3-compatible client for Cloudflare R2.

    Every request is signed locally with AWS Signature V4 and sent
    with the signed headers unchanged.

    Example:
        credentials = R2Credentials(
            account_id="0123456789abcdef",
            access_key_id="AKIDEXAMPLE",
            secret_access_key="...",
        )

        async with R2Client(credentials) as client:
            await client.put_object("photos", "archive/image.jpg", b"...", content_type="image/jpeg")
            link = await client.presigned_url("photos", "archive/image.jpg", expires_in=600)
    """

    def __init__(
        self,
        credentials: R2Credentials,
        request_timeout: int = 30,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize R2Client.

        Args:
            credentials: R2 account credentials; the endpoint is derived from them
            request_timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for requests failing at transport level
            transport: Optional httpx transport, mainly for tests
        """
        self.credentials = credentials
        self.base_url = credentials.endpoint

        self._http = HttpClient(timeout=request_timeout, max_retries=max_retries, transport=transport)
        self._signer = AwsSignatureV4Signer(
            credentials.access_key_id,
            credentials.secret_access_key,
            region=R2_REGION,
            service=R2_SERVICE,
        )
        self._logger = logging.getLogger(__name__)

    @staticmethod
    def _object_path(bucket_name: str, object_name: str = "") -> str:
        path = f"/{quote(bucket_name, safe='')}"
        if object_name:
            path += f"/{quote(object_name, safe='/')}"
        return path

    def _url(self, path: str, query_params: Optional[Dict[str, str]] = None) -> str:
        url = f"{self.base_url}{path}"
        if query_params:
            url += "?" + urlencode(query_params, quote_via=quote)
        return url

    def _raise_for_status(
        self,
        method: str,
        response: httpx.Response,
        bucket_name: Optional[str] = None,
        object_name: Optional[str] = None,
    ) -> None:
        doc = _parse_xml(response.text or "")
        code = _child_text(doc, "Code") if doc is not None else ""
        message = _child_text(doc, "Message") if doc is not None else ""
        if not message:
            message = (response.text or "").strip() or (
                f"R2 Error: {response.status_code} {response.reason_phrase}"
            )

        self._logger.warning(
            "[R2] %s %s failed status=%s code=%s",
            method,
            urlsplit(str(response.request.url)).path,
            response.status_code,
            code or "-",
        )

        if code == "NoSuchBucket" and bucket_name:
            raise BucketNotFoundException(bucket_name)
        if code == "NoSuchKey" and bucket_name and object_name:
            raise ObjectNotFoundException(bucket_name, object_name)
        if response.status_code == 404 and not code and bucket_name:
            if object_name:
                raise ObjectNotFoundException(bucket_name, object_name)
            raise BucketNotFoundException(bucket_name)
        if response.status_code == 403:
            raise AccessDeniedException(message, error_code=code or "AccessDenied")
        raise ServerException(message, response.status_code, code or None)

    async def _make_request(
        self,
        method: str,
        path: str,
        query_params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
        bucket_name: Optional[str] = None,
        object_name: Optional[str] = None,
    ) -> httpx.Response:
        """Sign and send a request, raising on error responses."""
        url = self._url(path, query_params)
        signed_headers = self._signer.sign_request(method, url, headers=headers, body=content)

        response = await self._http.request(method, url, headers=signed_headers, content=content)

        if response.status_code >= 400:
            self._raise_for_status(method, response, bucket_name, object_name)

        return response

    # Bucket operations

    async def list_buckets(self) -> ListBucketsResult:
        """List all buckets in the account."""
        response = await self._make_request("GET", "/")
        doc = _parse_xml(response.text or "")
        result = ListBucketsResult()
        if doc is None:
            return result

        for node in doc.iter():
            tag = _local_name(node.tag)
            if tag == "Bucket":
                result.buckets.append(
                    Bucket(
                        name=_child_text(node, "Name"),
                        creation_date=_parse_timestamp(_child_text(node, "CreationDate")),
                    )
                )
            elif tag == "Owner" and result.owner is None:
                result.owner = Owner(
                    id=_child_text(node, "ID"),
                    display_name=_child_text(node, "DisplayName"),
                )
        return result

    async def make_bucket(self, bucket_name: str) -> None:
        """Create a new bucket."""
        await self._make_request("PUT", self._object_path(bucket_name))

    async def remove_bucket(self, bucket_name: str) -> None:
        """Remove a bucket (must be empty)."""
        try:
            await self._make_request("DELETE", self._object_path(bucket_name), bucket_name=bucket_name)
        except ServerException as e:
            if e.status_code == 409:
                raise BucketNotEmptyException(bucket_name) from e
            raise

    async def bucket_info(self, bucket_name: str) -> BucketInfo:
        """Return the bucket name and the key count of a one-key listing."""
        listing = await self.list_objects(bucket_name, max_keys=1)
        return BucketInfo(name=listing.bucket_name, key_count=listing.key_count)

    async def bucket_exists(self, bucket_name: str) -> bool:
        """Check if a bucket exists."""
        try:
            await self.bucket_info(bucket_name)
            return True
        except BucketNotFoundException:
            return False

    # Object operations

    async def list_objects(
        self,
        bucket_name: str,
        prefix: str = "",
        max_keys: int = 1000,
        continuation_token: Optional[str] = None,
    ) -> ListObjectsResult:
        """List objects in a bucket (ListObjectsV2)."""
        if max_keys < 1:
            raise ValueError("max_keys must be at least 1.")

        query_params = {"list-type": "2", "max-keys": str(max_keys)}
        if prefix:
            query_params["prefix"] = prefix
        if continuation_token:
            query_params["continuation-token"] = continuation_token

        response = await self._make_request(
            "GET",
            self._object_path(bucket_name),
            query_params=query_params,
            bucket_name=bucket_name,
        )

        result = ListObjectsResult(bucket_name=bucket_name)
        doc = _parse_xml(response.text or "")
        if doc is None:
            return result

        result.bucket_name = _child_text(doc, "Name", bucket_name)
        result.is_truncated = _child_text(doc, "IsTruncated").lower() == "true"
        result.continuation_token = _child_text(doc, "NextContinuationToken") or None

        for node in _children(doc, "Contents"):
            result.objects.append(
                ObjectMetadata(
                    object_name=_child_text(node, "Key"),
                    bucket_name=bucket_name,
                    size=int(_child_text(node, "Size", "0") or 0),
                    etag=_clean_etag(_child_text(node, "ETag")),
                    last_modified=_parse_timestamp(_child_text(node, "LastModified")),
                    storage_class=_child_text(node, "StorageClass") or "STANDARD",
                )
            )

        key_count = _child_text(doc, "KeyCount")
        result.key_count = int(key_count) if key_count else len(result.objects)
        return result

    async def put_object(
        self,
        bucket_name: str,
        object_name: str,
        data: Union[bytes, BinaryIO],
        content_type: str = "application/octet-stream",
        create_bucket: bool = False,
    ) -> PutObjectResult:
        """Upload an object, optionally creating the bucket first."""
        if create_bucket and not await self.bucket_exists(bucket_name):
            self._logger.info("[R2] creating missing bucket=%s before upload", bucket_name)
            await self.make_bucket(bucket_name)

        content = bytes(data) if isinstance(data, (bytes, bytearray)) else data.read()
        headers = {"Content-Type": content_type or "application/octet-stream"}

        response = await self._make_request(
            "PUT",
            self._object_path(bucket_name, object_name),
            headers=headers,
            content=content,
            bucket_name=bucket_name,
        )

        return PutObjectResult(
            bucket_name=bucket_name,
            object_name=object_name,
            etag=_clean_etag(response.headers.get("ETag")),
        )

    async def get_object(self, bucket_name: str, object_name: str) -> DownloadedObject:
        """Download an object from the bucket."""
        response = await self._make_request(
            "GET",
            self._object_path(bucket_name, object_name),
            bucket_name=bucket_name,
            object_name=object_name,
        )

        content = response.content
        return DownloadedObject(
            metadata=ObjectMetadata(
                object_name=object_name,
                bucket_name=bucket_name,
                size=int(response.headers.get("Content-Length", len(content))),
                etag=_clean_etag(response.headers.get("ETag")),
                last_modified=_parse_timestamp(response.headers.get("Last-Modified")),
                content_type=response.headers.get("Content-Type", "application/octet-stream"),
            ),
            content=content,
        )

    async def remove_object(self, bucket_name: str, object_name: str) -> None:
        """Remove an object from the bucket."""
        await self._make_request(
            "DELETE",
            self._object_path(bucket_name, object_name),
            bucket_name=bucket_name,
            object_name=object_name,
        )

    async def copy_object(
        self,
        source_bucket: str,
        source_object: str,
        destination_bucket: str,
        destination_object: str,
    ) -> CopyObjectResult:
        """Copy an object to another location."""
        headers = {"x-amz-copy-source": self._object_path(source_bucket, source_object)}

        response = await self._make_request(
            "PUT",
            self._object_path(destination_bucket, destination_object),
            headers=headers,
            bucket_name=source_bucket,
            object_name=source_object,
        )

        result = CopyObjectResult(
            source_bucket=source_bucket,
            source_object=source_object,
            destination_bucket=destination_bucket,
            destination_object=destination_object,
        )
        doc = _parse_xml(response.text or "")
        if doc is not None:
            result.etag = _clean_etag(_child_text(doc, "ETag"))
            result.last_modified = _parse_timestamp(_child_text(doc, "LastModified"))
        return result

    async def presigned_url(
        self,
        bucket_name: str,
        object_name: str,
        method: str = "GET",
        expires_in: int = 3600,
    ) -> PresignedUrlResult:
        """Generate a presigned GET or PUT URL using local SigV4 signing."""
        method = method.upper()
        if method not in ("GET", "PUT"):
            raise ValueError(f"Presigned URLs support GET and PUT, not {method}.")
        if expires_in < 1 or expires_in > MAX_PRESIGNED_EXPIRY:
            raise ValueError(
                f"Expiry must be between 1 second and {MAX_PRESIGNED_EXPIRY} seconds (7 days)."
            )

        now = datetime.now(UTC)
        url = self._signer.generate_presigned_url(
            method,
            self._url(self._object_path(bucket_name, object_name)),
            expires_in=expires_in,
            timestamp=now,
        )

        self._logger.info(
            "[R2][PresignedUrl] method=%s host=%s expirySeconds=%s bucket=%s object=%s",
            method,
            urlsplit(url).hostname,
            expires_in,
            bucket_name,
            object_name,
        )

        return PresignedUrlResult(
            url=url,
            method=method,
            expires_in=expires_in,
            expires_at=now + timedelta(seconds=expires_in),
        )

    async def close(self) -> None:
        """Close the client and cleanup resources."""
        await self._http.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
