"""
Data models for the R2 storage client
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Mapping, Union

from .credentials import SecretKey


@dataclass
class SigningRequest:
    """
    Everything needed to sign one S3-compatible request.

    ``region`` and ``service`` are copied verbatim into the credential scope.
    """
    method: str
    url: str
    access_key_id: str
    secret_key: SecretKey
    region: str = "auto"
    service: str = "s3"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Union[bytes, str]] = field(default=None, repr=False)

    def __post_init__(self):
        self.secret_key = SecretKey.wrap(self.secret_key)


@dataclass
class Owner:
    """Represents the owner of a bucket listing."""
    id: str
    display_name: str


@dataclass
class Bucket:
    """Represents a bucket in R2."""
    name: str
    creation_date: Optional[datetime] = None


@dataclass
class ListBucketsResult:
    """Represents the result of a list buckets operation."""
    buckets: List[Bucket] = field(default_factory=list)
    owner: Optional[Owner] = None


@dataclass
class BucketInfo:
    """Summary of a bucket, from a one-key listing."""
    name: str
    key_count: int = 0


@dataclass
class ObjectMetadata:
    """Represents object metadata."""
    object_name: str
    bucket_name: str
    size: int = 0
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    content_type: Optional[str] = None
    storage_class: str = "STANDARD"


@dataclass
class ListObjectsResult:
    """Represents the result of a list objects operation."""
    bucket_name: str
    objects: List[ObjectMetadata] = field(default_factory=list)
    key_count: int = 0
    is_truncated: bool = False
    continuation_token: Optional[str] = None


@dataclass
class PutObjectResult:
    """Represents the result of a put object operation."""
    bucket_name: str
    object_name: str
    etag: Optional[str] = None


@dataclass
class DownloadedObject:
    """An object body together with its response metadata."""
    metadata: ObjectMetadata
    content: bytes = field(default=b"", repr=False)


@dataclass
class CopyObjectResult:
    """Represents the result of a copy object operation."""
    source_bucket: str
    source_object: str
    destination_bucket: str
    destination_object: str
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None


@dataclass
class PresignedUrlResult:
    """Represents a presigned URL response."""
    url: str
    method: str
    expires_in: int
    expires_at: datetime
