"""
r2storage - AWS Signature V4 signing and an S3-compatible client for Cloudflare R2
"""

__version__ = "1.0.0"

from ._signer import AwsSignatureV4Signer, sign_request, sign_url
from .client import R2Client
from .credentials import R2Credentials, SecretKey
from .models import (
    SigningRequest,
    Bucket,
    BucketInfo,
    Owner,
    ListBucketsResult,
    ObjectMetadata,
    ListObjectsResult,
    PutObjectResult,
    DownloadedObject,
    CopyObjectResult,
    PresignedUrlResult,
)
from .error import (
    R2StorageException,
    SigningException,
    CredentialsException,
    ServerException,
    BucketNotFoundException,
    BucketNotEmptyException,
    ObjectNotFoundException,
    AccessDeniedException,
)

__all__ = [
    "AwsSignatureV4Signer",
    "sign_request",
    "sign_url",
    "R2Client",
    "R2Credentials",
    "SecretKey",
    "SigningRequest",
    "Bucket",
    "BucketInfo",
    "Owner",
    "ListBucketsResult",
    "ObjectMetadata",
    "ListObjectsResult",
    "PutObjectResult",
    "DownloadedObject",
    "CopyObjectResult",
    "PresignedUrlResult",
    "R2StorageException",
    "SigningException",
    "CredentialsException",
    "ServerException",
    "BucketNotFoundException",
    "BucketNotEmptyException",
    "ObjectNotFoundException",
    "AccessDeniedException",
]
