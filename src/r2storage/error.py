"""
Exception classes for the R2 storage client
"""


class R2StorageException(Exception):
    """
    Base exception for all r2storage errors.
    """

    def __init__(self, message: str, status_code: int = None, error_code: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class SigningException(R2StorageException, ValueError):
    """Raised when a request cannot be signed because its inputs are invalid."""


class CredentialsException(R2StorageException):
    """Raised when R2 credentials are missing or malformed."""

    def __init__(self, message: str):
        super().__init__(message, error_code="InvalidCredentials")


class ServerException(R2StorageException):
    """Raised when R2 returns an error response."""

    def __init__(self, message: str, status_code: int, error_code: str = None):
        super().__init__(message, status_code, error_code)


class BucketNotFoundException(ServerException):
    """Raised when a bucket does not exist."""

    def __init__(self, bucket_name: str):
        super().__init__(
            f"Bucket '{bucket_name}' not found.",
            status_code=404,
            error_code="NoSuchBucket",
        )


class BucketNotEmptyException(ServerException):
    """Raised when deleting a bucket that still holds data."""

    def __init__(self, bucket_name: str):
        super().__init__(
            f"Cannot delete bucket '{bucket_name}': bucket must be completely empty before "
            "deletion. Remove all objects, including hidden files and incomplete multipart "
            "uploads, first.",
            status_code=409,
            error_code="BucketNotEmpty",
        )


class ObjectNotFoundException(ServerException):
    """Raised when an object does not exist."""

    def __init__(self, bucket_name: str, object_name: str):
        super().__init__(
            f"Object '{object_name}' not found in bucket '{bucket_name}'.",
            status_code=404,
            error_code="NoSuchKey",
        )


class AccessDeniedException(ServerException):
    """Raised on 403, including rejected signatures."""

    def __init__(self, message: str, error_code: str = "AccessDenied"):
        super().__init__(message, status_code=403, error_code=error_code)
