from aws_uploader.schemas.upload import (
    CopyRequest,
    CopyResponse,
    DeleteResponse,
    DownloadUrlRequest,
    DownloadUrlResponse,
    ErrorResponse,
    KeyRequest,
    PresignedUrlRequest,
    PresignedUrlResponse,
    PublicUrlResponse,
    ServerUploadResponse,
)

__all__ = [
    "ErrorResponse",
    "ServerUploadResponse",
    "PresignedUrlRequest",
    "PresignedUrlResponse",
    "DownloadUrlRequest",
    "DownloadUrlResponse",
    "KeyRequest",
    "PublicUrlResponse",
    "DeleteResponse",
    "CopyRequest",
    "CopyResponse",
]
