import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse

from aws_uploader.api.deps import get_storage_service, get_upload_service
from aws_uploader.core.config import Settings, get_settings
from aws_uploader.schemas import (
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
from aws_uploader.services.storage import S3StorageService
from aws_uploader.services.uploads import (
    FailureReason,
    UploadFailed,
    UploadMode,
    UploadRequest,
    UploadService,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def _failure(outcome: UploadFailed, error: str) -> JSONResponse:
    if outcome.reason is FailureReason.VALIDATION:
        return _error(status.HTTP_400_BAD_REQUEST, outcome.error)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, error, outcome.error)


@router.post("/server-upload", response_model=ServerUploadResponse)
async def upload_via_server(
    file: UploadFile | None = File(default=None),
    folder: str | None = Form(default=None),
    custom_file_name: str | None = Form(default=None, alias="customFileName"),
    preserve_filename: bool = Form(default=True, alias="preserveFilename"),
    uploads: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings),
):
    if file is None or not file.filename or file.size == 0:
        return _error(status.HTTP_400_BAD_REQUEST, "No file provided")

    request = UploadRequest(
        mode=UploadMode.SERVER,
        file_name=file.filename,
        content_type=file.content_type,
        size=file.size,
        folder=folder,
        custom_file_name=custom_file_name,
        preserve_filename=preserve_filename,
        max_file_size=settings.max_file_size,
    )
    try:
        outcome = await uploads.handle(request, stream=file.file)
    except Exception as exc:
        logger.exception("Error uploading file via server")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error uploading file", str(exc))

    if isinstance(outcome, UploadFailed):
        return _failure(outcome, "Error uploading file")
    return ServerUploadResponse(url=outcome.url, key=outcome.key)


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_url(
    payload: PresignedUrlRequest,
    uploads: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings),
):
    if not payload.file_name:
        return _error(status.HTTP_400_BAD_REQUEST, "Filename is required")

    request = UploadRequest(
        mode=UploadMode.PRESIGNED,
        file_name=payload.file_name,
        content_type=payload.content_type,
        size=payload.file_size,
        folder=payload.folder,
        custom_file_name=payload.custom_file_name,
        preserve_filename=True if payload.preserve_filename is None else payload.preserve_filename,
        max_file_size=settings.max_file_size,
    )
    try:
        outcome = await uploads.handle(request)
    except Exception as exc:
        logger.exception("Error generating presigned URL")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error generating presigned URL", str(exc)
        )

    if isinstance(outcome, UploadFailed):
        return _failure(outcome, "Error generating presigned URL")
    return PresignedUrlResponse(
        presigned_url=outcome.upload_url,
        key=outcome.key,
        public_url=outcome.url,
    )


@router.post("/download-url", response_model=DownloadUrlResponse)
async def create_download_url(
    payload: DownloadUrlRequest,
    storage: S3StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_settings),
):
    if not payload.key:
        return _error(status.HTTP_400_BAD_REQUEST, "Key is required")

    expiration = payload.expiration_minutes or settings.download_url_expiration_minutes
    try:
        url = storage.create_presigned_get(payload.key, expiration)
    except Exception as exc:
        logger.exception("Error generating download URL")
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Error generating download URL", str(exc)
        )
    return DownloadUrlResponse(download_url=url)


@router.post("/public-url", response_model=PublicUrlResponse)
async def get_public_url(
    payload: KeyRequest,
    storage: S3StorageService = Depends(get_storage_service),
):
    if not payload.key:
        return _error(status.HTTP_400_BAD_REQUEST, "Key is required")

    try:
        url = await storage.get_public_url(payload.key)
    except Exception as exc:
        logger.exception("Error getting public URL")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error getting public URL", str(exc))
    return PublicUrlResponse(public_url=url)


@router.post("/delete", response_model=DeleteResponse)
async def delete_file(
    payload: KeyRequest,
    storage: S3StorageService = Depends(get_storage_service),
):
    if not payload.key:
        return _error(status.HTTP_400_BAD_REQUEST, "Key is required")

    deleted = await storage.delete_object(payload.key)
    message = "File deleted successfully" if deleted else "File could not be deleted"
    return DeleteResponse(deleted=deleted, message=message)


@router.post("/copy", response_model=CopyResponse)
async def copy_file(
    payload: CopyRequest,
    storage: S3StorageService = Depends(get_storage_service),
):
    if not payload.source_key or not payload.destination_key:
        return _error(status.HTTP_400_BAD_REQUEST, "Source and destination keys are required")

    copied, url = await storage.copy_object(payload.source_key, payload.destination_key)
    if not copied or url is None:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error copying file")
    return CopyResponse(url=url)
