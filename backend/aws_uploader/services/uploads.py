import logging
import os
from enum import Enum
from typing import Annotated, BinaryIO, Final, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from aws_uploader.services.storage import S3StorageService

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"
DEFAULT_MAX_FILE_SIZE: Final[int] = 5 * 1024 * 1024


class UploadMode(str, Enum):
    SERVER = "server"
    PRESIGNED = "presigned"


class FailureReason(str, Enum):
    VALIDATION = "validation"
    STORAGE = "storage"


class UploadSucceeded(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["succeeded"] = "succeeded"
    url: str
    key: str | None = None
    upload_url: str | None = None


class UploadFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["failed"] = "failed"
    error: str
    reason: FailureReason = FailureReason.STORAGE


UploadOutcome = Annotated[Union[UploadSucceeded, UploadFailed], Field(discriminator="status")]


class UploadRequest(BaseModel):
    mode: UploadMode
    file_name: str = Field(..., min_length=1)
    content_type: str | None = None
    size: int | None = Field(default=None, ge=0)
    folder: str | None = None
    custom_file_name: str | None = None
    preserve_filename: bool = True
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)


def normalize_content_type(content_type: str | None) -> str:
    return (content_type or "").strip() or DEFAULT_CONTENT_TYPE


def validate_file_size(size: int | None, max_file_size: int) -> str | None:
    """Return an error message when ``size`` exceeds the limit, else ``None``."""
    if size is None or size <= max_file_size:
        return None
    return (
        f"File size ({size / 1024 / 1024:.2f} MB) exceeds maximum allowed size "
        f"({max_file_size / 1024 / 1024:.2f} MB)"
    )


def _remaining_size(stream: BinaryIO) -> int | None:
    try:
        position = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(position)
    except (AttributeError, OSError, ValueError):
        return None
    return end - position


class UploadService:
    """Runs the server-mediated and presigned upload flows against S3."""

    def __init__(self, storage: S3StorageService) -> None:
        self.storage = storage

    async def handle(self, request: UploadRequest, stream: BinaryIO | None = None) -> UploadOutcome:
        if request.mode is UploadMode.SERVER:
            if stream is None:
                raise ValueError("Server uploads require a file stream")
            return await self.upload_direct(
                stream,
                request.file_name,
                content_type=request.content_type,
                size=request.size,
                folder=request.folder,
                custom_file_name=request.custom_file_name,
                preserve_filename=request.preserve_filename,
                max_file_size=request.max_file_size,
            )

        if stream is not None:
            stream.close()
            raise ValueError("Presigned uploads are transferred by the caller, not streamed")
        return await self.prepare_signed_upload(
            request.file_name,
            content_type=request.content_type,
            size=request.size,
            folder=request.folder,
            custom_file_name=request.custom_file_name,
            preserve_filename=request.preserve_filename,
            max_file_size=request.max_file_size,
        )

    async def upload_direct(
        self,
        stream: BinaryIO,
        file_name: str,
        content_type: str | None = None,
        size: int | None = None,
        folder: str | None = None,
        custom_file_name: str | None = None,
        preserve_filename: bool = True,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> UploadOutcome:
        """Write ``stream`` to S3 in a single put and return its access URL.

        The stream is closed on every exit path. When the declared ``size`` is
        missing it is measured from the stream before anything reaches storage.
        """
        try:
            if size is None:
                size = _remaining_size(stream)
            error = validate_file_size(size, max_file_size)
            if error:
                return UploadFailed(error=error, reason=FailureReason.VALIDATION)

            key = self.storage.build_key(file_name, folder, custom_file_name, preserve_filename)
            try:
                await self.storage.put_object(key, stream, normalize_content_type(content_type))
            except Exception as exc:
                logger.exception("Error uploading %s to S3", key)
                return UploadFailed(error=str(exc))

            try:
                url = await self.storage.resolve_access_url(key)
            except Exception as exc:
                logger.exception("Error resolving access URL for %s", key)
                # Drop the object so a failed call leaves nothing behind.
                await self.storage.delete_object(key)
                return UploadFailed(error=str(exc))
        finally:
            stream.close()

        return UploadSucceeded(url=url, key=key)

    async def prepare_signed_upload(
        self,
        file_name: str,
        content_type: str | None = None,
        size: int | None = None,
        folder: str | None = None,
        custom_file_name: str | None = None,
        preserve_filename: bool = True,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> UploadOutcome:
        """Sign a PUT for a new object; the caller performs the transfer.

        The returned ``url`` is where the object will be readable once the
        transfer completes. Nothing is written to storage here.
        """
        error = validate_file_size(size, max_file_size)
        if error:
            return UploadFailed(error=error, reason=FailureReason.VALIDATION)

        key = self.storage.build_key(file_name, folder, custom_file_name, preserve_filename)
        try:
            upload_url = self.storage.create_presigned_put(key, normalize_content_type(content_type))
            access_url = await self.storage.resolve_access_url(key)
        except Exception as exc:
            logger.exception("Error generating presigned upload for %s", key)
            return UploadFailed(error=str(exc))

        return UploadSucceeded(url=access_url, key=key, upload_url=upload_url)
