from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(CamelModel):
    error: str
    details: str | None = None


class ServerUploadResponse(CamelModel):
    url: str
    key: str | None = None
    message: str = "File uploaded successfully via server"


class PresignedUrlRequest(CamelModel):
    # Required fields are optional here so that a missing value is a 400, not a 422.
    file_name: str | None = None
    content_type: str | None = None
    folder: str | None = None
    custom_file_name: str | None = None
    preserve_filename: bool | None = True
    file_size: int | None = Field(default=None, ge=0)


class PresignedUrlResponse(CamelModel):
    presigned_url: str
    key: str
    public_url: str
    message: str = "Presigned URL generated successfully"


class DownloadUrlRequest(CamelModel):
    key: str | None = None
    expiration_minutes: int | None = Field(default=None, gt=0)


class DownloadUrlResponse(CamelModel):
    download_url: str
    message: str = "Download URL generated successfully"


class KeyRequest(CamelModel):
    key: str | None = None


class PublicUrlResponse(CamelModel):
    public_url: str
    message: str = "Public URL retrieved successfully"


class DeleteResponse(CamelModel):
    deleted: bool
    message: str


class CopyRequest(CamelModel):
    source_key: str | None = None
    destination_key: str | None = None


class CopyResponse(CamelModel):
    url: str
    message: str = "File copied successfully"
