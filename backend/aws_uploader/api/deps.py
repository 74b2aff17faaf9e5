from fastapi import Request

from aws_uploader.services.storage import S3StorageService
from aws_uploader.services.uploads import UploadService


def get_storage_service(request: Request) -> S3StorageService:
    return request.app.state.storage_service


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service
