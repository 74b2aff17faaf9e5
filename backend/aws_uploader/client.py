import logging
from typing import Any

import httpx

from aws_uploader.services.uploads import (
    DEFAULT_MAX_FILE_SIZE,
    FailureReason,
    UploadFailed,
    UploadOutcome,
    UploadSucceeded,
    normalize_content_type,
    validate_file_size,
)

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response, body: Any, default: str) -> str:
    if isinstance(body, dict) and body.get("error"):
        details = body.get("details")
        return f"{body['error']}: {details}" if details else body["error"]
    return f"{default} (HTTP {response.status_code})"


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class UploadApiClient:
    """Calls the upload endpoints over HTTP.

    Covers both flows from the caller's side: sending the file through the
    application server, or fetching a presigned URL and PUTting the bytes
    straight to S3.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_path: str = "/api/aws-upload",
        storage_http: httpx.AsyncClient | None = None,
    ) -> None:
        self.http = http
        self.base_path = base_path.rstrip("/")
        # Presigned PUTs go to S3 directly and must not carry the app's headers.
        self.storage_http = storage_http

    def _url(self, path: str) -> str:
        return f"{self.base_path}{path}"

    async def upload_via_server(
        self,
        content: bytes,
        file_name: str,
        content_type: str | None = None,
        folder: str | None = None,
        custom_file_name: str | None = None,
        preserve_filename: bool = True,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> UploadOutcome:
        error = validate_file_size(len(content), max_file_size)
        if error:
            return UploadFailed(error=error, reason=FailureReason.VALIDATION)

        data = {"preserveFilename": str(preserve_filename).lower()}
        if folder:
            data["folder"] = folder
        if custom_file_name:
            data["customFileName"] = custom_file_name
        files = {"file": (file_name, content, normalize_content_type(content_type))}

        try:
            response = await self.http.post(self._url("/server-upload"), data=data, files=files)
        except httpx.HTTPError as exc:
            logger.warning("Server upload of %s failed: %s", file_name, exc)
            return UploadFailed(error=str(exc))

        body = _json_or_none(response)
        if response.is_success and isinstance(body, dict) and body.get("url"):
            return UploadSucceeded(url=body["url"], key=body.get("key"))
        return UploadFailed(error=_error_message(response, body, "Upload failed"))

    async def upload_via_presigned_url(
        self,
        content: bytes,
        file_name: str,
        content_type: str | None = None,
        folder: str | None = None,
        custom_file_name: str | None = None,
        preserve_filename: bool = True,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> UploadOutcome:
        error = validate_file_size(len(content), max_file_size)
        if error:
            return UploadFailed(error=error, reason=FailureReason.VALIDATION)

        content_type = normalize_content_type(content_type)
        payload = {
            "fileName": file_name,
            "contentType": content_type,
            "folder": folder,
            "customFileName": custom_file_name,
            "preserveFilename": preserve_filename,
            "fileSize": len(content),
        }

        try:
            response = await self.http.post(self._url("/presigned-url"), json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Presigned URL request for %s failed: %s", file_name, exc)
            return UploadFailed(error=str(exc))

        body = _json_or_none(response)
        if not response.is_success or not isinstance(body, dict) or not body.get("presignedUrl"):
            return UploadFailed(
                error=_error_message(response, body, "Failed to get presigned URL")
            )

        presigned_url = body["presignedUrl"]
        try:
            upload_response = await self._put(presigned_url, content, content_type)
        except httpx.HTTPError as exc:
            logger.warning("Direct upload of %s to S3 failed: %s", file_name, exc)
            return UploadFailed(error=str(exc))

        if not upload_response.is_success:
            return UploadFailed(
                error=(
                    f"Failed to upload to S3. Status: {upload_response.status_code}. "
                    f"Error: {upload_response.text}"
                )
            )

        url = body.get("publicUrl") or presigned_url.split("?", 1)[0]
        return UploadSucceeded(url=url, key=body.get("key"), upload_url=presigned_url)

    async def _put(self, url: str, content: bytes, content_type: str) -> httpx.Response:
        # S3 presigned PUTs reject chunked transfer encoding; bytes bodies get a Content-Length.
        headers = {"Content-Type": content_type}
        if self.storage_http is not None:
            return await self.storage_http.put(url, content=content, headers=headers)
        async with httpx.AsyncClient() as storage_http:
            return await storage_http.put(url, content=content, headers=headers)
