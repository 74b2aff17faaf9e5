import asyncio
import logging
from typing import Any, BinaryIO, Final
from urllib.parse import quote

import boto3
from botocore.client import Config

from aws_uploader.core.config import StorageOptions
from aws_uploader.services.keys import build_key

logger = logging.getLogger(__name__)

DEFAULT_REGION: Final[str] = "us-east-1"


class StorageConfigurationError(Exception):
    """Raised when the storage options cannot back a working S3 service."""


def create_s3_client(options: StorageOptions) -> Any:
    credentials: dict[str, str] = {}
    if options.access_key and options.secret_key:
        credentials = {
            "aws_access_key_id": options.access_key,
            "aws_secret_access_key": options.secret_key,
        }
    # Without explicit keys boto3 falls back to env vars, profiles or an IAM role.
    session = boto3.session.Session()
    return session.client(
        "s3",
        endpoint_url=options.endpoint_url,
        region_name=options.region,
        config=Config(signature_version="s3v4"),
        **credentials,
    )


class S3StorageService:
    """Thin facade over a boto3 S3 client bound to one bucket."""

    def __init__(self, options: StorageOptions, client: Any | None = None) -> None:
        if not options.bucket_name:
            raise StorageConfigurationError("AWS S3 bucket name is not configured")
        self.options = options
        self.bucket = options.bucket_name
        self.client = client if client is not None else create_s3_client(options)

    def build_key(
        self,
        file_name: str,
        folder: str | None = None,
        custom_file_name: str | None = None,
        preserve_filename: bool = True,
    ) -> str:
        return build_key(
            file_name,
            folder=folder,
            custom_file_name=custom_file_name,
            preserve_filename=preserve_filename,
            prefix=self.options.folder_prefix,
        )

    def _expires_in(self, expiration_minutes: int | None) -> int:
        minutes = expiration_minutes or self.options.presigned_url_expiration_minutes
        return minutes * 60

    async def put_object(self, key: str, stream: BinaryIO, content_type: str) -> None:
        def _upload() -> None:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=stream,
                ContentType=content_type,
            )

        await asyncio.to_thread(_upload)
        logger.info("File uploaded to S3: %s", key)

    def create_presigned_put(
        self,
        key: str,
        content_type: str,
        expiration_minutes: int | None = None,
    ) -> str:
        url = self.client.generate_presigned_url(
            ClientMethod="put_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=self._expires_in(expiration_minutes),
        )
        logger.info("Generated presigned upload URL for %s", key)
        return url

    def create_presigned_get(self, key: str, expiration_minutes: int | None = None) -> str:
        url = self.client.generate_presigned_url(
            ClientMethod="get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=self._expires_in(expiration_minutes),
        )
        logger.info("Generated presigned download URL for %s", key)
        return url

    async def get_bucket_region(self) -> str:
        response = await asyncio.to_thread(
            self.client.get_bucket_location, Bucket=self.bucket
        )
        # S3 reports buckets in us-east-1 with an empty location constraint.
        return response.get("LocationConstraint") or DEFAULT_REGION

    async def get_public_url(self, key: str) -> str:
        """Permanent URL for ``key``; only usable when the bucket allows public reads."""
        quoted_key = quote(key)
        if self.options.endpoint_url:
            return f"{self.options.endpoint_url}/{self.bucket}/{quoted_key}"
        region = await self.get_bucket_region()
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{quoted_key}"

    async def resolve_access_url(self, key: str, expiration_minutes: int | None = None) -> str:
        if self.options.use_public_urls:
            return await self.get_public_url(key)
        return self.create_presigned_get(key, expiration_minutes)

    async def delete_object(self, key: str) -> bool:
        def _delete() -> None:
            # delete_object succeeds for missing keys, so check existence first.
            self.client.head_object(Bucket=self.bucket, Key=key)
            self.client.delete_object(Bucket=self.bucket, Key=key)

        try:
            await asyncio.to_thread(_delete)
        except Exception:
            logger.exception("Error deleting file from S3: %s", key)
            return False
        logger.info("File deleted from S3: %s", key)
        return True

    async def copy_object(self, source_key: str, destination_key: str) -> tuple[bool, str | None]:
        logger.info("Copying %s to %s", source_key, destination_key)
        try:
            await asyncio.to_thread(
                self.client.copy_object,
                Bucket=self.bucket,
                Key=destination_key,
                CopySource={"Bucket": self.bucket, "Key": source_key},
            )
            url = await self.resolve_access_url(destination_key)
        except Exception:
            logger.exception(
                "Error copying file in S3 from %s to %s", source_key, destination_key
            )
            return False, None
        return True, url
