from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageOptions(BaseModel):
    """Read-only S3 settings shared by every storage call in the process."""

    model_config = ConfigDict(frozen=True)

    region: str = "us-east-1"
    bucket_name: str = ""
    access_key: str | None = None
    secret_key: str | None = None
    endpoint_url: str | None = None
    folder_prefix: str = "uploads"
    presigned_url_expiration_minutes: int = Field(default=15, gt=0)
    use_public_urls: bool = True


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=True, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_prefix: str = Field(default="/api/aws-upload", alias="API_PREFIX")

    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    aws_bucket_name: str = Field(default="", alias="AWS_BUCKET_NAME")
    aws_access_key: str | None = Field(default=None, alias="AWS_ACCESS_KEY")
    aws_secret_key: str | None = Field(default=None, alias="AWS_SECRET_KEY")
    s3_endpoint: HttpUrl | None = Field(default=None, alias="S3_ENDPOINT_URL")
    aws_folder_prefix: str = Field(default="uploads", alias="AWS_FOLDER_PREFIX")

    presigned_url_expiration_minutes: int = Field(
        default=15, alias="PRESIGNED_URL_EXPIRATION_MINUTES"
    )
    download_url_expiration_minutes: int = Field(
        default=60 * 24 * 7, alias="DOWNLOAD_URL_EXPIRATION_MINUTES"
    )
    use_public_urls: bool = Field(default=True, alias="USE_PUBLIC_URLS")
    max_file_size: int = Field(default=5 * 1024 * 1024, alias="MAX_FILE_SIZE")

    def storage_options(self) -> StorageOptions:
        return StorageOptions(
            region=self.aws_region,
            bucket_name=self.aws_bucket_name,
            access_key=self.aws_access_key,
            secret_key=self.aws_secret_key,
            endpoint_url=str(self.s3_endpoint).rstrip("/") if self.s3_endpoint else None,
            folder_prefix=self.aws_folder_prefix,
            presigned_url_expiration_minutes=self.presigned_url_expiration_minutes,
            use_public_urls=self.use_public_urls,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
