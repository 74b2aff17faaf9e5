import importlib
import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from botocore.exceptions import ClientError
from httpx import ASGITransport, AsyncClient

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aws_uploader.core.config import StorageOptions, get_settings
from aws_uploader.services.storage import S3StorageService
from aws_uploader.services.uploads import UploadService


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "Not Found"}}, operation)


class FakeS3Client:
    """In-memory stand-in for the handful of boto3 S3 calls the service makes."""

    def __init__(self, location: str | None = "eu-north-1") -> None:
        self.location = location
        self.objects: dict[str, dict] = {}
        self.calls: list[str] = []
        self.put_error: Exception | None = None
        self.location_error: Exception | None = None
        self.presign_error: Exception | None = None
        self.presigned_params: list[dict] = []

    def put_object(self, Bucket, Key, Body, ContentType):
        self.calls.append("put_object")
        if self.put_error:
            raise self.put_error
        data = Body.read() if hasattr(Body, "read") else Body
        self.objects[Key] = {"Body": data, "ContentType": ContentType}
        return {}

    def generate_presigned_url(self, ClientMethod, Params=None, ExpiresIn=3600):
        self.calls.append(f"presign:{ClientMethod}")
        self.presigned_params.append(Params)
        if self.presign_error:
            raise self.presign_error
        return (
            f"https://{Params['Bucket']}.signed.example.com/{Params['Key']}"
            f"?method={ClientMethod}&expires={ExpiresIn}"
        )

    def get_bucket_location(self, Bucket):
        self.calls.append("get_bucket_location")
        if self.location_error:
            raise self.location_error
        return {"LocationConstraint": self.location}

    def head_object(self, Bucket, Key):
        self.calls.append("head_object")
        if Key not in self.objects:
            raise _client_error("404", "HeadObject")
        return {"ContentLength": len(self.objects[Key]["Body"])}

    def delete_object(self, Bucket, Key):
        self.calls.append("delete_object")
        self.objects.pop(Key, None)
        return {}

    def copy_object(self, Bucket, Key, CopySource):
        self.calls.append("copy_object")
        source = self.objects.get(CopySource["Key"])
        if source is None:
            raise _client_error("NoSuchKey", "CopyObject")
        self.objects[Key] = dict(source)
        return {}


@pytest.fixture(scope="session", autouse=True)
def configure_environment():
    os.environ["ENV"] = "test"
    os.environ["AWS_BUCKET_NAME"] = "test-bucket"
    os.environ["AWS_FOLDER_PREFIX"] = "uploads"
    os.environ["USE_PUBLIC_URLS"] = "true"
    os.environ["MAX_FILE_SIZE"] = "1000"
    get_settings.cache_clear()


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def storage_options() -> StorageOptions:
    return StorageOptions(bucket_name="test-bucket", folder_prefix="uploads")


@pytest.fixture
def storage(storage_options, s3_client) -> S3StorageService:
    return S3StorageService(storage_options, client=s3_client)


@pytest.fixture
def upload_service(storage) -> UploadService:
    return UploadService(storage)


@pytest.fixture
def app_instance(configure_environment, storage, upload_service):
    from aws_uploader import main as app_module

    importlib.reload(app_module)
    app = app_module.app

    # Setup state for tests, mimicking lifespan events
    app.state.storage_service = storage
    app.state.upload_service = upload_service
    return app


@pytest_asyncio.fixture
async def client(app_instance):
    transport = ASGITransport(app=app_instance)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
