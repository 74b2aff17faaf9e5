import pytest

from aws_uploader.core.config import get_settings
from aws_uploader.services.storage import S3StorageService, StorageConfigurationError
from aws_uploader.services.uploads import UploadService


@pytest.fixture
def reset_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_startup_fails_without_bucket_name(monkeypatch, reset_settings):
    from aws_uploader.main import create_app, lifespan

    monkeypatch.setenv("AWS_BUCKET_NAME", "")
    get_settings.cache_clear()
    app = create_app()

    with pytest.raises(StorageConfigurationError):
        async with lifespan(app):
            pass


@pytest.mark.asyncio
async def test_startup_builds_services(monkeypatch, reset_settings):
    from aws_uploader.main import create_app, lifespan

    monkeypatch.setenv("AWS_BUCKET_NAME", "startup-bucket")
    monkeypatch.setenv("AWS_REGION", "eu-north-1")
    get_settings.cache_clear()
    app = create_app()

    async with lifespan(app):
        assert isinstance(app.state.storage_service, S3StorageService)
        assert app.state.storage_service.bucket == "startup-bucket"
        assert isinstance(app.state.upload_service, UploadService)
