import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from aws_uploader.api.routers import uploads as uploads_router
from aws_uploader.core.config import get_settings
from aws_uploader.services.storage import S3StorageService
from aws_uploader.services.uploads import UploadService


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A missing bucket name fails here, before any request is served.
    storage = S3StorageService(get_settings().storage_options())
    app.state.storage_service = storage
    app.state.upload_service = UploadService(storage)
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(
        debug=settings.debug,
        title="AWS Uploader API",
        lifespan=lifespan,
    )

    app.include_router(uploads_router.router, prefix=settings.api_prefix)

    return app


app = create_app()
