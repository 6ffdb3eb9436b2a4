import argparse
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
import uvicorn
import config
from logger_config import setup_logger
from app.routes.file_routes import router
from app.services.catalog_service import CatalogService, format_bytes
from app.services.storage_directory import StorageDirectory
from app.services.upload_pipeline import UploadPipeline

# Storage paths
UPLOAD_DIR = Path(config.UPLOAD_DIR)
STAGING_DIR = Path(config.STAGING_DIR)

# Logger setup
logger = setup_logger()


def build_services(app: FastAPI, storage: StorageDirectory):
    """Attach the services sharing ``storage`` to the app state."""
    app.state.storage = storage
    app.state.upload_pipeline = UploadPipeline(
        storage,
        max_file_size=config.MAX_FILE_SIZE,
        max_file_count=config.MAX_FILE_COUNT,
    )
    app.state.catalog_service = CatalogService(storage, max_storage_size=config.MAX_STORAGE_SIZE)
    app.state.debug_mode = config.DEBUG


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage = StorageDirectory(UPLOAD_DIR, STAGING_DIR)
    await storage.initialize()
    build_services(app, storage)
    yield


# Create FastAPI app with lifespan
app = FastAPI(title="File Server", lifespan=lifespan)
app.include_router(router)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='File upload and storage server')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    parser.add_argument('--host', type=str, default=config.HOST, help='Bind address')
    parser.add_argument('--port', type=int, default=config.PORT, help='Bind port')
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    config.DEBUG = config.DEBUG or args.debug

    logger.info("Starting file server...")
    logger.info(f"Upload directory: {UPLOAD_DIR}")
    logger.info(f"Staging directory: {STAGING_DIR}")
    logger.info(f"Maximum file size: {format_bytes(config.MAX_FILE_SIZE)}")
    logger.info(f"Maximum files per upload: {config.MAX_FILE_COUNT}")
    if config.DEBUG:
        logger.info("Debug mode enabled")
    uvicorn.run(app, host=args.host, port=args.port)
