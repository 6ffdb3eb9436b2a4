import mimetypes
from typing import List, Optional
from urllib.parse import quote
from fastapi import APIRouter, File, HTTPException, Request, Response, UploadFile, status
from fastapi.responses import StreamingResponse
from logger_config import setup_logger
from app.errors import (
    FileServerError,
    InvalidNameError,
    NoFilesError,
    NotFoundError,
    NotPreviewableError,
    StorageIOError,
    TooManyFilesError,
)
from app.models.file import ApiResponse, DebugInfo, FileEntry, PreviewResponse, StorageInfo, UploadOutcome
from app.services.name_sanitizer import original_part
from app.services.upload_pipeline import IncomingFile, iter_upload

logger = setup_logger()

router = APIRouter()

STATUS_CODES = {
    TooManyFilesError: status.HTTP_400_BAD_REQUEST,
    NoFilesError: status.HTTP_400_BAD_REQUEST,
    InvalidNameError: status.HTTP_400_BAD_REQUEST,
    NotPreviewableError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    StorageIOError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_http_exception(error: FileServerError) -> HTTPException:
    status_code = STATUS_CODES.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=str(error))


def content_disposition(filename: str) -> str:
    return f"attachment; filename*=UTF-8''{quote(filename)}"


@router.post("/upload", response_model=List[UploadOutcome], response_model_exclude_none=True)
async def upload_files(
    request: Request,
    response: Response,
    files: Optional[List[UploadFile]] = File(None),
):
    """Store the parts of the ``files`` form field.

    Answers with one outcome per part, in request order. The status is 200
    when at least one part was stored and 400 when all of them failed.
    """
    pipeline = request.app.state.upload_pipeline
    files = files or []
    logger.info(f"Receiving upload request with {len(files)} file(s)")

    incoming = [IncomingFile(upload.filename, iter_upload(upload)) for upload in files]
    try:
        outcomes = await pipeline.ingest(incoming)
    except (TooManyFilesError, NoFilesError) as e:
        logger.warning(f"Upload rejected: {e}")
        raise to_http_exception(e)

    if not any(outcome.succeeded for outcome in outcomes):
        response.status_code = status.HTTP_400_BAD_REQUEST
    return outcomes


@router.get("/files", response_model=List[FileEntry])
async def list_files(request: Request):
    catalog = request.app.state.catalog_service
    try:
        return await catalog.list_files()
    except StorageIOError as e:
        raise to_http_exception(e)


@router.get("/download/{stored_name}")
async def download_file(stored_name: str, request: Request):
    """Stream a stored file back with its original name."""
    catalog = request.app.state.catalog_service
    logger.info(f"Receiving download request for: {stored_name}")

    try:
        stream = await catalog.download_file(stored_name)
    except FileServerError as e:
        raise to_http_exception(e)

    original_name = original_part(stored_name)
    content_type, _ = mimetypes.guess_type(original_name)

    return StreamingResponse(
        stream,
        media_type=content_type or "application/octet-stream",
        headers={"content-disposition": content_disposition(original_name)},
    )


@router.post("/delete/{stored_name}", response_model=ApiResponse)
async def delete_file(stored_name: str, request: Request):
    catalog = request.app.state.catalog_service
    logger.info(f"Receiving delete request for: {stored_name}")

    try:
        await catalog.delete_file(stored_name)
    except FileServerError as e:
        raise to_http_exception(e)

    return ApiResponse(success=True, message="File deleted successfully")


@router.get("/storage", response_model=StorageInfo)
async def get_storage_info(request: Request):
    catalog = request.app.state.catalog_service
    try:
        return await catalog.storage_info()
    except StorageIOError as e:
        raise to_http_exception(e)


@router.get("/preview/{stored_name}", response_model=PreviewResponse)
async def preview_file(stored_name: str, request: Request):
    """Leading text of a text or code file."""
    catalog = request.app.state.catalog_service
    try:
        return await catalog.preview_file(stored_name)
    except FileServerError as e:
        raise to_http_exception(e)


@router.get("/debug", response_model=DebugInfo)
async def get_debug_info(request: Request):
    return DebugInfo(debug_mode=getattr(request.app.state, "debug_mode", False))
