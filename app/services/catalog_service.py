from typing import AsyncIterator, List
from logger_config import setup_logger
from app.errors import NotPreviewableError
from app.models.file import FileEntry, PreviewResponse, StorageInfo
from app.services.file_types import TEXT_TYPES, classify
from app.services.name_sanitizer import original_part
from app.services.storage_directory import StorageDirectory
import config

logger = setup_logger()

UNITS = ("B", "KB", "MB", "GB")


def format_bytes(size_bytes: int) -> str:
    """Human readable size: bytes as-is, larger units with one decimal."""
    size = float(size_bytes)
    unit_index = 0
    while size >= 1024.0 and unit_index < len(UNITS) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{size_bytes} {UNITS[0]}"
    return f"{size:.1f} {UNITS[unit_index]}"


def _percentage(part: int, whole: int) -> float:
    return (part / whole) * 100.0 if whole > 0 else 0.0


class CatalogService:
    """Read and delete side of the file server."""

    def __init__(self, storage: StorageDirectory, max_storage_size: int = config.MAX_STORAGE_SIZE):
        self.storage = storage
        self.max_storage_size = max_storage_size

    async def list_files(self) -> List[FileEntry]:
        return await self.storage.list()

    async def download_file(self, name: str) -> AsyncIterator[bytes]:
        """Stream an entry by its exact stored name.

        Raises:
            InvalidNameError: the name could address something outside the root
            NotFoundError: no such entry
        """
        return await self.storage.read(name)

    async def delete_file(self, name: str):
        await self.storage.delete(name)
        logger.info(f"Successfully deleted file: {name}")

    async def storage_info(self) -> StorageInfo:
        used_bytes, total_files = await self.storage.usage()
        disk_free, disk_total = self.storage.disk_space()
        disk_used = max(disk_total - disk_free, 0)

        return StorageInfo(
            used_bytes=used_bytes,
            total_files=total_files,
            used_percentage=_percentage(used_bytes, self.max_storage_size),
            formatted_used=format_bytes(used_bytes),
            max_size_mb=self.max_storage_size // 1024 // 1024,
            disk_free_bytes=disk_free,
            disk_total_bytes=disk_total,
            disk_used_percentage=_percentage(disk_used, disk_total),
            formatted_disk_free=format_bytes(disk_free),
            formatted_disk_total=format_bytes(disk_total),
        )

    async def preview_file(self, name: str, limit: int = config.PREVIEW_LIMIT) -> PreviewResponse:
        """Return the leading ``limit`` bytes of a text or code entry as text.

        Raises:
            NotPreviewableError: the entry is not a text or code file
            NotFoundError: no such entry
        """
        display_name = original_part(name)
        file_type, can_preview = classify(display_name)
        if not can_preview or file_type not in TEXT_TYPES:
            raise NotPreviewableError(name)

        stream = await self.storage.read(name)
        head = bytearray()
        truncated = False
        try:
            async for chunk in stream:
                head.extend(chunk)
                if len(head) > limit:
                    truncated = True
                    break
        finally:
            await stream.aclose()

        content = bytes(head[:limit]).decode("utf-8", errors="replace")
        if truncated:
            content = (
                f"{content}...\n\n[Content truncated - showing first "
                f"{format_bytes(limit)} of {display_name}]"
            )
        return PreviewResponse(content=content, file_type=file_type, filename=display_name)
