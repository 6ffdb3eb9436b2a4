from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Callable, List, Optional, Sequence
from logger_config import setup_logger
from app.errors import FileTooLargeError, InvalidNameError, NoFilesError, StorageIOError, TooManyFilesError
from app.models.file import UploadOutcome
from app.services.name_sanitizer import PLACEHOLDER_NAME, clean_name, sanitize
from app.services.storage_directory import StorageDirectory
import config

logger = setup_logger()


@dataclass
class IncomingFile:
    """One part of an upload request: the client's filename and its byte stream."""

    original_name: Optional[str]
    chunks: AsyncIterable[bytes]


async def bounded(chunks: AsyncIterable[bytes], max_size: int) -> AsyncIterator[bytes]:
    """Pass chunks through, raising FileTooLargeError once the total exceeds ``max_size``.

    The overflowing chunk is never yielded, so the writer stops before
    storing a single byte past the limit.
    """
    total = 0
    async for chunk in chunks:
        total += len(chunk)
        if total > max_size:
            raise FileTooLargeError(max_size)
        yield chunk


async def iter_upload(upload, chunk_size: int = config.CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Read a starlette UploadFile in fixed-size chunks."""
    while chunk := await upload.read(chunk_size):
        yield chunk


class UploadPipeline:
    def __init__(
        self,
        storage: StorageDirectory,
        max_file_size: int = config.MAX_FILE_SIZE,
        max_file_count: int = config.MAX_FILE_COUNT,
        name_sanitizer: Callable[[Optional[str]], str] = sanitize,
    ):
        self.storage = storage
        self.max_file_size = max_file_size
        self.max_file_count = max_file_count
        self.name_sanitizer = name_sanitizer

    def check_count(self, count: int):
        """Reject a batch before anything is written."""
        if count == 0:
            raise NoFilesError()
        if count > self.max_file_count:
            raise TooManyFilesError(count, self.max_file_count)

    async def ingest(self, files: Sequence[IncomingFile]) -> List[UploadOutcome]:
        """Store every file of a batch, returning one outcome per file in request order.

        Files are accepted independently: a failure on one leaves the files
        stored before it in place.

        Raises:
            NoFilesError: the batch is empty
            TooManyFilesError: the batch holds more than ``max_file_count`` files
        """
        self.check_count(len(files))

        outcomes = []
        for incoming in files:
            outcomes.append(await self._ingest_one(incoming))

        stored = sum(1 for outcome in outcomes if outcome.succeeded)
        logger.info(f"Upload batch finished: {stored}/{len(outcomes)} file(s) stored")
        return outcomes

    async def _ingest_one(self, incoming: IncomingFile) -> UploadOutcome:
        original_name = incoming.original_name or ""
        stored_name = self.name_sanitizer(incoming.original_name)

        try:
            size = await self.storage.write(stored_name, bounded(incoming.chunks, self.max_file_size))
        except FileTooLargeError as e:
            logger.warning(f"Rejected {original_name!r}: larger than {self.max_file_size} bytes")
            return UploadOutcome(original_name=original_name, error=e.kind, detail=str(e))
        except StorageIOError as e:
            return UploadOutcome(original_name=original_name, error=e.kind, detail=str(e))

        logger.info(f"Stored {original_name!r} as {stored_name} ({size} bytes)")
        outcome = UploadOutcome(original_name=original_name, stored_name=stored_name, size_bytes=size)
        if not clean_name(incoming.original_name):
            # Stored, but under the placeholder rather than the client's name
            outcome.detail = f"{InvalidNameError.kind}: filename replaced with '{PLACEHOLDER_NAME}'"
        return outcome
