import asyncio
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, List, Tuple
import aiofiles
import aiofiles.os
import psutil
from logger_config import setup_logger
from app.errors import InvalidNameError, NotFoundError, StorageIOError
from app.models.file import FileEntry
from app.services.file_types import classify
from app.services.name_sanitizer import ID_LENGTH, original_part
import config

logger = setup_logger()

STAGING_SUFFIX = ".part"

# Longest name the sanitizer can produce: "<uuid>-<cleaned name>"
MAX_STORED_NAME_BYTES = ID_LENGTH + 1 + config.MAX_NAME_LENGTH


class StorageDirectory:
    """The flat directory of stored files; its listing is the catalog.

    Writes land in the staging directory first and are published with a
    single rename once every byte is flushed, so list/read never see a
    partially written file. No in-process lock is held: each publish and
    each delete is atomic at the filesystem level.
    """

    def __init__(self, data_dir: Path, staging_dir: Path):
        self.data_dir = Path(data_dir).resolve()
        self.staging_dir = Path(staging_dir).resolve()

    async def initialize(self):
        """Create the directories and drop staging leftovers from a previous run."""
        logger.info("Initializing storage directory...")

        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.staging_dir.mkdir(exist_ok=True, parents=True)
        logger.debug(f"Storage directories created/verified: {self.data_dir}, {self.staging_dir}")

        # rename() is only atomic within one filesystem
        if os.stat(self.data_dir).st_dev != os.stat(self.staging_dir).st_dev:
            raise RuntimeError(
                f"Staging directory {self.staging_dir} must be on the same filesystem as {self.data_dir}"
            )

        files_removed = 0
        for file in self.staging_dir.glob("*"):
            if file.is_file():
                await aiofiles.os.unlink(file)
                files_removed += 1
        logger.info(f"Cleaned staging directory, removed {files_removed} files")

    def _entry_path(self, stored_name: str) -> Path:
        """Map a stored name to its path, refusing anything outside the root."""
        if (
            not stored_name
            or stored_name.startswith(".")
            or any(c in stored_name for c in "/\\\x00")
        ):
            raise InvalidNameError(stored_name)

        # No entry can carry a longer name, and the OS would reject it
        if len(stored_name.encode("utf-8", errors="surrogatepass")) > MAX_STORED_NAME_BYTES:
            raise NotFoundError(stored_name)

        path = self.data_dir / stored_name
        if path.parent != self.data_dir:
            raise InvalidNameError(stored_name)
        return path

    async def _discard_staged(self, staging_path: Path):
        try:
            await aiofiles.os.unlink(staging_path)
            logger.debug(f"Discarded staged file {staging_path.name}")
        except FileNotFoundError:
            pass
        except OSError:
            logger.error(f"Failed to remove staged file {staging_path}", exc_info=True)

    async def write(self, stored_name: str, chunks: AsyncIterable[bytes]) -> int:
        """Consume ``chunks`` completely and publish them under ``stored_name``.

        Returns the number of bytes written. If anything goes wrong, including
        an exception raised by ``chunks`` itself or task cancellation, the
        staged file is removed and nothing becomes visible.
        """
        final_path = self._entry_path(stored_name)
        staging_path = self.staging_dir / f"{stored_name}{STAGING_SUFFIX}"

        size = 0
        published = False
        try:
            async with aiofiles.open(staging_path, "wb") as f:
                async for chunk in chunks:
                    size += len(chunk)
                    await f.write(chunk)
                await f.flush()
                await asyncio.get_running_loop().run_in_executor(None, os.fsync, f.fileno())

            await aiofiles.os.rename(staging_path, final_path)
            await asyncio.get_running_loop().run_in_executor(None, self._sync_data_dir)
            published = True
        except OSError as e:
            logger.error(f"Error writing {stored_name}: {e}", exc_info=True)
            raise StorageIOError("write", stored_name, str(e)) from e
        finally:
            if not published:
                await self._discard_staged(staging_path)

        logger.debug(f"Published {stored_name} ({size} bytes)")
        return size

    def _sync_data_dir(self):
        """Persist the directory entry created by the publish rename."""
        fd = os.open(self.data_dir, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def _to_entry(self, stored_name: str, st: os.stat_result) -> FileEntry:
        original_name = original_part(stored_name)
        file_type, can_preview = classify(original_name)
        return FileEntry(
            stored_name=stored_name,
            original_name=original_name,
            size_bytes=st.st_size,
            created_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            file_type=file_type,
            can_preview=can_preview,
        )

    async def list(self) -> List[FileEntry]:
        """Enumerate visible entries, sorted by original name then stored name."""
        try:
            names = await aiofiles.os.listdir(self.data_dir)
        except OSError as e:
            raise StorageIOError("list", str(self.data_dir), str(e)) from e

        entries = []
        for name in names:
            # Hidden names are reserved (the staging directory lives here by default)
            if name.startswith("."):
                continue
            try:
                st = await aiofiles.os.stat(self.data_dir / name)
            except FileNotFoundError:
                # Deleted between listdir and stat
                continue
            except OSError as e:
                raise StorageIOError("stat", name, str(e)) from e
            if stat.S_ISREG(st.st_mode):
                entries.append(self._to_entry(name, st))

        entries.sort(key=lambda entry: (entry.original_name, entry.stored_name))
        return entries

    async def read(self, stored_name: str) -> AsyncIterator[bytes]:
        """Open an entry and return an iterator over its bytes.

        The file is opened before this returns, so NotFoundError is raised
        here rather than mid-stream, and a later delete does not cut the
        stream short on POSIX filesystems.
        """
        path = self._entry_path(stored_name)
        try:
            f = await aiofiles.open(path, "rb")
        except (FileNotFoundError, IsADirectoryError):
            raise NotFoundError(stored_name) from None
        except OSError as e:
            raise StorageIOError("read", stored_name, str(e)) from e
        return self._stream(f)

    @staticmethod
    async def _stream(f) -> AsyncIterator[bytes]:
        try:
            while chunk := await f.read(config.CHUNK_SIZE):
                yield chunk
        finally:
            await f.close()

    async def delete(self, stored_name: str):
        """Remove an entry; a second delete of the same name raises NotFoundError."""
        path = self._entry_path(stored_name)
        try:
            await aiofiles.os.remove(path)
        except (FileNotFoundError, IsADirectoryError):
            raise NotFoundError(stored_name) from None
        except OSError as e:
            logger.error(f"Error deleting {stored_name}: {e}", exc_info=True)
            raise StorageIOError("delete", stored_name, str(e)) from e
        logger.debug(f"Deleted {stored_name}")

    async def exists(self, stored_name: str) -> bool:
        """Advisory only: the answer can be stale by the time it is used."""
        try:
            path = self._entry_path(stored_name)
        except (InvalidNameError, NotFoundError):
            return False
        return await aiofiles.os.path.isfile(path)

    async def usage(self) -> Tuple[int, int]:
        """Return (total bytes, file count) of the visible entries."""
        entries = await self.list()
        return sum(entry.size_bytes for entry in entries), len(entries)

    def disk_space(self) -> Tuple[int, int]:
        """Return (free bytes, total bytes) of the filesystem holding the root."""
        disk = psutil.disk_usage(str(self.data_dir))
        return disk.free, disk.total
