import os
import sys
import pytest
import pytest_asyncio

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.errors import InvalidNameError, NotFoundError, NotPreviewableError
from app.services.catalog_service import CatalogService, format_bytes
from app.services.name_sanitizer import sanitize
from app.services.storage_directory import StorageDirectory


@pytest_asyncio.fixture
async def catalog(tmp_path):
    storage = StorageDirectory(tmp_path / "data", tmp_path / "data" / ".staging")
    await storage.initialize()
    return CatalogService(storage, max_storage_size=1024 * 1024)


async def store(catalog, original_name, content):
    async def chunks():
        yield content

    name = sanitize(original_name)
    await catalog.storage.write(name, chunks())
    return name


@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (1023, "1023 B"),
    (1024, "1.0 KB"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5.0 MB"),
    (3 * 1024 ** 4, "3072.0 GB"),
])
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected


@pytest.mark.asyncio
async def test_download_and_delete(catalog):
    name = await store(catalog, "a.txt", b"hello")

    stream = await catalog.download_file(name)
    assert b"".join([chunk async for chunk in stream]) == b"hello"

    await catalog.delete_file(name)
    assert await catalog.list_files() == []
    with pytest.raises(NotFoundError):
        await catalog.download_file(name)
    with pytest.raises(NotFoundError):
        await catalog.delete_file(name)


@pytest.mark.asyncio
async def test_lookup_cannot_escape_root(catalog):
    with pytest.raises(InvalidNameError):
        await catalog.download_file("../data/secret")
    with pytest.raises(InvalidNameError):
        await catalog.delete_file("../../etc/passwd")


@pytest.mark.asyncio
async def test_storage_info(catalog):
    await store(catalog, "a.bin", b"x" * 1024)
    await store(catalog, "b.bin", b"y" * 1024)

    info = await catalog.storage_info()
    assert info.used_bytes == 2048
    assert info.total_files == 2
    assert info.used_percentage == pytest.approx(2048 / (1024 * 1024) * 100)
    assert info.formatted_used == "2.0 KB"
    assert info.max_size_mb == 1
    assert 0 <= info.disk_used_percentage <= 100


@pytest.mark.asyncio
async def test_preview_text_and_code(catalog):
    text = await store(catalog, "readme.md", b"hi there")
    code = await store(catalog, "main.py", "print('zażółć')".encode("utf-8"))

    preview = await catalog.preview_file(text)
    assert (preview.content, preview.file_type, preview.filename) == ("hi there", "text", "readme.md")
    assert (await catalog.preview_file(code)).content == "print('zażółć')"


@pytest.mark.asyncio
async def test_preview_truncates(catalog):
    name = await store(catalog, "log.log", b"abcdef" * 10)

    preview = await catalog.preview_file(name, limit=10)
    assert preview.content.startswith("abcdefabcd...")
    assert "showing first 10 B of log.log" in preview.content


@pytest.mark.asyncio
async def test_preview_rejects_non_text(catalog):
    name = await store(catalog, "movie.mp4", b"\x00\x00")
    with pytest.raises(NotPreviewableError):
        await catalog.preview_file(name)


@pytest.mark.asyncio
async def test_preview_missing(catalog):
    with pytest.raises(NotFoundError):
        await catalog.preview_file(sanitize("missing.txt"))
