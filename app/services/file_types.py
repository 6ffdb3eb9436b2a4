from typing import Tuple

IMAGE = {"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp", "ico"}
VIDEO = {"mp4", "webm", "mov", "avi", "mkv", "m4v"}
AUDIO = {"mp3", "wav", "m4a", "aac", "flac", "ogg"}
TEXT = {"txt", "md", "json", "xml", "csv", "log", "yml", "yaml", "toml", "ini"}
CODE = {"js", "ts", "html", "css", "rs", "py", "java", "c", "cpp", "h", "hpp",
        "go", "rb", "php", "sh", "bash"}
ARCHIVE = {"zip", "rar", "7z", "tar", "gz", "bz2"}
DOCUMENT = {"doc", "docx", "xls", "xlsx", "ppt", "pptx"}

# (type, extensions, previewable in the browser)
_CATEGORIES = (
    ("image", IMAGE, True),
    ("video", VIDEO, True),
    ("audio", AUDIO, True),
    ("text", TEXT, True),
    ("code", CODE, True),
    ("pdf", {"pdf"}, True),
    ("archive", ARCHIVE, False),
    ("document", DOCUMENT, False),
)

TEXT_TYPES = ("text", "code")


def classify(filename: str) -> Tuple[str, bool]:
    """Return (file_type, can_preview) based on the file extension."""
    _, dot, extension = filename.rpartition(".")
    extension = extension.lower() if dot else ""

    for file_type, extensions, can_preview in _CATEGORIES:
        if extension in extensions:
            return file_type, can_preview
    return "unknown", False
