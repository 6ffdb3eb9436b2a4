import re
import uuid
from typing import Callable, Optional
from logger_config import setup_logger
import config

logger = setup_logger()

PLACEHOLDER_NAME = "unnamed"
SEPARATOR = "-"

# Length of str(uuid4()), the identifier prefix of every stored name
ID_LENGTH = 36

_DOT_RUNS = re.compile(r"\.{2,}")


def clean_name(original_name: Optional[str]) -> str:
    """Reduce a client supplied filename to a safe single path component.

    Keeps letters, digits, dot, underscore and minus. Path separators,
    control characters and everything else are dropped, runs of dots are
    collapsed and leading dots removed so the result can neither climb out
    of the storage root nor become a hidden file. Returns an empty string
    when nothing survives.
    """
    if not original_name:
        return ""

    # Only the last path component counts; browsers on Windows send full paths
    basename = re.split(r"[/\\]", original_name)[-1]

    kept = "".join(c for c in basename if c.isalnum() or c in "._-")
    kept = _DOT_RUNS.sub(".", kept).lstrip(".")

    # Trim to the byte budget without splitting a multi-byte character
    encoded = kept.encode("utf-8")[:config.MAX_NAME_LENGTH]
    return encoded.decode("utf-8", errors="ignore")


def sanitize(original_name: Optional[str], id_factory: Callable[[], uuid.UUID] = uuid.uuid4) -> str:
    """Build the stored name ``<uuid>-<cleaned name>`` for an upload.

    Uniqueness comes from the random identifier, never from looking at the
    storage directory.
    """
    cleaned = clean_name(original_name)
    if not cleaned:
        logger.warning(f"Filename {original_name!r} sanitized to nothing, using placeholder")
        cleaned = PLACEHOLDER_NAME
    return f"{id_factory()}{SEPARATOR}{cleaned}"


def original_part(stored_name: str) -> str:
    """Return the cleaned original name carried by a stored name."""
    prefix, sep, rest = stored_name[:ID_LENGTH], stored_name[ID_LENGTH:ID_LENGTH + 1], stored_name[ID_LENGTH + 1:]
    try:
        uuid.UUID(prefix)
    except ValueError:
        return stored_name
    if sep != SEPARATOR or not rest:
        return stored_name
    return rest
