import logging
import sys
from pathlib import Path

LOGGER_NAME = "file_server"
LOGS_DIR = Path("logs")

# Publish/discard detail goes to the file at DEBUG; requests, placeholder
# names and size-limit rejections reach the console at INFO and above.
FILE_FORMAT = '%(asctime)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(module)s - %(message)s'


def setup_logger():
    """Return the shared file server logger, configuring it on first use."""
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    LOGS_DIR.mkdir(exist_ok=True)
    logger.setLevel(logging.DEBUG)

    file_handler = logging.FileHandler(LOGS_DIR / f"{LOGGER_NAME}.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
