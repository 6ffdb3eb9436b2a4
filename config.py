"""Configuration settings for the file server."""
import os

# Upload limits
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", 16384 * 1024 * 1024))  # 16384 MB
MAX_FILE_COUNT = int(os.getenv("MAX_FILE_COUNT", 10))

# Reporting ceiling for /storage, not enforced on upload
MAX_STORAGE_SIZE = int(os.getenv("MAX_STORAGE_SIZE", 1024 * 1024 * 1024 * 1024))  # 1024 GB

# Naming constraints
MAX_NAME_LENGTH = 200

# Streaming
CHUNK_SIZE = 8192  # 8KB chunks
PREVIEW_LIMIT = 10240  # first 10KB of text files

# Directory paths (staging must share a filesystem with the upload dir)
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "./uploads")
STAGING_DIR = os.getenv("STAGING_DIR", os.path.join(UPLOAD_DIR, ".staging"))

# Server
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", 8080))
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
