from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes as camelCase on the wire, accepts snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileEntry(CamelModel):
    stored_name: str
    original_name: str
    size_bytes: int
    created_at: datetime
    file_type: str
    can_preview: bool


class UploadOutcome(CamelModel):
    original_name: str
    stored_name: Optional[str] = None
    size_bytes: Optional[int] = None
    error: Optional[str] = None
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class StorageInfo(CamelModel):
    used_bytes: int
    total_files: int
    used_percentage: float
    formatted_used: str
    max_size_mb: int
    disk_free_bytes: int
    disk_total_bytes: int
    disk_used_percentage: float
    formatted_disk_free: str
    formatted_disk_total: str


class PreviewResponse(CamelModel):
    content: str
    file_type: str
    filename: str


class DebugInfo(CamelModel):
    debug_mode: bool


class ApiResponse(CamelModel):
    success: bool
    message: str
