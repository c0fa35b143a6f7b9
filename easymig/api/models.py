"""Pydantic models for API requests and responses."""

from typing import List, Optional
from pydantic import BaseModel, Field
from enum import Enum

from ..models.migration import MigrationResult


class MigrationStatusEnum(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class ExportAttemptResponse(BaseModel):
    mechanism: str
    success: bool
    message: str = ""


class ArchiveResponse(BaseModel):
    name: str
    size: int
    entry_count: int


class MigrationResultResponse(BaseModel):
    """Result of one migration run, as rendered to the front-end."""
    status: MigrationStatusEnum
    logs: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    attempts: List[ExportAttemptResponse] = Field(default_factory=list)
    archive: Optional[ArchiveResponse] = None
    download: Optional[str] = None  # Download URL, success only

    @classmethod
    def from_result(cls, result: MigrationResult, download: Optional[str] = None) -> "MigrationResultResponse":
        archive = None
        if result.archive:
            archive = ArchiveResponse(
                name=result.archive.name,
                size=result.archive.size,
                entry_count=result.archive.entry_count,
            )
        return cls(
            status=MigrationStatusEnum(result.status.value),
            logs=result.log_messages,
            errors=result.error_messages,
            attempts=[
                ExportAttemptResponse(
                    mechanism=a.mechanism.value,
                    success=a.success,
                    message=a.message,
                )
                for a in result.attempts
            ],
            archive=archive,
            download=download,
        )
