"""Job record data model for async conversion."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PROCESSING


class JobRecord(BaseModel):
    """Tracks the lifecycle of one URL-to-audio conversion.

    Records are immutable. A state transition builds a new record through
    ``completed()`` or ``failed()``; the validator rejects any combination of
    fields that does not match the status.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    url: str
    workdir: Path
    status: JobStatus = JobStatus.PROCESSING
    output_path: Optional[Path] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_status_fields(self) -> "JobRecord":
        if (self.output_path is not None) != (self.status is JobStatus.COMPLETED):
            raise ValueError("output_path must be set exactly when status is completed")
        if (self.error is not None) != (self.status is JobStatus.ERROR):
            raise ValueError("error must be set exactly when status is error")
        if self.output_path is not None:
            workdir = self.workdir.resolve()
            if workdir not in self.output_path.resolve().parents:
                raise ValueError("output_path must be inside the job's workdir")
        return self

    def completed(self, output_path: Path) -> "JobRecord":
        return JobRecord.model_validate(
            {
                **self.model_dump(),
                "status": JobStatus.COMPLETED,
                "output_path": Path(output_path),
                "completed_at": _utcnow(),
            }
        )

    def failed(self, message: str) -> "JobRecord":
        return JobRecord.model_validate(
            {
                **self.model_dump(),
                "status": JobStatus.ERROR,
                "error": message,
                "completed_at": _utcnow(),
            }
        )


class ConvertResponse(BaseModel):
    """Status view returned by start/status queries."""

    id: str
    status: Literal["processing", "completed", "error", "not_found"]
    message: str


class ConvertRequest(BaseModel):
    url: str


class FileStatus(str, Enum):
    READY = "ready"
    NOT_READY = "not_ready"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


class FileResult(BaseModel):
    """Tagged outcome of a file retrieval."""

    status: FileStatus
    message: str = ""
    content: bytes = b""
    filename: Optional[str] = None
    media_type: str = "audio/mpeg"
