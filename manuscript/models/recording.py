"""Persisted recording metadata models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


STATUS_RECORDING = "recording"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

TRANSCRIPTION_PENDING = "pending"


@dataclass
class Recording:
    """Metadata record for one recorded audio file."""
    id: int
    file_id: str
    filename: str
    file_path: str
    created_at: datetime
    duration_seconds: int = 0
    file_size_bytes: int = 0
    status: str = STATUS_RECORDING  # recording, completed, failed
    completed_at: Optional[datetime] = None
    transcription_status: str = TRANSCRIPTION_PENDING  # pending, processing, completed, failed
    notes: Optional[str] = None


@dataclass
class CreateRecordingParams:
    file_id: str
    filename: str
    file_path: str


@dataclass
class UpdateRecordingParams:
    """Partial update; fields left as None are not touched."""
    duration_seconds: Optional[int] = None
    file_size_bytes: Optional[int] = None
    status: Optional[str] = None
    completed_at: Optional[datetime] = None
    transcription_status: Optional[str] = None
    notes: Optional[str] = None
