"""Data models for the Manuscript recorder."""

from .audio import AudioFormat, CaptureStats, default_audio_format
from .session import RecorderState, RecordingSession, RecorderStatus
from .recording import Recording, CreateRecordingParams, UpdateRecordingParams
from .events import RecorderEvent

__all__ = [
    "AudioFormat",
    "CaptureStats",
    "default_audio_format",
    "RecorderState",
    "RecordingSession",
    "RecorderStatus",
    "Recording",
    "CreateRecordingParams",
    "UpdateRecordingParams",
    "RecorderEvent",
]
