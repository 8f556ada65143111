"""Session-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, BinaryIO

from .audio import AudioFormat, CaptureStats, default_audio_format


class RecorderState(Enum):
    """Lifecycle state of the recorder."""
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"

    def __str__(self) -> str:
        return self.value


@dataclass
class RecordingSession:
    """One start-to-stop recording lifecycle.

    Owned by the recorder; the capture callback only reads ``state`` and
    ``output`` under the recorder's state lock.
    """
    file_id: str
    file_path: str
    filename: str
    format: AudioFormat = field(default_factory=default_audio_format)
    state: RecorderState = RecorderState.IDLE
    start_time: float = 0.0  # Monotonic clock
    pause_time: Optional[float] = None
    paused_total: float = 0.0
    output: Optional[BinaryIO] = None
    record_id: Optional[int] = None
    final_duration: Optional[float] = None


@dataclass
class RecorderStatus:
    """Point-in-time view of the recorder for front-ends."""
    state: RecorderState
    duration_seconds: float
    file_id: Optional[str] = None
    file_path: Optional[str] = None
    record_id: Optional[int] = None
    capture: Optional[CaptureStats] = None
