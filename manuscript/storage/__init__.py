"""Storage layer: WAV container writing and recording metadata."""

from .base import AbstractRecordingRepository
from .recording_repository import JsonRecordingRepository
from .wav_writer import StreamingWavWriter, HEADER_SIZE

__all__ = [
    "AbstractRecordingRepository",
    "JsonRecordingRepository",
    "StreamingWavWriter",
    "HEADER_SIZE",
]
