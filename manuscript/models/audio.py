"""Audio-related data models."""

from dataclasses import dataclass
from typing import Optional


SUPPORTED_BIT_DEPTHS = (8, 16, 24, 32)


@dataclass(frozen=True)
class AudioFormat:
    """Capture format, fixed for the lifetime of a recording session."""
    sample_rate: int = 16000  # 16 kHz is enough for speech
    channels: int = 1
    bit_depth: int = 16

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"Invalid sample rate: {self.sample_rate}")
        if self.channels <= 0:
            raise ValueError(f"Invalid channel count: {self.channels}")
        if self.bit_depth not in SUPPORTED_BIT_DEPTHS:
            raise ValueError(f"Unsupported bit depth: {self.bit_depth}")

    @property
    def bytes_per_sample(self) -> int:
        return self.bit_depth // 8

    @property
    def block_align(self) -> int:
        """Bytes per frame (one sample for every channel)."""
        return self.channels * self.bit_depth // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.channels * self.bit_depth // 8


def default_audio_format() -> AudioFormat:
    """Default format tuned for multi-hour speech recordings: 16 kHz, mono, 16-bit."""
    return AudioFormat(sample_rate=16000, channels=1, bit_depth=16)


@dataclass
class CaptureStats:
    """Capture pipeline statistics."""
    is_capturing: bool = False
    batches_delivered: int = 0
    bytes_written: int = 0
    bytes_dropped: int = 0  # Delivered while not recording
    write_errors: int = 0
    peak_level: float = 0.0  # Of the most recent batch, 0.0 - 1.0
    device_error: Optional[str] = None
