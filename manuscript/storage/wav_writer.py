"""Streaming WAV container writer.

The payload size of a live recording is unknown until capture stops, so the
44-byte RIFF header is written twice: once with a zero payload size when the
file is created, and again with the real size when the session is finalized.
"""

import os
import struct
import logging
from typing import BinaryIO, Dict, Any

from ..models.audio import AudioFormat

logger = logging.getLogger(__name__)


HEADER_SIZE = 44
FMT_CHUNK_SIZE = 16
PCM_FORMAT = 1
MAX_PAYLOAD_SIZE = 0xFFFFFFFF - 36

# RIFF header, fmt chunk and data chunk header, all little-endian
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


class StreamingWavWriter:
    """Writes uncompressed PCM WAV files whose length grows while recording."""

    def __init__(self, audio_format: AudioFormat):
        self.format = audio_format

    def build_header(self, payload_size: int) -> bytes:
        """Build the 44-byte header for ``payload_size`` bytes of samples."""
        if payload_size < 0 or payload_size > MAX_PAYLOAD_SIZE:
            raise ValueError(f"Payload size out of range for WAV container: {payload_size}")

        return _HEADER_STRUCT.pack(
            b"RIFF",
            payload_size + 36,
            b"WAVE",
            b"fmt ",
            FMT_CHUNK_SIZE,
            PCM_FORMAT,
            self.format.channels,
            self.format.sample_rate,
            self.format.byte_rate,
            self.format.block_align,
            self.format.bit_depth,
            b"data",
            payload_size,
        )

    def write_header(self, file: BinaryIO, payload_size: int) -> None:
        """Write the header at offset 0, replacing any previous one.

        Leaves the file positioned at its end so appended samples follow the
        existing payload.
        """
        header = self.build_header(payload_size)
        file.seek(0)
        file.write(header)
        file.flush()
        file.seek(0, os.SEEK_END)

    def append(self, file: BinaryIO, audio_data: bytes) -> int:
        """Append raw sample bytes to the payload."""
        return file.write(audio_data)

    def finalize(self, file: BinaryIO) -> int:
        """Rewrite the header with the payload size implied by the file length.

        Derived from the current length rather than a running counter, so
        calling it repeatedly yields the same header.

        Returns:
            Payload size written to the header
        """
        file.flush()
        file_length = os.fstat(file.fileno()).st_size
        payload_size = file_length - HEADER_SIZE
        if payload_size < 0:
            raise ValueError(f"File is shorter than a WAV header: {file_length} bytes")

        self.write_header(file, payload_size)
        os.fsync(file.fileno())
        logger.debug(f"Finalized WAV header: {payload_size} payload bytes")
        return payload_size

    @staticmethod
    def read_header(file: BinaryIO) -> Dict[str, Any]:
        """Decode the header fields of a WAV file written by this class."""
        file.seek(0)
        raw = file.read(HEADER_SIZE)
        if len(raw) < HEADER_SIZE:
            raise ValueError("File is shorter than a WAV header")

        (riff, chunk_size, wave_id, fmt_id, fmt_size, audio_format, channels,
         sample_rate, byte_rate, block_align, bit_depth, data_id, payload_size) = _HEADER_STRUCT.unpack(raw)

        if riff != b"RIFF" or wave_id != b"WAVE":
            raise ValueError("Not a RIFF/WAVE file")

        return {
            "chunk_size": chunk_size,
            "fmt_chunk_size": fmt_size,
            "audio_format": audio_format,
            "channels": channels,
            "sample_rate": sample_rate,
            "byte_rate": byte_rate,
            "block_align": block_align,
            "bit_depth": bit_depth,
            "data_chunk_id": data_id,
            "payload_size": payload_size,
        }
