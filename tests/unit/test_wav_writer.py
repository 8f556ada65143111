"""Unit tests for StreamingWavWriter."""

import io
import os
import struct
import wave
import pytest

from manuscript.models.audio import AudioFormat, default_audio_format
from manuscript.storage.wav_writer import StreamingWavWriter, HEADER_SIZE, MAX_PAYLOAD_SIZE


@pytest.fixture
def writer():
    return StreamingWavWriter(default_audio_format())


@pytest.fixture
def wav_file(temp_data_dir):
    path = os.path.join(temp_data_dir, "stream.wav")
    with open(path, 'w+b') as f:
        yield f


@pytest.mark.unit
class TestStreamingWavWriter:

    def test_header_layout(self, writer):
        header = writer.build_header(4800)

        assert len(header) == HEADER_SIZE
        assert header[0:4] == b"RIFF"
        assert struct.unpack("<I", header[4:8])[0] == 4800 + 36
        assert header[8:12] == b"WAVE"
        assert header[12:16] == b"fmt "
        assert struct.unpack("<I", header[16:20])[0] == 16
        assert struct.unpack("<H", header[20:22])[0] == 1
        assert struct.unpack("<H", header[22:24])[0] == 1
        assert struct.unpack("<I", header[24:28])[0] == 16000
        assert struct.unpack("<I", header[28:32])[0] == 32000
        assert struct.unpack("<H", header[32:34])[0] == 2
        assert struct.unpack("<H", header[34:36])[0] == 16
        assert header[36:40] == b"data"
        assert struct.unpack("<I", header[40:44])[0] == 4800

    def test_derived_fields_for_stereo_24_bit(self):
        writer = StreamingWavWriter(AudioFormat(sample_rate=44100, channels=2, bit_depth=24))
        fields = StreamingWavWriter.read_header(io.BytesIO(writer.build_header(0)))

        assert fields["channels"] == 2
        assert fields["sample_rate"] == 44100
        assert fields["byte_rate"] == 44100 * 2 * 3
        assert fields["block_align"] == 6
        assert fields["bit_depth"] == 24

    def test_payload_size_out_of_range(self, writer):
        with pytest.raises(ValueError):
            writer.build_header(-1)
        with pytest.raises(ValueError):
            writer.build_header(MAX_PAYLOAD_SIZE + 1)

    def test_placeholder_header_then_append(self, writer, wav_file):
        writer.write_header(wav_file, 0)
        assert wav_file.tell() == HEADER_SIZE

        writer.append(wav_file, b"\x01\x00" * 100)
        wav_file.flush()

        assert os.fstat(wav_file.fileno()).st_size == HEADER_SIZE + 200
        assert StreamingWavWriter.read_header(wav_file)["payload_size"] == 0

    def test_write_header_overwrites_in_place(self, writer, wav_file):
        writer.write_header(wav_file, 0)
        writer.append(wav_file, b"\x00" * 64)
        writer.write_header(wav_file, 64)

        wav_file.flush()
        assert os.fstat(wav_file.fileno()).st_size == HEADER_SIZE + 64
        assert StreamingWavWriter.read_header(wav_file)["payload_size"] == 64

    def test_finalize_uses_file_length(self, writer, wav_file, sample_audio_chunk):
        writer.write_header(wav_file, 0)
        writer.append(wav_file, sample_audio_chunk)
        writer.append(wav_file, sample_audio_chunk)

        payload_size = writer.finalize(wav_file)

        assert payload_size == 2 * len(sample_audio_chunk)
        fields = StreamingWavWriter.read_header(wav_file)
        assert fields["payload_size"] == payload_size
        assert fields["chunk_size"] == payload_size + 36

    def test_finalize_is_idempotent(self, writer, wav_file):
        writer.write_header(wav_file, 0)
        writer.append(wav_file, b"\x10\x20" * 500)

        writer.finalize(wav_file)
        wav_file.seek(0)
        first = wav_file.read(HEADER_SIZE)

        writer.finalize(wav_file)
        wav_file.seek(0)
        second = wav_file.read(HEADER_SIZE)

        assert first == second

    def test_append_after_finalize_continues_at_end(self, writer, wav_file):
        writer.write_header(wav_file, 0)
        writer.append(wav_file, b"\x00" * 10)
        writer.finalize(wav_file)
        writer.append(wav_file, b"\x00" * 10)

        assert writer.finalize(wav_file) == 20

    def test_finalize_rejects_truncated_file(self, writer, wav_file):
        wav_file.write(b"RIFF")
        with pytest.raises(ValueError):
            writer.finalize(wav_file)

    def test_read_header_rejects_non_wav(self):
        with pytest.raises(ValueError):
            StreamingWavWriter.read_header(io.BytesIO(b"\x00" * HEADER_SIZE))

    def test_output_readable_by_wave_module(self, writer, temp_data_dir, audio_test_data):
        path = os.path.join(temp_data_dir, "readable.wav")
        audio = audio_test_data("sine", duration_seconds=0.5)

        with open(path, 'w+b') as f:
            writer.write_header(f, 0)
            writer.append(f, audio)
            writer.finalize(f)

        with wave.open(path, 'rb') as wf:
            assert wf.getnchannels() == 1
            assert wf.getsampwidth() == 2
            assert wf.getframerate() == 16000
            assert wf.getnframes() == len(audio) // 2
            assert wf.readframes(wf.getnframes()) == audio
