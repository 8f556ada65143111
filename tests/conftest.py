"""Pytest configuration and fixtures for Manuscript tests."""

import pytest
import tempfile
import logging
from itertools import count
from unittest.mock import Mock, patch
import numpy as np

from manuscript.errors import RecordingNotFoundError
from manuscript.models.recording import Recording
from manuscript.recorder import Recorder
from manuscript.storage.base import AbstractRecordingRepository
from datetime import datetime


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class InMemoryRecordingRepository(AbstractRecordingRepository):
    """Repository double that keeps records in a dict and can be told to fail."""

    def __init__(self):
        self.records = {}
        self.completed = []
        self.create_error = None
        self.complete_error = None
        self._ids = count(1)

    def create(self, params):
        if self.create_error:
            raise self.create_error
        recording = Recording(
            id=next(self._ids),
            file_id=params.file_id,
            filename=params.filename,
            file_path=params.file_path,
            created_at=datetime.now(),
        )
        self.records[recording.id] = recording
        return recording

    def mark_completed(self, record_id, duration_seconds, file_size_bytes):
        if self.complete_error:
            raise self.complete_error
        if record_id not in self.records:
            raise RecordingNotFoundError(f"Recording not found: {record_id}")
        self.completed.append((record_id, duration_seconds, file_size_bytes))
        self.records[record_id].status = "completed"


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_audio_chunk():
    """Generate 1024 samples of 16-bit mono audio (440 Hz sine)."""
    sample_rate = 16000
    duration = 1024 / sample_rate
    t = np.linspace(0, duration, 1024, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware.

    ``deliver(data)`` invokes the stream callback registered by the most
    recent ``open`` call, as the backend would.
    """
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.is_active.return_value = True
        mock_stream.start_stream.return_value = None
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        def deliver(data: bytes):
            callback = mock_pyaudio_instance.open.call_args.kwargs['stream_callback']
            return callback(data, len(data) // 2, {}, 0)

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream,
            'deliver': deliver,
        }


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_repository():
    return InMemoryRecordingRepository()


@pytest.fixture
def recorder(temp_data_dir, fake_repository, fake_clock, mock_pyaudio):
    """Recorder wired to mocked PyAudio, an in-memory repository and a fake clock."""
    rec = Recorder(
        data_dir=temp_data_dir,
        repository=fake_repository,
        device_open_timeout=2.0,
        stop_timeout=5.0,
        clock=fake_clock,
    )
    yield rec
    if rec.pipeline is not None and rec.pipeline.is_capturing:
        rec.pipeline.stop(timeout=1.0)


@pytest.fixture
def audio_test_data():
    """Generate various audio test data patterns."""
    def generate_audio(pattern="sine", duration_seconds=1.0, sample_rate=16000):
        """Generate 16-bit mono audio data for testing.

        Args:
            pattern: Type of audio pattern ('sine', 'noise', 'silence')
            duration_seconds: Duration of audio
            sample_rate: Sample rate in Hz

        Returns:
            bytes: Audio data as bytes
        """
        samples = int(duration_seconds * sample_rate)

        if pattern == "sine":
            t = np.linspace(0, duration_seconds, samples, False)
            wave_data = np.sin(2 * np.pi * 440 * t)
        elif pattern == "noise":
            wave_data = np.random.uniform(-1, 1, samples)
        elif pattern == "silence":
            wave_data = np.zeros(samples)
        else:
            raise ValueError(f"Unknown pattern: {pattern}")

        return (wave_data * 32767).astype(np.int16).tobytes()

    return generate_audio


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with mocked audio hardware")
    config.addinivalue_line("markers", "integration: end-to-end recording sessions on disk")
