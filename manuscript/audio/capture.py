"""Audio capture pipeline bridging PyAudio's callback delivery to the WAV writer."""

import dataclasses
import logging
import threading
from threading import Thread, Event
from typing import Optional

import numpy as np
import pyaudio

from ..models.audio import CaptureStats
from ..models.session import RecorderState, RecordingSession
from ..errors import DeviceError
from ..storage.wav_writer import StreamingWavWriter


logger = logging.getLogger(__name__)


_PYAUDIO_FORMATS = {
    8: pyaudio.paUInt8,
    16: pyaudio.paInt16,
    24: pyaudio.paInt24,
    32: pyaudio.paInt32,
}

_PEAK_DTYPES = {
    8: np.uint8,
    16: np.int16,
    32: np.int32,
}


class CapturePipeline:
    """Owns the capture device for one recording session.

    PyAudio delivers every batch of frames on its own thread through
    ``_on_frames``. Each batch is appended to the session's output file when
    the session is recording and dropped otherwise; there is no buffering.
    A background thread owns the stream's lifetime and closes it on stop.

    The write itself runs under ``output_lock`` only; ``state_lock`` is held
    just long enough to check the state, so state queries never wait on disk.
    Lock order is ``output_lock`` then ``state_lock``.
    """

    def __init__(
        self,
        session: RecordingSession,
        state_lock: threading.Lock,
        writer: StreamingWavWriter,
        chunk_size: int = 1024,
        device_index: Optional[int] = None,
        open_timeout: float = 5.0,
        poll_interval: float = 0.25,
        output_lock: Optional[threading.Lock] = None,
    ):
        """Initialize capture pipeline.

        Args:
            session: Session whose state gates writes and whose file receives them
            state_lock: Lock guarding the session's state and output handle
            writer: WAV writer used to append sample data
            chunk_size: Frames per PyAudio buffer
            device_index: Input device index, None for the system default
            open_timeout: Seconds to wait for the device to open
            poll_interval: Seconds between device health checks
            output_lock: Lock held around each write; taken before the output
                        handle is detached
        """
        self.session = session
        self.state_lock = state_lock
        self.output_lock = output_lock or threading.Lock()
        self.writer = writer
        self.format = session.format
        self.chunk_size = chunk_size
        self.device_index = device_index
        self.open_timeout = open_timeout
        self.poll_interval = poll_interval

        # Capture thread management
        self.capture_thread: Optional[Thread] = None
        self.stop_event = Event()
        self._ready = Event()
        self.is_capturing = False

        self.stats = CaptureStats()
        self._write_failing = False

        # PyAudio instance
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def start(self) -> None:
        """Open the capture device on a background thread.

        Blocks until the device is open.

        Raises:
            DeviceError: If the device cannot be opened
        """
        if self.is_capturing:
            logger.warning("Capture already in progress")
            return

        logger.info("Starting audio capture")
        self.stop_event.clear()
        self._ready.clear()
        self.stats = CaptureStats()
        self._write_failing = False

        self.capture_thread = Thread(target=self._capture_continuously, daemon=True)
        self.capture_thread.name = "AudioCaptureThread"
        self.capture_thread.start()

        if not self._ready.wait(self.open_timeout):
            self.stop_event.set()
            self.capture_thread.join(timeout=self.open_timeout)
            raise DeviceError(f"Capture device did not open within {self.open_timeout}s")

        if self.stats.device_error is not None:
            self.capture_thread.join()
            raise DeviceError(f"Failed to open capture device: {self.stats.device_error}")

        self.is_capturing = True
        self.stats.is_capturing = True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Close the capture device and wait for the capture thread to exit.

        Args:
            timeout: Maximum seconds to wait, None to wait indefinitely

        Returns:
            True if the capture thread has exited
        """
        if not self.is_capturing:
            logger.warning("No capture in progress")
            return True

        logger.info("Stopping audio capture")
        self.stop_event.set()

        if self.capture_thread and self.capture_thread.is_alive():
            self.capture_thread.join(timeout=timeout)
            if self.capture_thread.is_alive():
                logger.warning(f"Capture thread did not stop within {timeout}s")
                return False

        self.is_capturing = False
        with self.state_lock:
            self.stats.is_capturing = False
        logger.info(f"Capture stopped. Batches: {self.stats.batches_delivered}, "
                    f"written: {self.stats.bytes_written} bytes, "
                    f"dropped: {self.stats.bytes_dropped} bytes")
        return True

    def __open_audio_stream(self) -> "pyaudio.Stream":
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=_PYAUDIO_FORMATS[self.format.bit_depth],
            channels=self.format.channels,
            rate=self.format.sample_rate,
            input=True,
            input_device_index=self.device_index,
            frames_per_buffer=self.chunk_size,
            stream_callback=self._on_frames,
        )
        stream.start_stream()
        logger.info(f"Audio stream opened: {self.format.sample_rate}Hz, "
                    f"{self.format.channels}ch, {self.format.bit_depth}-bit, "
                    f"{self.chunk_size} frames/buffer")
        return stream

    def __close_audio_stream(self, stream: Optional["pyaudio.Stream"]) -> None:
        try:
            if stream:
                stream.stop_stream()
                stream.close()
        except Exception as e:
            logger.error(f"Error closing audio stream: {e}")
        finally:
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def _capture_continuously(self) -> None:
        """Internal method: owns the stream until a stop is requested."""
        stream = None
        try:
            stream = self.__open_audio_stream()
        except Exception as e:
            logger.error(f"Failed to open capture device: {e}")
            self.stats.device_error = str(e)
            self.__close_audio_stream(stream)
            self._ready.set()
            return

        self._ready.set()
        try:
            while not self.stop_event.wait(self.poll_interval):
                if not stream.is_active():
                    logger.error("Capture device stopped delivering audio")
                    with self.state_lock:
                        self.stats.device_error = "stream became inactive"
                    break
        finally:
            # Once the stream is closed no further callbacks run
            self.__close_audio_stream(stream)

    def _on_frames(self, in_data, frame_count, time_info, status_flags):
        """PyAudio stream callback; runs on the backend's delivery thread."""
        if status_flags:
            logger.debug(f"Capture status flags: {status_flags}")

        with self.output_lock:
            with self.state_lock:
                self.stats.batches_delivered += 1
                output = self.session.output
                if self.session.state != RecorderState.RECORDING or output is None:
                    self.stats.bytes_dropped += len(in_data)
                    return (None, pyaudio.paContinue)

            self.__write_frames(output, in_data)

        return (None, pyaudio.paContinue)

    def __write_frames(self, output, audio_data: bytes) -> None:
        # Caller holds output_lock but not state_lock
        try:
            self.writer.append(output, audio_data)
        except (OSError, ValueError) as e:
            with self.state_lock:
                self.stats.write_errors += 1
            if not self._write_failing:
                logger.error(f"Failed to write audio data: {e}")
                self._write_failing = True
            return

        peak = self._peak_level(audio_data)
        with self.state_lock:
            self.stats.bytes_written += len(audio_data)
            self.stats.peak_level = peak
        if self._write_failing:
            logger.info(f"Audio writes recovered after {self.stats.write_errors} errors")
            self._write_failing = False

    def _peak_level(self, audio_data: bytes) -> float:
        """Peak amplitude of a batch as a fraction of full scale."""
        dtype = _PEAK_DTYPES.get(self.format.bit_depth)
        if dtype is None:
            return 0.0

        itemsize = np.dtype(dtype).itemsize
        usable = len(audio_data) - len(audio_data) % itemsize
        if usable <= 0:
            return 0.0

        samples = np.frombuffer(audio_data[:usable], dtype=dtype)
        if dtype is np.uint8:
            # 8-bit PCM is unsigned and centered on 128
            return float(np.abs(samples.astype(np.int16) - 128).max()) / 128.0

        full_scale = float(np.iinfo(dtype).max) + 1.0
        return float(np.abs(samples.astype(np.int64)).max()) / full_scale

    def get_capture_stats(self) -> CaptureStats:
        """Get a snapshot of capture statistics."""
        with self.state_lock:
            return dataclasses.replace(self.stats)
