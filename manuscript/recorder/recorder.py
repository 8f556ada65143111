"""Recorder state machine coordinating the capture pipeline and the output file."""

import os
import time
import uuid
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..audio.capture import CapturePipeline
from ..errors import (
    InvalidTransitionError,
    DeviceError,
    RecorderIOError,
    PersistenceError,
)
from ..models.audio import AudioFormat, default_audio_format
from ..models.events import RecorderEvent
from ..models.recording import CreateRecordingParams
from ..models.session import RecorderState, RecordingSession, RecorderStatus
from ..storage.base import AbstractRecordingRepository
from ..storage.wav_writer import StreamingWavWriter
from .duration import compute_duration

logger = logging.getLogger(__name__)


class Recorder:
    """Start/pause/resume/stop controller for long audio recordings.

    ``command_lock`` serializes commands, including the whole of ``stop``
    while it waits for the capture thread. ``state_lock`` guards the
    session's state and output handle for short sections only; the query
    methods take just this one, so they never wait behind a stop in progress
    or a slow disk. ``output_lock`` is held by the capture callback around
    each write and by ``stop`` while it detaches the handle.
    """

    def __init__(
        self,
        data_dir: str,
        repository: AbstractRecordingRepository,
        audio_format: Optional[AudioFormat] = None,
        chunk_size: int = 1024,
        device_index: Optional[int] = None,
        device_open_timeout: float = 5.0,
        stop_timeout: Optional[float] = None,
        on_event: Optional[Callable[[RecorderEvent], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize recorder.

        Args:
            data_dir: Directory where recordings are written
            repository: Gateway for recording metadata
            audio_format: Capture format, defaults to 16 kHz mono 16-bit
            chunk_size: Frames per capture buffer
            device_index: Input device index, None for the system default
            device_open_timeout: Seconds to wait for the device to open
            stop_timeout: Seconds to wait for the capture thread on stop, None waits indefinitely
            on_event: Called with a RecorderEvent after every transition
            clock: Monotonic time source in seconds
        """
        self.data_dir = Path(data_dir)
        self.repository = repository
        self.format = audio_format or default_audio_format()
        self.chunk_size = chunk_size
        self.device_index = device_index
        self.device_open_timeout = device_open_timeout
        self.stop_timeout = stop_timeout
        self.on_event = on_event
        self.clock = clock

        self.writer = StreamingWavWriter(self.format)
        self.command_lock = threading.Lock()
        self.state_lock = threading.Lock()
        self.output_lock = threading.Lock()

        self.session: Optional[RecordingSession] = None
        self.pipeline: Optional[CapturePipeline] = None

    def _current_state(self) -> RecorderState:
        # Caller holds state_lock
        return self.session.state if self.session else RecorderState.IDLE

    def _new_session(self) -> RecordingSession:
        file_id = str(uuid.uuid4())
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"recording_{timestamp}_{file_id[:4]}.wav"
        return RecordingSession(
            file_id=file_id,
            file_path=str(self.data_dir / filename),
            filename=filename,
            format=self.format,
        )

    def start(self) -> None:
        """Begin a new recording session.

        Raises:
            InvalidTransitionError: If a session is already active
            RecorderIOError: If the output file cannot be created
            DeviceError: If the capture device cannot be opened
            PersistenceError: If the metadata record cannot be created
        """
        with self.command_lock:
            with self.state_lock:
                state = self._current_state()
            if state not in (RecorderState.IDLE, RecorderState.STOPPED):
                raise InvalidTransitionError("start", state)

            session = self._new_session()
            try:
                output = open(session.file_path, 'w+b')
            except OSError as e:
                raise RecorderIOError(f"Failed to create audio file {session.file_path}: {e}") from e

            try:
                # Placeholder header; rewritten with the real size on stop
                self.writer.write_header(output, 0)
            except OSError as e:
                self._discard_file(output, session.file_path)
                raise RecorderIOError(f"Failed to write WAV header: {e}") from e

            # The pipeline drops everything until the session is RECORDING
            pipeline = CapturePipeline(
                session=session,
                state_lock=self.state_lock,
                writer=self.writer,
                chunk_size=self.chunk_size,
                device_index=self.device_index,
                open_timeout=self.device_open_timeout,
                output_lock=self.output_lock,
            )
            try:
                pipeline.start()
            except DeviceError as e:
                logger.error(f"Failed to start recording: {e}")
                self._discard_file(output, session.file_path)
                raise

            try:
                record = self.repository.create(CreateRecordingParams(
                    file_id=session.file_id,
                    filename=session.filename,
                    file_path=session.file_path,
                ))
            except Exception as e:
                logger.error(f"Failed to create recording record: {e}")
                pipeline.stop(timeout=self.stop_timeout)
                self._discard_file(output, session.file_path)
                if isinstance(e, PersistenceError):
                    raise
                raise PersistenceError(f"Failed to create recording record: {e}") from e

            with self.state_lock:
                session.output = output
                session.record_id = record.id
                session.start_time = self.clock()
                session.state = RecorderState.RECORDING
                self.session = session
                self.pipeline = pipeline

            logger.info(f"Recording started: {session.file_path} (record {record.id})")
            self._emit("started", RecorderState.RECORDING, file_path=session.file_path,
                       file_id=session.file_id, record_id=record.id)

    def pause(self) -> None:
        """Pause the active recording. Audio delivered while paused is dropped."""
        with self.command_lock:
            with self.state_lock:
                state = self._current_state()
                if state != RecorderState.RECORDING:
                    raise InvalidTransitionError("pause", state)
                self.session.pause_time = self.clock()
                self.session.state = RecorderState.PAUSED

            logger.info("Recording paused")
            self._emit("paused", RecorderState.PAUSED)

    def resume(self) -> None:
        """Resume a paused recording."""
        with self.command_lock:
            with self.state_lock:
                state = self._current_state()
                if state != RecorderState.PAUSED:
                    raise InvalidTransitionError("resume", state)
                self.session.paused_total += self.clock() - self.session.pause_time
                self.session.pause_time = None
                self.session.state = RecorderState.RECORDING

            logger.info("Recording resumed")
            self._emit("resumed", RecorderState.RECORDING)

    def stop(self) -> None:
        """Stop the active recording and finalize its file and record.

        Blocks until the capture thread has exited. The file handle is
        released and the recorder is left STOPPED even when finalization or
        the metadata update fails; the failure is then raised.

        Raises:
            InvalidTransitionError: If no session is active
            RecorderIOError: If the WAV header cannot be finalized or the file closed
            PersistenceError: If the metadata record cannot be updated
        """
        with self.command_lock:
            with self.state_lock:
                state = self._current_state()
            if state not in (RecorderState.RECORDING, RecorderState.PAUSED):
                raise InvalidTransitionError("stop", state)

            session = self.session
            if not self.pipeline.stop(timeout=self.stop_timeout):
                logger.warning("Finalizing while capture thread is still running")

            # Waits out a write in progress; late callbacks then see no handle
            with self.output_lock, self.state_lock:
                now = self.clock()
                duration = compute_duration(now, session.start_time, session.paused_total,
                                            session.state, session.pause_time)
                output = session.output
                session.output = None
                session.final_duration = duration
                session.state = RecorderState.STOPPED

            try:
                try:
                    payload_size = self.writer.finalize(output)
                    file_size = os.fstat(output.fileno()).st_size
                finally:
                    output.close()
            except (OSError, ValueError) as e:
                logger.error(f"Failed to finalize WAV file {session.file_path}: {e}")
                self._emit("error", RecorderState.STOPPED, error=str(e))
                raise RecorderIOError(f"Failed to finalize WAV file {session.file_path}: {e}") from e

            logger.info(f"Finalized {session.file_path}: {payload_size} payload bytes")

            try:
                self.repository.mark_completed(session.record_id, int(duration), file_size)
            except Exception as e:
                logger.error(f"Failed to mark recording {session.record_id} completed: {e}")
                self._emit("error", RecorderState.STOPPED, error=str(e))
                if isinstance(e, PersistenceError):
                    raise
                raise PersistenceError(f"Failed to update recording: {e}") from e

            logger.info(f"Recording stopped: {duration:.1f}s, {file_size} bytes")
            self._emit("stopped", RecorderState.STOPPED, duration_seconds=duration,
                       file_size_bytes=file_size, file_path=session.file_path,
                       record_id=session.record_id)

    def get_state(self) -> RecorderState:
        with self.state_lock:
            return self._current_state()

    def get_duration(self) -> float:
        """Active recording time in seconds.

        Zero before the first session, live while recording or paused, and
        the final duration of the last session once stopped.
        """
        with self.state_lock:
            session = self.session
            if session is None:
                return 0.0
            if session.state == RecorderState.STOPPED:
                return session.final_duration or 0.0
            return compute_duration(self.clock(), session.start_time, session.paused_total,
                                    session.state, session.pause_time)

    def get_status(self) -> RecorderStatus:
        """Get a snapshot of state, duration and capture statistics."""
        pipeline = self.pipeline
        capture = pipeline.get_capture_stats() if pipeline else None
        with self.state_lock:
            session = self.session
        status = RecorderStatus(
            state=self.get_state(),
            duration_seconds=self.get_duration(),
            capture=capture,
        )
        if session is not None:
            status.file_id = session.file_id
            status.file_path = session.file_path
            status.record_id = session.record_id
        return status

    def _discard_file(self, output, file_path: str) -> None:
        try:
            output.close()
        except OSError as e:
            logger.warning(f"Could not close incomplete file {file_path}: {e}")
        finally:
            try:
                os.remove(file_path)
            except OSError as e:
                logger.warning(f"Could not remove incomplete file {file_path}: {e}")

    def _emit(self, event_type: str, state: RecorderState, **metadata) -> None:
        if not self.on_event:
            return
        event = RecorderEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            state=state,
            metadata=metadata,
        )
        try:
            self.on_event(event)
        except Exception as e:
            logger.error(f"Recorder event callback failed: {e}")
