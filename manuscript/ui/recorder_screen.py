"""Terminal recorder screen with live state, duration and level display."""

import time
import logging
import threading
from typing import Optional, List

from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.live import Live
from rich.text import Text
from rich.table import Table

from ..errors import RecorderError
from ..models.events import RecorderEvent
from ..models.recording import Recording
from ..models.session import RecorderState, RecorderStatus
from ..recorder.recorder import Recorder
from .keyboard_input import KeyboardInputHandler


logger = logging.getLogger(__name__)


_STATE_STYLES = {
    RecorderState.IDLE: ("IDLE", "bold white"),
    RecorderState.RECORDING: ("RECORDING", "bold red"),
    RecorderState.PAUSED: ("PAUSED", "bold yellow"),
    RecorderState.STOPPED: ("STOPPED", "bold green"),
}


def format_duration(seconds: float) -> str:
    """Format seconds as MM:SS, or HH:MM:SS from one hour on."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


class RecorderScreen:
    """Drives one recording session from the terminal.

    Keys: ``p`` pause, ``r`` resume, ``s`` or ``q`` stop.
    """

    def __init__(self, recorder: Recorder, topic: str = "recorder.state", console: Optional[Console] = None):
        self.recorder = recorder
        self.topic = topic
        self.console = console or Console()
        self.finished = threading.Event()
        self.last_message = "Recording..."
        self.input_handler: Optional[KeyboardInputHandler] = None

    def on_recorder_event(self, event: RecorderEvent) -> None:
        """pubsub listener for recorder state changes."""
        if event.event_type == "error":
            self.last_message = f"Error: {event.metadata.get('error')}"
        else:
            self.last_message = f"{event.event_type.capitalize()} at {event.timestamp:%H:%M:%S}"

    def render(self, status: RecorderStatus) -> Panel:
        label, style = _STATE_STYLES[status.state]
        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")

        table.add_row("State", Text(label, style=style))
        table.add_row("Duration", format_duration(status.duration_seconds))
        if status.capture is not None:
            peak = status.capture.peak_level if status.state == RecorderState.RECORDING else 0.0
            table.add_row("Level", f"{'#' * int(peak * 20):<20} {peak:.2f}")
            table.add_row("Written", f"{status.capture.bytes_written / 1024:.0f} KiB")
            if status.capture.write_errors:
                table.add_row("Write errors", Text(str(status.capture.write_errors), style="bold red"))
            if status.capture.device_error:
                table.add_row("Device", Text(status.capture.device_error, style="bold red"))
        table.add_row("File", status.file_path or "-")
        table.add_row("", Text(self.last_message, style="dim"))

        return Panel(
            table,
            title="Manuscript Recorder",
            subtitle="p pause | r resume | s stop",
            border_style="blue",
        )

    def handle_key_input(self, key: str) -> bool:
        """Handle keyboard input. Returns True to continue, False to quit."""
        try:
            if key == 'p':
                self.recorder.pause()
            elif key == 'r':
                self.recorder.resume()
            elif key in ('s', 'q'):
                self.finished.set()
                return False
        except RecorderError as e:
            self.last_message = str(e)
            logger.info(f"Ignored key {key!r}: {e}")
        return True

    def run(self, duration: Optional[float] = None) -> None:
        """Start recording and show the live screen until stopped.

        Args:
            duration: Stop automatically after this many seconds of wall time
        """
        pub.subscribe(self.on_recorder_event, self.topic)
        try:
            self.recorder.start()
        except RecorderError:
            pub.unsubscribe(self.on_recorder_event, self.topic)
            raise
        deadline = time.monotonic() + duration if duration else None

        self.input_handler = KeyboardInputHandler(self.handle_key_input)
        self.input_handler.start()
        try:
            with Live(self.render(self.recorder.get_status()), console=self.console,
                      refresh_per_second=4) as live:
                while not self.finished.wait(0.25):
                    if deadline is not None and time.monotonic() >= deadline:
                        break
                    live.update(self.render(self.recorder.get_status()))
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.input_handler.stop()
            self.stop_recording()
            pub.unsubscribe(self.on_recorder_event, self.topic)

    def stop_recording(self) -> None:
        """Stop the recorder if a session is active and report the result."""
        if self.recorder.get_state() not in (RecorderState.RECORDING, RecorderState.PAUSED):
            return
        try:
            self.recorder.stop()
        except RecorderError as e:
            logger.error(f"Error stopping recording: {e}")
            self.console.print(f"Error stopping recording: {e}", style="bold red")
            return

        status = self.recorder.get_status()
        self.console.print(
            f"Recording saved: {status.file_path} ({format_duration(status.duration_seconds)})",
            style="bold green",
        )


def render_recordings_table(recordings: List[Recording]) -> Table:
    """Build a table listing persisted recordings."""
    table = Table(title="Recordings", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Created")
    table.add_column("Duration", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")
    table.add_column("File")

    for recording in recordings:
        table.add_row(
            str(recording.id),
            recording.created_at.strftime("%Y-%m-%d %H:%M"),
            format_duration(recording.duration_seconds),
            f"{recording.file_size_bytes / (1024 * 1024):.1f} MB",
            recording.status,
            recording.filename,
        )
    return table
