"""Unit tests for the command-line front-end and recorder screen."""

import pytest
from io import StringIO
from unittest.mock import Mock, patch

from rich.console import Console

from manuscript.errors import InvalidTransitionError
from manuscript.main import create_parser, main
from manuscript.models.events import RecorderEvent
from manuscript.models.recording import CreateRecordingParams
from manuscript.models.session import RecorderState, RecorderStatus
from manuscript.storage import JsonRecordingRepository
from manuscript.ui.recorder_screen import RecorderScreen, format_duration


@pytest.mark.unit
class TestFormatDuration:

    @pytest.mark.parametrize("seconds,expected", [
        (0, "00:00"),
        (59.9, "00:59"),
        (61, "01:01"),
        (3600, "01:00:00"),
        (4 * 3600 + 5 * 60 + 6, "04:05:06"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


@pytest.mark.unit
class TestRecorderScreen:

    def test_key_bindings(self):
        recorder = Mock()
        screen = RecorderScreen(recorder, console=Console(file=StringIO()))

        assert screen.handle_key_input('p') is True
        recorder.pause.assert_called_once()
        assert screen.handle_key_input('r') is True
        recorder.resume.assert_called_once()
        assert screen.handle_key_input('x') is True
        assert screen.handle_key_input('s') is False
        assert screen.finished.is_set()

    def test_invalid_key_command_is_reported(self):
        recorder = Mock()
        recorder.resume.side_effect = InvalidTransitionError("resume", RecorderState.RECORDING)
        screen = RecorderScreen(recorder, console=Console(file=StringIO()))

        assert screen.handle_key_input('r') is True
        assert "Cannot resume" in screen.last_message

    def test_render_status(self):
        screen = RecorderScreen(Mock(), console=Console(file=StringIO(), width=100))
        screen.on_recorder_event(RecorderEvent(event_id="1", event_type="paused", state=RecorderState.PAUSED))
        status = RecorderStatus(state=RecorderState.PAUSED, duration_seconds=75, file_path="/data/r.wav")

        output = StringIO()
        Console(file=output, width=100).print(screen.render(status))

        text = output.getvalue()
        assert "PAUSED" in text
        assert "01:15" in text
        assert "Paused at" in text

    def test_run_with_duration_stops_recorder(self, recorder):
        screen = RecorderScreen(recorder, topic="test.screen.run", console=Console(file=StringIO()))

        with patch('manuscript.ui.recorder_screen.KeyboardInputHandler'):
            screen.run(duration=0.3)

        assert recorder.get_state() == RecorderState.STOPPED


@pytest.mark.unit
class TestCommandLine:

    def test_parse_record(self):
        args = create_parser().parse_args(["--data-dir", "/tmp/x", "record", "--duration", "5"])
        assert args.command == "record"
        assert args.duration == 5.0
        assert args.data_dir == "/tmp/x"

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_missing_config_file(self, temp_data_dir):
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", f"{temp_data_dir}/absent.yaml", "list"])
        assert exc_info.value.code == 1

    def test_list_recordings(self, temp_data_dir, capsys):
        repository = JsonRecordingRepository(temp_data_dir)
        repository.create(CreateRecordingParams("f-1", "recording_a.wav", f"{temp_data_dir}/recording_a.wav"))

        with patch('manuscript.main.setup_logging'):
            with pytest.raises(SystemExit) as exc_info:
                main(["--data-dir", temp_data_dir, "list"])

        assert exc_info.value.code == 0
        assert "recording_a.wav" in capsys.readouterr().out
