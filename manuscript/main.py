"""Main application entry point for Manuscript."""

import sys
import argparse
import logging
from pathlib import Path

from rich.console import Console

from manuscript import __version__
from manuscript.errors import RecorderError
from manuscript.recorder import Recorder, RecorderEventPublisher
from manuscript.storage import JsonRecordingRepository
from manuscript.ui.recorder_screen import RecorderScreen, render_recordings_table

from .config import ManuscriptConfig

logger = logging.getLogger(__name__)


def setup_logging(config: ManuscriptConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get_log_file_path()
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info(f"Manuscript {__version__} starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_recorder(config: ManuscriptConfig) -> Recorder:
    """Wire a recorder to the JSON repository and the pub/sub event topic."""
    data_dir = config.get_data_directory()
    publisher = RecorderEventPublisher(config.get('events.topic', 'recorder.state'))
    return Recorder(
        data_dir=data_dir,
        repository=JsonRecordingRepository(data_dir),
        audio_format=config.get_audio_format(),
        chunk_size=config.get('audio.chunk_size', 1024),
        device_index=config.get('audio.device_index'),
        device_open_timeout=config.get('audio.device_open_timeout', 5.0),
        stop_timeout=config.get('recorder.stop_timeout'),
        on_event=publisher.publish_recorder_event,
    )


def run_record(config: ManuscriptConfig, args: argparse.Namespace) -> int:
    recorder = build_recorder(config)
    fmt = recorder.format
    logger.info(f"Audio settings: {fmt.sample_rate}Hz, {fmt.channels} channels, {fmt.bit_depth}-bit")

    screen = RecorderScreen(recorder, topic=config.get('events.topic', 'recorder.state'))
    screen.run(duration=args.duration)
    return 0


def run_list(config: ManuscriptConfig, args: argparse.Namespace) -> int:
    repository = JsonRecordingRepository(config.get_data_directory())
    console = Console()
    console.print(render_recordings_table(repository.list()))

    stats = repository.get_storage_stats()
    console.print(f"{stats['recording_count']} recordings, {stats['total_size_mb']} MB "
                  f"in {stats['data_directory']}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manuscript",
        description="Manuscript - record long sessions to WAV",
        epilog="While recording: p=Pause, r=Resume, s=Stop, Ctrl+C=Stop"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        help="Directory for recordings and metadata (overrides config)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Manuscript v{__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    record_parser = subparsers.add_parser("record", help="Start a new recording")
    record_parser.add_argument(
        "--duration",
        type=float,
        help="Stop automatically after this many seconds"
    )
    record_parser.set_defaults(handler=run_record)

    list_parser = subparsers.add_parser("list", help="List recordings")
    list_parser.set_defaults(handler=run_list)

    return parser


def main(argv=None) -> None:
    """Main entry point for Manuscript."""
    parser = create_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "handler", None):
        parser.print_help()
        sys.exit(2)

    try:
        config = ManuscriptConfig(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.data_dir:
        config.set('storage.data_directory', args.data_dir)
    setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

    try:
        sys.exit(args.handler(config, args))
    except RecorderError as e:
        logger.error(f"Application error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
