"""JSON file-backed recording metadata repository."""

import os
import json
import logging
import threading
from dataclasses import asdict, fields
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List

from .base import AbstractRecordingRepository
from ..errors import PersistenceError, RecordingNotFoundError
from ..models.recording import (
    Recording,
    CreateRecordingParams,
    UpdateRecordingParams,
    STATUS_RECORDING,
    STATUS_COMPLETED,
)


logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("created_at", "completed_at")


class JsonRecordingRepository(AbstractRecordingRepository):
    """Stores one JSON document per recording under ``<data_dir>/recordings``,
    plus an ``_next_id`` counter file."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize repository with data directory.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.records_dir = self.data_dir / "recordings"
        self.counter_path = self.records_dir / "_next_id"
        self.lock = threading.Lock()

        self.records_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonRecordingRepository initialized with data_dir: {self.data_dir}")

    def _record_path(self, record_id: int) -> Path:
        return self.records_dir / f"{record_id}.json"

    def _next_id(self) -> int:
        """Claim the next record id from the persisted counter.

        Ids are never reused, even after the newest record is deleted. Caller
        holds ``self.lock``.
        """
        ids = [int(path.stem) for path in self.records_dir.glob("*.json") if path.stem.isdigit()]
        next_id = max(ids, default=0) + 1

        if self.counter_path.exists():
            try:
                next_id = max(next_id, int(self.counter_path.read_text(encoding='utf-8').strip()))
            except (OSError, ValueError) as e:
                raise PersistenceError(f"Failed to read id counter {self.counter_path}: {e}") from e

        tmp_path = self.counter_path.with_suffix(".tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                f.write(str(next_id + 1))
            os.replace(tmp_path, self.counter_path)
        except OSError as e:
            raise PersistenceError(f"Failed to update id counter {self.counter_path}: {e}") from e
        return next_id

    def _write(self, recording: Recording) -> None:
        data = asdict(recording)
        for key in _DATETIME_FIELDS:
            if data[key] is not None:
                data[key] = data[key].isoformat()

        path = self._record_path(recording.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Failed to save recording {recording.id}: {e}") from e

    def _read(self, path: Path) -> Recording:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to load recording from {path}: {e}") from e

        for key in _DATETIME_FIELDS:
            if data.get(key):
                data[key] = datetime.fromisoformat(data[key])

        known = {f.name for f in fields(Recording)}
        return Recording(**{k: v for k, v in data.items() if k in known})

    def create(self, params: CreateRecordingParams) -> Recording:
        """Create a new record in the ``recording`` status."""
        with self.lock:
            recording = Recording(
                id=self._next_id(),
                file_id=params.file_id,
                filename=params.filename,
                file_path=params.file_path,
                created_at=datetime.now(),
                status=STATUS_RECORDING,
            )
            self._write(recording)

        logger.info(f"Created recording {recording.id} for {recording.filename}")
        return recording

    def get_by_id(self, record_id: int) -> Recording:
        path = self._record_path(record_id)
        if not path.exists():
            raise RecordingNotFoundError(f"Recording not found: {record_id}")
        return self._read(path)

    def get_by_file_id(self, file_id: str) -> Recording:
        for recording in self.list():
            if recording.file_id == file_id:
                return recording
        raise RecordingNotFoundError(f"Recording not found for file id: {file_id}")

    def list(self) -> List[Recording]:
        """List all recordings, newest first."""
        recordings = []
        for path in self.records_dir.glob("*.json"):
            try:
                recordings.append(self._read(path))
            except PersistenceError as e:
                logger.error(f"Skipping unreadable recording: {e}")

        recordings.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        return recordings

    def update(self, record_id: int, params: UpdateRecordingParams) -> Recording:
        """Apply the non-None fields of ``params`` to a record."""
        changes = {k: v for k, v in asdict(params).items() if v is not None}
        if not changes:
            raise ValueError("No fields to update")

        with self.lock:
            recording = self.get_by_id(record_id)
            for key, value in changes.items():
                setattr(recording, key, value)
            self._write(recording)

        logger.debug(f"Updated recording {record_id}: {sorted(changes)}")
        return recording

    def delete(self, record_id: int) -> None:
        """Delete a record. The audio file itself is left in place."""
        with self.lock:
            path = self._record_path(record_id)
            if not path.exists():
                raise RecordingNotFoundError(f"Recording not found: {record_id}")
            try:
                path.unlink()
            except OSError as e:
                raise PersistenceError(f"Failed to delete recording {record_id}: {e}") from e
        logger.info(f"Deleted recording {record_id}")

    def mark_completed(self, record_id: int, duration_seconds: int, file_size_bytes: int) -> None:
        self.update(record_id, UpdateRecordingParams(
            duration_seconds=duration_seconds,
            file_size_bytes=file_size_bytes,
            status=STATUS_COMPLETED,
            completed_at=datetime.now(),
        ))
        logger.info(f"Recording {record_id} completed: {duration_seconds}s, {file_size_bytes} bytes")

    def get_storage_stats(self) -> Dict[str, Any]:
        """Get storage usage statistics for recorded audio files.

        Returns:
            Dictionary with storage statistics
        """
        total_size = 0
        audio_files = 0
        by_status: Dict[str, int] = {}

        for recording in self.list():
            by_status[recording.status] = by_status.get(recording.status, 0) + 1
            path = Path(recording.file_path)
            if path.is_file():
                audio_files += 1
                total_size += path.stat().st_size

        return {
            "recording_count": sum(by_status.values()),
            "by_status": by_status,
            "audio_files": audio_files,
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
            "data_directory": str(self.data_dir),
        }
