"""Event models for recorder state notifications."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from .session import RecorderState


@dataclass
class RecorderEvent:
    """Recorder lifecycle event."""
    event_id: str
    event_type: str  # "started", "paused", "resumed", "stopped", "error"
    state: RecorderState
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)
