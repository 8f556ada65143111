"""Recorder state machine and supporting computations."""

from .duration import compute_duration
from .publisher import RecorderEventPublisher
from .recorder import Recorder

__all__ = [
    "compute_duration",
    "RecorderEventPublisher",
    "Recorder",
]
