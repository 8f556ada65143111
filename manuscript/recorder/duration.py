"""Active recording time accounting."""

from typing import Optional

from ..models.session import RecorderState


def compute_duration(
    now: float,
    start_time: float,
    paused_total: float,
    state: RecorderState,
    pause_time: Optional[float] = None,
) -> float:
    """Return seconds of active recording between ``start_time`` and ``now``.

    Time already spent in completed pauses (``paused_total``) is excluded, and
    while paused the pause in progress since ``pause_time`` is excluded too.
    The result is clamped at zero.
    """
    elapsed = (now - start_time) - paused_total
    if state == RecorderState.PAUSED and pause_time is not None:
        elapsed -= now - pause_time
    return max(0.0, elapsed)
