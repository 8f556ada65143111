"""Audio capture module."""

from .capture import CapturePipeline

__all__ = [
    'CapturePipeline'
]
