"""Exceptions raised by the recorder core."""


class RecorderError(Exception):
    """Base class for all recorder failures."""


class InvalidTransitionError(RecorderError):
    """A command was issued from a state that does not allow it."""

    def __init__(self, command: str, state):
        self.command = command
        self.state = state
        super().__init__(f"Cannot {command} while recorder is {state}")


class DeviceError(RecorderError):
    """The audio backend could not be opened or failed while capturing."""


class RecorderIOError(RecorderError):
    """Creating, writing or finalizing the output file failed."""


class PersistenceError(RecorderError):
    """The recording repository rejected a create or update."""


class RecordingNotFoundError(PersistenceError):
    """No persisted recording matches the requested id."""
