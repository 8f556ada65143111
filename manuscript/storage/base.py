"""Abstract base class for recording metadata persistence."""

from abc import ABC, abstractmethod

from ..models.recording import Recording, CreateRecordingParams


class AbstractRecordingRepository(ABC):
    """Stores the metadata record that accompanies each recorded file.

    The recorder calls ``create`` once when a session starts and
    ``mark_completed`` once when it stops. Neither call is retried.
    """

    @abstractmethod
    def create(self, params: CreateRecordingParams) -> Recording:
        """Create a record for a recording that has just started.

        Returns:
            The stored record, including its assigned id

        Raises:
            PersistenceError: If the record cannot be stored
        """
        pass

    @abstractmethod
    def mark_completed(self, record_id: int, duration_seconds: int, file_size_bytes: int) -> None:
        """Mark a recording as completed with its final duration and size.

        Raises:
            PersistenceError: If the record cannot be updated
        """
        pass
