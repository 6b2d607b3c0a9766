"""
Error taxonomy shared by the stores and services.

Stores raise StorageError subclasses. The WorkLogService turns them into
failed OperationResult objects for the presentation layer.
"""


class WorkLogError(Exception):
    """Base class for all WorkLog errors"""


class StorageError(WorkLogError):
    """Base class for persistence failures"""


class StorageUnavailable(StorageError):
    """The storage backend could not be reached or written to"""


class CorruptState(StorageError):
    """Persisted data could not be parsed back into domain objects"""


class NotFound(WorkLogError):
    """No entry exists for the requested date"""

    def __init__(self, date: str):
        super().__init__(f"No entry for {date}")
        self.date = date


class ExternalServiceFailure(WorkLogError):
    """The insight text generation call failed or timed out"""
