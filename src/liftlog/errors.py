"""Exception hierarchy for liftlog."""


class LiftlogError(Exception):
    """Base exception for liftlog errors."""

    pass


class StoreUnavailable(LiftlogError):
    """Raised when the local store cannot be opened or migrated.

    Callers are expected to degrade to remote-only reads and writes.
    """

    pass


class StoreError(LiftlogError):
    """Raised when a single local store operation fails."""

    pass


class UnknownCollection(StoreError, ValueError):
    """Raised for a collection name the local store does not define."""

    def __init__(self, name: str):
        super().__init__(f"Unknown collection: {name}")
        self.name = name


class RemoteError(LiftlogError):
    """Base exception for remote store failures."""

    pass


class RemoteWriteFailed(RemoteError):
    """Raised when a remote write is rejected or cannot be delivered."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteReadFailed(RemoteError):
    """Raised when a remote read fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedQueueItem(LiftlogError):
    """Raised when a stored sync queue row does not have the expected shape."""

    def __init__(self, message: str, raw: object = None):
        super().__init__(message)
        self.raw = raw
