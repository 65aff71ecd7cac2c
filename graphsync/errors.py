"""Exceptions raised across graphsync.

Transport problems surface as ``BackendAPIError``; the editor wraps them
in the lifecycle failure matching the request that was in flight.
"""


class GraphSyncError(Exception):
    """Base class for graphsync errors."""


class BackendAPIError(GraphSyncError):
    """A backend call failed (connection error or non-2xx response)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SaveFailure(GraphSyncError):
    """Saving the graph failed."""


class RunStartFailure(GraphSyncError):
    """The backend refused or failed to start an execution."""


class StopFailure(GraphSyncError):
    """Stopping an execution failed. Never blocks the editor."""
