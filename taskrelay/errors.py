"""Error taxonomy for the request/result relay."""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay errors."""


class StoreConnectionError(RelayError):
    """The stream store could not be reached at startup."""


class TransientReadError(RelayError):
    """A blocking read failed after the connection was established."""


class InvalidChannelError(RelayError):
    """A request was submitted from a channel that cannot carry text."""


class CleanupError(RelayError):
    """Deleting a delivered request/result pair failed."""

    def __init__(self, request_id: str, result_id: str) -> None:
        super().__init__(f"Failed to clean up streams for request {request_id} and result {result_id}")
        self.request_id = request_id
        self.result_id = result_id


class AdapterError(RelayError):
    """The chat-platform adapter could not perform an operation."""
