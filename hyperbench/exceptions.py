"""Errors raised while running a latency benchmark."""


class BenchmarkError(Exception):
    """Base class for benchmark failures."""


class SetupError(BenchmarkError):
    """Raised when an endpoint or gateway process could not be created."""


class ConnectError(BenchmarkError):
    """Raised when endpoints never reach their ready state."""


class TimedOut(BenchmarkError, TimeoutError):
    """Raised when no observation arrives within the timeout window."""

    def __init__(self, message: str = "Timed out") -> None:
        super().__init__(message)


class TransportError(BenchmarkError):
    """Raised on a non-success response or a broken event stream."""


class ObservationMismatch(BenchmarkError):
    """Raised when the observed data does not carry the sent payload."""
