"""Models for measurement results."""

from dataclasses import dataclass


@dataclass(frozen=True, kw_only=True)
class Measurement:
    """One send-to-observe interval on a single transport.

    Timestamps come from ``time.perf_counter`` and are only meaningful
    relative to each other.
    """

    transport: str
    start: float
    end: float

    @property
    def elapsed(self) -> float:
        """Seconds between the send and the first observation."""
        return self.end - self.start

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000
