"""Server-sent events as delivered on gateway extension streams."""

from dataclasses import dataclass

EVENT_STREAM = "text/event-stream"


@dataclass(frozen=True, kw_only=True)
class ServerSentEvent:
    """One dispatched event from a ``text/event-stream`` body."""

    event: str = "message"
    data: str = ""
    id: str | None = None


def encode_event(event: ServerSentEvent) -> bytes:
    """Render ``event`` in ``text/event-stream`` framing."""
    lines = []
    if event.event != "message":
        lines.append(f"event: {event.event}")
    if event.id is not None:
        lines.append(f"id: {event.id}")
    lines.extend(f"data: {line}" for line in event.data.split("\n"))
    return ("\n".join(lines) + "\n\n").encode("utf-8")
