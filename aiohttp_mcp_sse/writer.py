import logging
import re
from dataclasses import dataclass
from enum import Enum

from .errors import EventWriteError
from .sink import EventSink

__all__ = ["Event", "EventType", "EventWriter", "format_event"]

logger = logging.getLogger(__name__)

LINE_SEP_EXPR = re.compile(r"\r\n|\r|\n")


class EventType(str, Enum):  # for Py10 compatibility
    """Event types for SSE."""

    ENDPOINT = "endpoint"
    MESSAGE = "message"

    def __str__(self) -> str:  # for Py11+ compatibility
        return self.value


@dataclass(frozen=True, slots=True)
class Event:
    """A named SSE event with a text payload."""

    event_type: EventType | str
    data: str

    def encode(self) -> bytes:
        return format_event(str(self.event_type), self.data).encode("utf-8")


def format_event(name: str, data: str) -> str:
    """Render an event in the ``text/event-stream`` wire format.

    Every line of ``data`` becomes its own ``data:`` field so that embedded newlines
    survive the trip; the frame is terminated by a blank line.
    """
    if not name:
        raise ValueError("event name must not be empty")
    if LINE_SEP_EXPR.search(name):
        raise ValueError(f"event name must be a single line: {name!r}")

    lines = [f"event: {name}"]
    lines.extend(f"data: {chunk}" for chunk in LINE_SEP_EXPR.split(data))
    return "\n".join(lines) + "\n\n"


class EventWriter:
    """Frames events onto a sink.

    Not safe for concurrent use: callers must serialise access, see
    :class:`~aiohttp_mcp_sse.transport.SSETransport`.
    """

    __slots__ = ("_sink",)

    def __init__(self, sink: EventSink) -> None:
        self._sink = sink

    async def write_event(self, name: EventType | str, data: str) -> None:
        event = Event(event_type=name, data=data)
        frame = event.encode()
        try:
            await self._sink.write(frame)
            await self._sink.flush()
        except OSError as err:
            raise EventWriteError(f"failed to write {event.event_type} event: {err}") from err
        logger.debug("Sent event: %s", event)
