import pytest

from aiohttp_mcp_sse import EventWriteError
from aiohttp_mcp_sse.writer import Event, EventType, EventWriter, format_event

from .utils import RecordingSink

# Set the pytest marker for async tests/fixtures
pytestmark = pytest.mark.anyio


def test_format_single_line() -> None:
    assert format_event("endpoint", "/messages?session=abc") == "event: endpoint\ndata: /messages?session=abc\n\n"


@pytest.mark.parametrize("separator", ["\n", "\r\n", "\r"])
def test_format_splits_multiline_payload(separator: str) -> None:
    payload = separator.join(["first", "second", "third"])
    assert format_event("message", payload) == "event: message\ndata: first\ndata: second\ndata: third\n\n"


def test_format_empty_payload() -> None:
    assert format_event("message", "") == "event: message\ndata: \n\n"


@pytest.mark.parametrize("name", ["", "bad\nname"])
def test_format_rejects_invalid_name(name: str) -> None:
    with pytest.raises(ValueError):
        format_event(name, "payload")


def test_event_type_str() -> None:
    assert str(EventType.ENDPOINT) == "endpoint"
    assert Event(EventType.MESSAGE, "{}").encode() == b"event: message\ndata: {}\n\n"


async def test_write_event_flushes_once(sink: RecordingSink) -> None:
    writer = EventWriter(sink)

    await writer.write_event(EventType.MESSAGE, '{"jsonrpc":"2.0"}')
    assert sink.flush_count == 1
    assert sink.text == 'event: message\ndata: {"jsonrpc":"2.0"}\n\n'

    await writer.write_event("custom", "a\nb")
    assert sink.flush_count == 2
    assert sink.text.endswith("event: custom\ndata: a\ndata: b\n\n")


async def test_write_event_wraps_connection_errors() -> None:
    sink = RecordingSink(fail_with=ConnectionResetError("Cannot write to closing transport"))
    writer = EventWriter(sink)

    with pytest.raises(EventWriteError, match="closing transport") as exc_info:
        await writer.write_event(EventType.MESSAGE, "{}")
    assert isinstance(exc_info.value.__cause__, ConnectionResetError)
    assert sink.flush_count == 0
