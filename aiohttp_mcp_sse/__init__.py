from .app import AppBuilder, build_mcp_app, setup_mcp_subapp
from .config import MAX_MESSAGE_SIZE, SSEConfig
from .errors import (
    AlreadyStartedError,
    EmptyMessageError,
    EventWriteError,
    InvalidMessageError,
    MessageDecodeError,
    MessageTooLargeError,
    MethodNotAllowedError,
    RequestError,
    StreamingNotSupportedError,
    TransportClosedError,
    TransportError,
    UnsupportedMediaTypeError,
)
from .server import SSEServerTransport
from .session import Session, new_session
from .sink import EventSink, ResponseSink
from .state import TransportState
from .transport import SSETransport

__all__ = [
    "MAX_MESSAGE_SIZE",
    "AlreadyStartedError",
    "AppBuilder",
    "EmptyMessageError",
    "EventSink",
    "EventWriteError",
    "InvalidMessageError",
    "MessageDecodeError",
    "MessageTooLargeError",
    "MethodNotAllowedError",
    "RequestError",
    "ResponseSink",
    "SSEConfig",
    "SSEServerTransport",
    "SSETransport",
    "Session",
    "StreamingNotSupportedError",
    "TransportClosedError",
    "TransportError",
    "TransportState",
    "UnsupportedMediaTypeError",
    "build_mcp_app",
    "new_session",
    "setup_mcp_subapp",
]
