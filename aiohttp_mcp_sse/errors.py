from http import HTTPStatus

__all__ = [
    "AlreadyStartedError",
    "EmptyMessageError",
    "EventWriteError",
    "InvalidMessageError",
    "MessageDecodeError",
    "MessageTooLargeError",
    "MethodNotAllowedError",
    "RequestError",
    "StreamingNotSupportedError",
    "TransportClosedError",
    "TransportError",
    "UnsupportedMediaTypeError",
]


class TransportError(Exception):
    """Base class for all SSE transport errors."""


class StreamingNotSupportedError(TransportError):
    """The supplied sink cannot be written to and flushed incrementally."""

    def __init__(self, message: str = "streaming not supported") -> None:
        super().__init__(message)


class AlreadyStartedError(TransportError):
    def __init__(self, message: str = "SSE transport already started") -> None:
        super().__init__(message)


class TransportClosedError(TransportError):
    def __init__(self, message: str = "transport closed") -> None:
        super().__init__(message)


class EventWriteError(TransportError):
    """Writing or flushing an event to the sink failed."""


class InvalidMessageError(TransportError):
    """An inbound payload could not be turned into a JSON-RPC message."""


class EmptyMessageError(InvalidMessageError):
    def __init__(self, message: str = "empty message") -> None:
        super().__init__(message)


class MessageDecodeError(InvalidMessageError):
    pass


class RequestError(TransportError):
    """An inbound HTTP request was rejected before its body reached the transport."""

    status: HTTPStatus = HTTPStatus.BAD_REQUEST


class MethodNotAllowedError(RequestError):
    status = HTTPStatus.METHOD_NOT_ALLOWED


class UnsupportedMediaTypeError(RequestError):
    status = HTTPStatus.UNSUPPORTED_MEDIA_TYPE


class MessageTooLargeError(RequestError):
    status = HTTPStatus.REQUEST_ENTITY_TOO_LARGE
