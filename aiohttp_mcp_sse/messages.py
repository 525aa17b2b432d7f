from mcp.shared.message import SessionMessage
from mcp.types import JSONRPCMessage
from pydantic import ValidationError

from .errors import EmptyMessageError, MessageDecodeError

__all__ = ["MessageConverter", "OutgoingMessage"]

OutgoingMessage = JSONRPCMessage | SessionMessage


class MessageConverter:
    """Converts between JSON-RPC messages and their wire representation."""

    @staticmethod
    def to_string(message: OutgoingMessage) -> str:
        """Convert message to its wire JSON."""
        if isinstance(message, SessionMessage):
            message = message.message
        return message.model_dump_json(by_alias=True, exclude_none=True)

    @staticmethod
    def decode(data: bytes | str | None) -> JSONRPCMessage:
        """Parse a raw POST body into a JSON-RPC message.

        Raises:
            EmptyMessageError: ``data`` is ``None`` or empty
            MessageDecodeError: ``data`` is not JSON or not a JSON-RPC envelope
        """
        if not data:
            raise EmptyMessageError()
        try:
            return JSONRPCMessage.model_validate_json(data)
        except ValidationError as err:
            raise MessageDecodeError(f"invalid JSON-RPC message: {err}") from err
