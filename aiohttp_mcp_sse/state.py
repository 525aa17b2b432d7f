import logging
from enum import Enum

from .errors import AlreadyStartedError, TransportClosedError

__all__ = ["StateMachine", "TransportState"]

logger = logging.getLogger(__name__)


class TransportState(str, Enum):
    CREATED = "created"
    STARTED = "started"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


class StateMachine:
    """Forward-only lifecycle: created -> started -> closed, or created -> closed.

    Transitions never await, so on a single event loop every check-and-set is atomic.
    """

    __slots__ = ("_state",)

    def __init__(self) -> None:
        self._state = TransportState.CREATED

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._state is TransportState.STARTED

    @property
    def is_closed(self) -> bool:
        return self._state is TransportState.CLOSED

    def check_startable(self) -> None:
        """Raise if ``start`` is not allowed from the current state."""
        if self._state is TransportState.STARTED:
            raise AlreadyStartedError()
        if self._state is TransportState.CLOSED:
            raise TransportClosedError("cannot start a closed transport")

    def start(self) -> None:
        self.check_startable()
        logger.debug("Transport state: %s -> %s", self._state, TransportState.STARTED)
        self._state = TransportState.STARTED

    def check_open(self) -> None:
        if self._state is TransportState.CLOSED:
            raise TransportClosedError()

    def close(self) -> bool:
        """Move to ``closed``. Return ``True`` only for the call that made the transition."""
        if self._state is TransportState.CLOSED:
            return False
        logger.debug("Transport state: %s -> %s", self._state, TransportState.CLOSED)
        self._state = TransportState.CLOSED
        return True
