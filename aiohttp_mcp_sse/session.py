from dataclasses import dataclass, field
from uuid import UUID, uuid4

__all__ = ["Session", "new_session"]


@dataclass(frozen=True, slots=True)
class Session:
    """Correlation token tying POSTed messages to the SSE stream that answers them."""

    id: UUID = field(default_factory=uuid4)

    def __str__(self) -> str:
        # Canonical 8-4-4-4-12 form, 36 characters
        return str(self.id)


def new_session() -> Session:
    return Session()
