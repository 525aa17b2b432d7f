from dataclasses import dataclass

__all__ = ["DEFAULT_PING_INTERVAL", "MAX_MESSAGE_SIZE", "SSEConfig"]

# Maximum size for incoming POST bodies
MAX_MESSAGE_SIZE = 4 * 1024 * 1024  # 4MB

DEFAULT_PING_INTERVAL = 15.0


@dataclass(frozen=True, slots=True, kw_only=True)
class SSEConfig:
    """Tuning knobs for the SSE application.

    Parameters:
        max_message_size: Largest accepted POST body in bytes
        ping_interval: Seconds between keep-alive comments on an idle stream
        send_timeout: Seconds a single event write may take before the stream is closed,
            ``None`` waits forever
    """

    max_message_size: int = MAX_MESSAGE_SIZE
    ping_interval: float = DEFAULT_PING_INTERVAL
    send_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_message_size <= 0:
            raise ValueError(f"max_message_size must be positive, got {self.max_message_size}")
        if self.ping_interval <= 0:
            raise ValueError(f"ping_interval must be positive, got {self.ping_interval}")
        if self.send_timeout is not None and self.send_timeout <= 0:
            raise ValueError(f"send_timeout must be positive, got {self.send_timeout}")
