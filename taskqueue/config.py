from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .exceptions import ConfigError


@dataclass(frozen=True)
class QueueOptions:
    """Construction-time settings for a TaskQueue."""

    concurrency: int | None = None  # None = unbounded
    timeout_ms: int = 0  # 0 = no timeout
    throw_on_timeout: bool = False  # reserved, not used by dispatch
    auto_start: bool = True
    cancel_on_timeout: bool = False
    name: str = "default"

    def __post_init__(self) -> None:
        if self.concurrency is not None:
            if isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int):
                raise ConfigError(
                    f"concurrency must be a positive int or None, got {self.concurrency!r}"
                )
            if self.concurrency < 1:
                raise ConfigError(f"concurrency must be >= 1, got {self.concurrency}")

        if isinstance(self.timeout_ms, bool) or not isinstance(self.timeout_ms, int):
            raise ConfigError(f"timeout_ms must be a whole number of ms, got {self.timeout_ms!r}")
        if self.timeout_ms < 0:
            raise ConfigError(f"timeout_ms must be >= 0, got {self.timeout_ms}")

    @property
    def timeout_seconds(self) -> float | None:
        """Timeout in seconds, or None when disabled."""
        if not self.timeout_ms:
            return None
        return self.timeout_ms / 1000.0

    def allows(self, running: int) -> bool:
        """Check whether another task may start with `running` in flight."""
        return self.concurrency is None or running < self.concurrency

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict."""
        return asdict(self)
