"""Explicit per-attempt context shared by the barrier components."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from rendezvous.barrier.schemas import ParticipantPayload
from rendezvous.config import Settings, settings
from rendezvous.coordination.base import CoordinationClient


@dataclass
class BarrierConfig:
    """Configuration for one barrier attempt."""

    barrier_path: str = "/barrier"
    participant_count: int = 50
    participant_value: float | None = None
    repository: str | None = None
    exit_delay: float = 2.0
    node_prefix: str = "participant-"

    def __post_init__(self) -> None:
        if self.participant_count < 1:
            raise ValueError("participant_count must be at least 1")
        if self.exit_delay < 0:
            raise ValueError("exit_delay must not be negative")
        if not self.barrier_path.startswith("/"):
            raise ValueError(f"barrier_path must be absolute: {self.barrier_path!r}")

    @classmethod
    def from_settings(cls, config: Settings | None = None, **overrides: Any) -> BarrierConfig:
        """Create config from application settings.

        Keyword overrides whose value is None are ignored.
        """
        config = config or settings
        values: dict[str, Any] = {
            "barrier_path": config.barrier_path,
            "participant_count": config.participant_count,
            "participant_value": config.participant_value,
            "repository": config.repository,
            "exit_delay": config.exit_delay,
            "node_prefix": config.node_prefix,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def payload(self) -> ParticipantPayload:
        return ParticipantPayload(repository=self.repository, value=self.participant_value)


@dataclass
class BarrierContext:
    """Everything one barrier attempt shares: the session and its config.

    Created once per attempt and passed to each component; there is no
    module-level client state.
    """

    client: CoordinationClient
    config: BarrierConfig
    started_at: float = field(default_factory=time.monotonic)
    node_path: str | None = None
