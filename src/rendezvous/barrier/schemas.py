"""Payload and report schemas for barrier participants.

Wire format of a participant node's data (UTF-8 JSON, immutable after
registration):

    {"repository": "org/repo", "participantValue": 12.5}

``repository`` is omitted when no origin identifier is known and
``participantValue`` is null when the participant only contributes presence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rendezvous.barrier.errors import DecodeError


class ParticipantPayload(BaseModel):
    """Metadata a participant publishes in its node."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    repository: str | None = None
    value: float | None = Field(default=None, alias="participantValue")

    def encode(self) -> bytes:
        """Serialize to the node wire format."""
        data: dict[str, object] = {}
        if self.repository is not None:
            data["repository"] = self.repository
        data["participantValue"] = self.value
        return orjson.dumps(data)

    @classmethod
    def decode(cls, raw: bytes) -> ParticipantPayload:
        """Parse node data, raising DecodeError on anything malformed."""
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise DecodeError(f"Payload is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise DecodeError(f"Payload must be a JSON object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(f"Invalid payload: {exc}") from exc


@dataclass(frozen=True)
class AggregateStats:
    """Statistics over the truthy participant values the leader knows."""

    count: int = 0
    maximum: float | None = None
    minimum: float | None = None
    mean: float | None = None


class QuorumDecision(str, Enum):
    """Outcome of one quorum evaluation."""

    CONTINUE = "continue"
    PASSED = "passed"


@dataclass
class RoundReport:
    """What one evaluation round observed and decided."""

    round: int
    children: int
    required: int
    added: list[str]
    leader: str | None
    is_leader: bool
    decision: QuorumDecision
    stats: AggregateStats | None = None
    leader_metadata: ParticipantPayload | None = None
    fetch_seconds: float | None = None


@dataclass
class BarrierResult:
    """Returned once the barrier has passed."""

    node_path: str
    node_name: str
    participants: int
    elapsed_seconds: float
    is_leader: bool
    stats: AggregateStats | None = None
    rounds: list[RoundReport] = field(default_factory=list)
