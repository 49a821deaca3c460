"""Distributed rendezvous barrier.

N processes register as ephemeral sequential children of a shared path and
wait until N are live. While waiting, the participant with the smallest node
name aggregates the numeric values the others published.

Example:
    from rendezvous.barrier import BarrierConfig, BarrierRunner
    from rendezvous.coordination import create_coordination_client

    runner = BarrierRunner(
        create_coordination_client("zookeeper", hosts="zk:2181"),
        BarrierConfig(barrier_path="/jobs/build-42", participant_count=3),
    )
    exit_code = await runner.run()
"""

from rendezvous.barrier.context import BarrierConfig, BarrierContext
from rendezvous.barrier.errors import (
    BarrierError,
    DecodeError,
    FetchError,
    ListingError,
    RegistrationError,
)
from rendezvous.barrier.exit import ExitReason, ExitSequencer
from rendezvous.barrier.leader import LeaderAggregator, compute_stats, elect_leader
from rendezvous.barrier.monitor import BarrierMonitor, MonitorState
from rendezvous.barrier.quorum import BarrierLatch, evaluate_quorum
from rendezvous.barrier.registrar import ParticipantRegistrar
from rendezvous.barrier.runner import Barrier, BarrierRunner
from rendezvous.barrier.schemas import (
    AggregateStats,
    BarrierResult,
    ParticipantPayload,
    QuorumDecision,
    RoundReport,
)

__all__ = [
    # Lifecycle
    "Barrier",
    "BarrierRunner",
    "BarrierConfig",
    "BarrierContext",
    # Components
    "ParticipantRegistrar",
    "BarrierMonitor",
    "MonitorState",
    "LeaderAggregator",
    "elect_leader",
    "compute_stats",
    "BarrierLatch",
    "evaluate_quorum",
    "ExitSequencer",
    "ExitReason",
    # Schemas
    "ParticipantPayload",
    "AggregateStats",
    "QuorumDecision",
    "RoundReport",
    "BarrierResult",
    # Errors
    "BarrierError",
    "RegistrationError",
    "ListingError",
    "FetchError",
    "DecodeError",
]
