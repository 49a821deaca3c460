"""Observability for rendezvous barriers.

Provides structured logging with barrier correlation context:
- JSON or console formatted output
- Barrier path and participant node attached to every record
"""

from rendezvous.observability.logging import (
    LogContext,
    barrier_path_var,
    configure_logging,
    node_var,
)

__all__ = [
    "configure_logging",
    "LogContext",
    "barrier_path_var",
    "node_var",
]
