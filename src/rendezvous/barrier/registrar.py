"""Participant registration.

Each process announces itself by creating one ephemeral, sequential child of
the barrier root. The service deletes the node when the session ends, which
is how crashed participants leave the barrier.
"""

from __future__ import annotations

import logging

from rendezvous.barrier.errors import RegistrationError
from rendezvous.barrier.schemas import ParticipantPayload
from rendezvous.coordination.base import CoordinationClient, CoordinationError, join_path

logger = logging.getLogger(__name__)

DEFAULT_NODE_PREFIX = "participant-"


class ParticipantRegistrar:
    """Creates the barrier root and this process's participant node."""

    def __init__(self, client: CoordinationClient, node_prefix: str = DEFAULT_NODE_PREFIX):
        self.client = client
        self.node_prefix = node_prefix

    async def register(self, root_path: str, payload: ParticipantPayload) -> str:
        """Register under ``root_path`` and return the assigned node path.

        Raises:
            RegistrationError: If the service rejects either create. The
                attempt must not be retried.
        """
        try:
            await self.client.ensure_path(root_path)
        except CoordinationError as exc:
            raise RegistrationError(root_path, str(exc)) from exc

        prefix = join_path(root_path, self.node_prefix)
        try:
            node_path = await self.client.create_node(
                prefix, payload.encode(), ephemeral=True, sequence=True
            )
        except CoordinationError as exc:
            raise RegistrationError(prefix, str(exc)) from exc

        logger.info(
            "Registered participant %s",
            node_path,
            extra={"repository": payload.repository, "participant_value": payload.value},
        )
        return node_path
