"""Resolve a transient connection to a stable participant identity."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from shared.auth.game_ticket import verify_game_ticket

logger = structlog.get_logger()


@dataclass(frozen=True)
class ResolvedIdentity:
    user_id: str
    name: str
    room_id: str


class IdentityResolver:
    """Map (connection, ticket) to the stable user id carried by a signed game ticket.

    The connection id is only used for logging: the same user reconnecting on
    a new socket resolves to the same identity.
    """

    def __init__(self, game_ticket_secret: str) -> None:
        self._secret = game_ticket_secret

    def resolve_stable_id(self, connection_id: str, ticket: str, room_id: str) -> ResolvedIdentity | None:
        verified = verify_game_ticket(ticket, self._secret)
        if verified is None:
            logger.info("ticket rejected", connection_id=connection_id)
            return None
        if not verified.allows_room(room_id):
            logger.info("ticket issued for another room", connection_id=connection_id, ticket_room=verified.room_id)
            return None
        return ResolvedIdentity(user_id=verified.user_id, name=verified.username, room_id=room_id)
