"""Identity tickets shared by the ticket issuer and the game server."""

from shared.auth.game_ticket import (
    GameTicket,
    create_signed_ticket,
    sign_game_ticket,
    verify_game_ticket,
)

__all__ = [
    "GameTicket",
    "create_signed_ticket",
    "sign_game_ticket",
    "verify_game_ticket",
]
