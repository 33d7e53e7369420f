"""HMAC-SHA256 signed game tickets binding a user to a room.

Whoever hands out room links signs a ticket with a shared secret; the game
server verifies it locally before accepting a join or reconnect, so a
connection is always resolved to the stable user id inside the ticket and
never to the transient socket.

Token format: base64url(json_payload_bytes).base64url(hmac_sha256_signature)
"""

import base64
import binascii
import hashlib
import hmac
import json
import math
import time
from dataclasses import asdict, dataclass

import structlog

logger = structlog.get_logger()

_TOKEN_PARTS = 2

TICKET_TTL_SECONDS = 86400
CLOCK_SKEW_SECONDS = 60


@dataclass(frozen=True)
class GameTicket:
    """Payload carried inside a signed game ticket."""

    user_id: str
    username: str
    room_id: str
    issued_at: float
    expires_at: float

    def allows_room(self, room_id: str) -> bool:
        return hmac.compare_digest(self.room_id.encode(), room_id.encode())


def create_signed_ticket(
    user_id: str,
    username: str,
    room_id: str,
    game_ticket_secret: str,
    ttl_seconds: float = TICKET_TTL_SECONDS,
) -> str:
    """Issue a ticket valid from now for ``ttl_seconds`` and return the signed token."""
    now = time.time()
    ticket = GameTicket(
        user_id=user_id,
        username=username,
        room_id=room_id,
        issued_at=now,
        expires_at=now + ttl_seconds,
    )
    return sign_game_ticket(ticket, game_ticket_secret)


def _signature(payload: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode(), payload, hashlib.sha256).digest()


def sign_game_ticket(ticket: GameTicket, secret: str) -> str:
    payload = json.dumps(asdict(ticket), sort_keys=True).encode()
    return ".".join(base64.urlsafe_b64encode(part).decode() for part in (payload, _signature(payload, secret)))


def verify_game_ticket(token: str, secret: str) -> GameTicket | None:
    """Return the ticket if the signature and timestamps check out, None otherwise."""
    parts = token.split(".")
    if len(parts) != _TOKEN_PARTS:
        return None

    try:
        payload, provided_sig = (base64.urlsafe_b64decode(part) for part in parts)
    except (ValueError, binascii.Error):
        return None

    if not hmac.compare_digest(provided_sig, _signature(payload, secret)):
        logger.debug("game ticket signature mismatch")
        return None

    try:
        ticket = GameTicket(**json.loads(payload))
    except (json.JSONDecodeError, TypeError, KeyError):
        logger.debug("game ticket malformed payload")
        return None

    if not isinstance(ticket.user_id, str) or not ticket.user_id:
        logger.debug("game ticket without user id")
        return None

    if not _timestamps_valid(ticket, time.time()):
        return None
    return ticket


def _is_finite_number(value: object) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def _timestamps_valid(ticket: GameTicket, now: float) -> bool:
    """Reject non-finite, future-dated, inverted, over-long or expired tickets."""
    if not _is_finite_number(ticket.issued_at) or not _is_finite_number(ticket.expires_at):
        reason = "non-finite timestamp"
    elif ticket.issued_at > now + CLOCK_SKEW_SECONDS:
        reason = "issued in the future"
    elif ticket.expires_at <= ticket.issued_at:
        reason = "expires before issue"
    elif ticket.expires_at - ticket.issued_at > TICKET_TTL_SECONDS + CLOCK_SKEW_SECONDS:
        reason = "lifetime too long"
    elif now > ticket.expires_at:
        reason = "expired"
    else:
        return True
    logger.debug("game ticket rejected", reason=reason)
    return False
