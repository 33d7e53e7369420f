"""Tests for signed game tickets."""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import asdict

import pytest

from shared.auth.game_ticket import (
    CLOCK_SKEW_SECONDS,
    TICKET_TTL_SECONDS,
    GameTicket,
    create_signed_ticket,
    sign_game_ticket,
    verify_game_ticket,
)

SECRET = "ticket-secret"


def _ticket(**overrides) -> GameTicket:
    now = time.time()
    fields = {
        "user_id": "user-1",
        "username": "alice",
        "room_id": "table-7",
        "issued_at": now,
        "expires_at": now + 600,
    }
    fields.update(overrides)
    return GameTicket(**fields)


def _sign_payload(payload: object) -> str:
    """Sign any JSON value, skipping GameTicket construction."""
    raw = json.dumps(payload, sort_keys=True).encode()
    signature = hmac.new(SECRET.encode(), raw, hashlib.sha256).digest()
    return f"{base64.urlsafe_b64encode(raw).decode()}.{base64.urlsafe_b64encode(signature).decode()}"


class TestCreateSignedTicket:
    def test_issued_ticket_verifies(self):
        token = create_signed_ticket("user-1", "alice", "table-7", SECRET)
        ticket = verify_game_ticket(token, SECRET)

        assert ticket is not None
        assert (ticket.user_id, ticket.username, ticket.room_id) == ("user-1", "alice", "table-7")
        assert ticket.expires_at - ticket.issued_at == pytest.approx(TICKET_TTL_SECONDS)

    def test_custom_ttl(self):
        token = create_signed_ticket("user-1", "alice", "table-7", SECRET, ttl_seconds=30)
        ticket = verify_game_ticket(token, SECRET)
        assert ticket is not None
        assert ticket.expires_at - ticket.issued_at == pytest.approx(30)

    def test_ticket_bound_to_its_room(self):
        ticket = verify_game_ticket(create_signed_ticket("user-1", "alice", "table-7", SECRET), SECRET)
        assert ticket is not None
        assert ticket.allows_room("table-7")
        assert not ticket.allows_room("table-8")


class TestSignatureChecks:
    def test_wrong_secret(self):
        assert verify_game_ticket(sign_game_ticket(_ticket(), SECRET), "other-secret") is None

    def test_edited_payload_keeps_old_signature(self):
        _, signature = sign_game_ticket(_ticket(), SECRET).split(".")
        forged = json.dumps(asdict(_ticket(user_id="someone-else")), sort_keys=True).encode()
        token = f"{base64.urlsafe_b64encode(forged).decode()}.{signature}"
        assert verify_game_ticket(token, SECRET) is None

    @pytest.mark.parametrize("token", ["", "no-separator", "a.b.c", "!!!.AAAA"])
    def test_malformed_token(self, token):
        assert verify_game_ticket(token, SECRET) is None


class TestPayloadChecks:
    def test_missing_fields(self):
        assert verify_game_ticket(_sign_payload({"user_id": "user-1"}), SECRET) is None

    def test_payload_not_an_object(self):
        assert verify_game_ticket(_sign_payload(["user-1"]), SECRET) is None

    @pytest.mark.parametrize("user_id", ["", 42])
    def test_user_id_required(self, user_id):
        assert verify_game_ticket(sign_game_ticket(_ticket(user_id=user_id), SECRET), SECRET) is None


class TestTimestampChecks:
    def test_expired(self):
        issued = time.time() - 1000
        token = sign_game_ticket(_ticket(issued_at=issued, expires_at=issued + 10), SECRET)
        assert verify_game_ticket(token, SECRET) is None

    def test_small_clock_skew_tolerated(self):
        issued = time.time() + CLOCK_SKEW_SECONDS - 5
        token = sign_game_ticket(_ticket(issued_at=issued, expires_at=issued + 600), SECRET)
        assert verify_game_ticket(token, SECRET) is not None

    def test_issued_in_the_future(self):
        issued = time.time() + CLOCK_SKEW_SECONDS + 60
        token = sign_game_ticket(_ticket(issued_at=issued, expires_at=issued + 600), SECRET)
        assert verify_game_ticket(token, SECRET) is None

    def test_lifetime_too_long(self):
        now = time.time()
        token = sign_game_ticket(
            _ticket(issued_at=now, expires_at=now + TICKET_TTL_SECONDS + CLOCK_SKEW_SECONDS + 1),
            SECRET,
        )
        assert verify_game_ticket(token, SECRET) is None

    @pytest.mark.parametrize(
        ("issued_at", "expires_at"),
        [
            ("soon", 1.0),
            (True, 1.0),
            (float("inf"), 1.0),
            (0.0, float("nan")),
            (100.0, 100.0),
            (100.0, 50.0),
        ],
    )
    def test_invalid_timestamps(self, issued_at, expires_at):
        payload = {
            "user_id": "user-1",
            "username": "alice",
            "room_id": "table-7",
            "issued_at": issued_at,
            "expires_at": expires_at,
        }
        assert verify_game_ticket(_sign_payload(payload), SECRET) is None
