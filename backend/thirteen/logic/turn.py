"""
Turn scheduling: game start, dealing, play and pass resolution.

resolve_play() and resolve_pass() are the only move resolution paths. Human
actions, bot decisions and disconnect grace expiry all go through them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from thirteen.logic.action_result import ActionResult
from thirteen.logic.cards import sort_cards
from thirteen.logic.combinations import can_beat, classify
from thirteen.logic.dealer import choose_starting_player, deal_hands
from thirteen.logic.enums import PRE_GAME_STATUSES, GameAction, GameErrorCode, RoomStatus
from thirteen.logic.events import EventType, GameEndedEvent
from thirteen.logic.exceptions import IllegalMoveError, InvalidCombinationError, PreconditionError
from thirteen.logic.seating import check_readiness
from thirteen.logic.state import LastAction, Participant, RoomState, TurnState
from thirteen.logic.state_utils import (
    connected_seated,
    get_participant,
    participant_at_seat,
    update_participant,
)

if TYPE_CHECKING:
    import random
    from collections.abc import Collection, Sequence

    from thirteen.logic.cards import Card

logger = structlog.get_logger()


def _reset_table(state: RoomState, status: RoomStatus) -> RoomState:
    """Clear pile, turn, winner and hands; clear human ready flags."""
    participants = tuple(
        p.model_copy(update={"hand": (), "ready": p.is_bot}) for p in state.participants
    )
    return state.model_copy(
        update={
            "status": status,
            "participants": participants,
            "pile": (),
            "current_combination": None,
            "turn": None,
            "last_action": None,
            "winner_id": None,
            "winner_cards": (),
            "countdown_remaining": 0,
        },
    )


def start_game(state: RoomState) -> ActionResult:
    """Move a ready room to Dealing."""
    if state.status not in PRE_GAME_STATUSES:
        raise PreconditionError(GameErrorCode.GAME_IN_PROGRESS, "A game is already in progress")
    check_readiness(state)
    return ActionResult(_reset_table(state, RoomStatus.DEALING), view=EventType.GAME_STARTED)


def abort_game(state: RoomState) -> ActionResult:
    """Return a running room to the lobby, discarding the game."""
    logger.info("game aborted", room_id=state.room_id)
    return ActionResult(_reset_table(state, RoomStatus.LOBBY))


def deal(state: RoomState, rng: random.Random) -> ActionResult:
    """
    Deal a fixed hand to every seated connected participant and open round 1.

    The first actor is chosen uniformly at random among the dealt players.
    """
    if state.status != RoomStatus.DEALING:
        raise IllegalMoveError("cards can only be dealt while dealing")

    players = connected_seated(state)
    if len(players) < state.settings.min_players:
        return abort_game(state)

    player_ids = [p.user_id for p in players]
    hands = deal_hands(player_ids, rng, state.settings.hand_size)
    participants = tuple(
        p.model_copy(update={"hand": hands.get(p.user_id, ())}) for p in state.participants
    )
    first = choose_starting_player(player_ids, rng)
    new_state = state.model_copy(
        update={
            "status": RoomStatus.ACTIVE,
            "participants": participants,
            "turn": TurnState(current_player_id=first),
        },
    )
    return ActionResult(new_state, view=EventType.CARDS_DEALT)


def _is_eligible(participant: Participant | None, passed_ids: Collection[str]) -> bool:
    return (
        participant is not None
        and participant.connected
        and participant.has_cards
        and participant.user_id not in passed_ids
    )


def next_eligible_player(state: RoomState, from_seat: int, passed_ids: Collection[str]) -> str | None:
    """
    Find the next actor strictly forward from ``from_seat``.

    Skips empty seats and participants who are disconnected, out of cards or
    have passed this round. Returns None when nobody qualifies.
    """
    seat_count = state.settings.seat_count
    for offset in range(1, seat_count + 1):
        participant = participant_at_seat(state, (from_seat + offset) % seat_count)
        if _is_eligible(participant, passed_ids):
            return participant.user_id  # type: ignore[union-attr]
    return None


def _require_current_actor(state: RoomState, user_id: str) -> tuple[Participant, TurnState]:
    turn = state.turn
    if state.status != RoomStatus.ACTIVE or turn is None:
        raise IllegalMoveError("no game is active")
    if turn.current_player_id != user_id:
        raise IllegalMoveError(f"not {user_id}'s turn")
    participant = get_participant(state, user_id)
    if participant is None or not participant.is_seated:
        raise IllegalMoveError(f"{user_id} is not seated")
    return participant, turn


def resolve_play(state: RoomState, user_id: str, cards: Sequence[Card]) -> ActionResult:
    """Play ``cards`` for the current actor."""
    participant, turn = _require_current_actor(state, user_id)

    played = set(cards)
    if not played or not played.issubset(participant.hand):
        raise IllegalMoveError("cards are not in hand")

    combination = classify(played)
    if combination is None:
        raise InvalidCombinationError(f"not a combination: {[str(c) for c in sort_cards(played)]}")
    if not can_beat(combination, state.current_combination):
        raise IllegalMoveError(f"{combination.type.value} does not beat the pile")

    remaining = sort_cards(card for card in participant.hand if card not in played)
    new_state = update_participant(state, user_id, hand=remaining)
    update: dict[str, object] = {
        "pile": combination.cards,
        "current_combination": combination,
        "last_action": LastAction(user_id=user_id, action=GameAction.PLAY_CARDS, cards=combination.cards),
    }

    if not remaining:
        update.update(
            status=RoomStatus.FINISHED,
            turn=None,
            winner_id=user_id,
            winner_cards=combination.cards,
        )
        new_state = new_state.model_copy(update=update)
        logger.info("game won", room_id=state.room_id, winner=user_id)
        ended = GameEndedEvent(winner_id=user_id, winner_name=participant.name, cards=combination.cards)
        return ActionResult(new_state, view=EventType.GAME_UPDATE, events=(ended,))

    new_turn = turn.model_copy(update={"last_player_id": user_id})
    next_id = next_eligible_player(new_state, participant.seat, new_turn.passed_ids)  # type: ignore[arg-type]
    if next_id is not None:
        new_turn = new_turn.model_copy(update={"current_player_id": next_id})
    update["turn"] = new_turn
    return ActionResult(new_state.model_copy(update=update), view=EventType.GAME_UPDATE)


def _round_leader(state: RoomState, turn: TurnState, passer: Participant) -> str:
    """
    Choose who leads the next round.

    The last participant who played leads, unless they can no longer act or
    they are the one passing on an empty table. The lead then moves forward
    from the passer's seat.
    """
    leader_id = turn.last_player_id
    if leader_id is not None and leader_id != passer.user_id and _is_eligible(get_participant(state, leader_id), ()):
        return leader_id
    return next_eligible_player(state, passer.seat, ()) or passer.user_id  # type: ignore[arg-type]


def resolve_pass(state: RoomState, user_id: str) -> ActionResult:
    """
    Pass for the current actor.

    When at most one participant able to act (connected, seated, holding
    cards) has not passed, the round resets and the lead returns to the last
    participant who played.
    """
    participant, turn = _require_current_actor(state, user_id)

    passed_ids = turn.passed_ids if user_id in turn.passed_ids else (*turn.passed_ids, user_id)
    still_in = [p for p in state.participants if p.is_seated and _is_eligible(p, passed_ids)]

    if len(still_in) <= 1:
        leader = _round_leader(state, turn, participant)
        new_turn = TurnState(
            current_player_id=leader,
            passed_ids=(),
            last_player_id=turn.last_player_id,
            round_number=turn.round_number + 1,
        )
        new_state = state.model_copy(
            update={
                "pile": (),
                "current_combination": None,
                "turn": new_turn,
                "last_action": LastAction(user_id=user_id, action=GameAction.PASS, round_reset=True),
            },
        )
        logger.debug("round reset", room_id=state.room_id, round_number=new_turn.round_number, leader=leader)
        return ActionResult(new_state, view=EventType.GAME_UPDATE)

    new_turn = turn.model_copy(update={"passed_ids": passed_ids})
    next_id = next_eligible_player(state, participant.seat, passed_ids)  # type: ignore[arg-type]
    if next_id is not None:
        new_turn = new_turn.model_copy(update={"current_player_id": next_id})
    new_state = state.model_copy(
        update={
            "turn": new_turn,
            "last_action": LastAction(user_id=user_id, action=GameAction.PASS),
        },
    )
    return ActionResult(new_state, view=EventType.GAME_UPDATE)
