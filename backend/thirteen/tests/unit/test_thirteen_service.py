"""Tests for ThirteenGameService: event routing, versions and timer-driven transitions."""

import pytest

from thirteen.logic.bot import BotDecision
from thirteen.logic.cards import parse_cards
from thirteen.logic.enums import GameAction, GameErrorCode, RoomStatus, TimeoutType
from thirteen.logic.events import BroadcastTarget, ErrorEvent, EventType, ParticipantTarget
from thirteen.logic.settings import GameSettings
from thirteen.logic.state_utils import get_participant
from thirteen.logic.thirteen_service import ThirteenGameService
from thirteen.tests.conftest import create_participant, create_room_state

ROOM = "room1"


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def service(clock):
    return ThirteenGameService(GameSettings(countdown_seconds=2), seed="service-seed", clock=clock)


def seated_pair(service):
    """Join a and b, seat them and make both ready (room enters countdown)."""
    service.load_room(ROOM)
    service.join(ROOM, "a", "Alice")
    service.join(ROOM, "b", "Bob")
    service.handle_action(ROOM, "a", GameAction.TAKE_SEAT, {"seat": 0})
    service.handle_action(ROOM, "b", GameAction.TAKE_SEAT, {"seat": 1})
    service.handle_action(ROOM, "a", GameAction.TOGGLE_READY, {})
    return service.handle_action(ROOM, "b", GameAction.TOGGLE_READY, {})


def active_pair(service):
    seated_pair(service)
    service.handle_timeout(ROOM, TimeoutType.COUNTDOWN, "")
    service.handle_timeout(ROOM, TimeoutType.COUNTDOWN, "")
    return service.handle_timeout(ROOM, TimeoutType.DEAL, "")


def install(service, state):
    service.load_room(state.room_id)
    service._rooms[state.room_id] = state


class TestLoadRoom:
    def test_new_room_starts_in_lobby(self, service, clock):
        state = service.load_room(ROOM)
        assert state.status == RoomStatus.LOBBY
        assert state.created_at == clock.now
        assert service.get_room_state(ROOM) is state

    def test_existing_room_is_returned(self, service):
        first = service.load_room(ROOM)
        service.join(ROOM, "a", "Alice")
        assert service.load_room(ROOM) is not first
        assert get_participant(service.load_room(ROOM), "a") is not None

    def test_snapshot_restores_humans_disconnected(self, service, clock):
        snapshot = create_room_state(
            [
                create_participant("a", 0, hand=["3♠"]),
                create_participant("bot-1", 1, hand=["4♠"], is_bot=True, ready=True),
            ],
            status=RoomStatus.ACTIVE,
            current_player_id="a",
        )
        state = service.load_room(ROOM, snapshot)

        human = get_participant(state, "a")
        assert human.connected is False
        assert human.disconnected_at == clock.now
        assert [str(c) for c in human.hand] == ["3♠"]
        assert get_participant(state, "bot-1").connected is True

    def test_cleanup_forgets_room(self, service):
        service.load_room(ROOM)
        service.cleanup_room(ROOM)
        assert service.get_room_state(ROOM) is None


class TestEventRouting:
    def test_join_sends_a_view_to_every_connected_human(self, service):
        service.load_room(ROOM)
        service.join(ROOM, "a", "Alice")
        events = service.join(ROOM, "b", "Bob")

        assert [e.event for e in events] == [EventType.ROOM_STATE, EventType.ROOM_STATE]
        assert {e.target for e in events} == {ParticipantTarget("a"), ParticipantTarget("b")}
        for event in events:
            assert event.data.room.viewer_id == event.target.user_id

    def test_bots_receive_no_views(self, service):
        service.load_room(ROOM)
        service.join(ROOM, "a", "Alice")
        service.handle_action(ROOM, "a", GameAction.TAKE_SEAT, {"seat": 0})
        events = service.handle_action(ROOM, "a", GameAction.ADD_BOT, {})
        assert [e.target for e in events] == [ParticipantTarget("a")]

    def test_countdown_event_is_broadcast(self, service):
        events = seated_pair(service)
        countdown = [e for e in events if e.event == EventType.COUNTDOWN]
        assert len(countdown) == 1
        assert countdown[0].target == BroadcastTarget()
        assert countdown[0].data.seconds == 2

    def test_precondition_failure_goes_to_requester_only(self, service):
        service.load_room(ROOM)
        service.join(ROOM, "a", "Alice")
        service.join(ROOM, "b", "Bob")
        service.handle_action(ROOM, "a", GameAction.TAKE_SEAT, {"seat": 0})
        version = service.get_room_state(ROOM).version

        events = service.handle_action(ROOM, "b", GameAction.TAKE_SEAT, {"seat": 0})

        assert len(events) == 1
        assert isinstance(events[0].data, ErrorEvent)
        assert events[0].data.code == GameErrorCode.SEAT_OCCUPIED
        assert events[0].target == ParticipantTarget("b")
        assert service.get_room_state(ROOM).version == version

    def test_unknown_participant_gets_an_error(self, service):
        service.load_room(ROOM)
        events = service.handle_action(ROOM, "ghost", GameAction.STAND, {})
        assert events[0].data.code == GameErrorCode.UNKNOWN_PARTICIPANT

    def test_unknown_room_is_a_no_op(self, service):
        assert service.join("nowhere", "a", "Alice") == []
        assert service.handle_timeout("nowhere", TimeoutType.DEAL, "") == []


class TestVersions:
    def test_each_transition_bumps_version(self, service):
        service.load_room(ROOM)
        service.join(ROOM, "a", "Alice")
        service.handle_action(ROOM, "a", GameAction.TAKE_SEAT, {"seat": 0})
        assert service.get_room_state(ROOM).version == 2

    def test_no_op_keeps_version(self, service):
        service.load_room(ROOM)
        service.join(ROOM, "a", "Alice")
        service.handle_action(ROOM, "a", GameAction.TAKE_SEAT, {"seat": 0})
        assert service.handle_action(ROOM, "a", GameAction.TAKE_SEAT, {"seat": 0}) == []
        assert service.get_room_state(ROOM).version == 2


class TestGameFlow:
    def test_countdown_ticks_then_starts(self, service):
        seated_pair(service)
        tick = service.handle_timeout(ROOM, TimeoutType.COUNTDOWN, "")
        assert [e.event for e in tick] == [EventType.COUNTDOWN]
        assert tick[0].data.seconds == 1

        started = service.handle_timeout(ROOM, TimeoutType.COUNTDOWN, "")
        assert {e.event for e in started} == {EventType.GAME_STARTED}
        assert service.get_room_state(ROOM).status == RoomStatus.DEALING

    def test_countdown_expiring_without_readiness_returns_to_lobby(self, service):
        state = create_room_state(
            [create_participant("a", 0, ready=True), create_participant("b", 1)],
            status=RoomStatus.COUNTDOWN,
            countdown_remaining=1,
        )
        install(service, state)
        events = service.handle_timeout(ROOM, TimeoutType.COUNTDOWN, "")

        assert service.get_room_state(ROOM).status == RoomStatus.LOBBY
        assert all(not isinstance(e.data, ErrorEvent) for e in events)

    def test_deal_views_show_only_own_hand(self, service):
        events = active_pair(service)
        state = service.get_room_state(ROOM)

        assert state.status == RoomStatus.ACTIVE
        dealt = [e for e in events if e.event == EventType.CARDS_DEALT]
        assert len(dealt) == 2
        for event in dealt:
            view = event.data.room
            own = get_participant(state, view.viewer_id)
            assert view.hand == own.hand
            assert all(p.hand_count == 13 for p in view.participants)

    def test_manual_deal_action(self, service):
        seated_pair(service)
        service.handle_action(ROOM, "a", GameAction.START_GAME, {})
        service.handle_action(ROOM, "a", GameAction.DEAL_CARDS, {})
        assert service.get_room_state(ROOM).status == RoomStatus.ACTIVE

    def test_deal_timeout_outside_dealing_is_ignored(self, service):
        service.load_room(ROOM)
        assert service.handle_timeout(ROOM, TimeoutType.DEAL, "") == []

    def test_play_by_card_text(self, service):
        active_pair(service)
        state = service.get_room_state(ROOM)
        actor = get_participant(state, state.current_player_id)
        card = str(actor.hand[0])

        events = service.handle_action(ROOM, actor.user_id, GameAction.PLAY_CARDS, {"cards": [card]})

        assert {e.event for e in events} == {EventType.GAME_UPDATE}
        assert [str(c) for c in service.get_room_state(ROOM).pile] == [card]

    def test_illegal_play_is_dropped_silently(self, service):
        active_pair(service)
        state = service.get_room_state(ROOM)
        waiting = next(p for p in state.participants if p.user_id != state.current_player_id)

        events = service.handle_action(ROOM, waiting.user_id, GameAction.PLAY_CARDS, {"cards": [str(waiting.hand[0])]})

        assert events == []
        assert service.get_room_state(ROOM).version == state.version

    def test_malformed_cards_are_dropped(self, service):
        active_pair(service)
        actor = service.get_room_state(ROOM).current_player_id
        assert service.handle_action(ROOM, actor, GameAction.PLAY_CARDS, {"cards": ["nope"]}) == []
        assert service.handle_action(ROOM, actor, GameAction.PLAY_CARDS, {}) == []


class TestDisconnectGrace:
    def active_with_disconnected_actor(self, service):
        state = create_room_state(
            [
                create_participant("a", 0, hand=["4♠", "9♦"], connected=False),
                create_participant("b", 1, hand=["3♥", "K♠"]),
                create_participant("c", 2, hand=["5♠"]),
            ],
            status=RoomStatus.ACTIVE,
            current_player_id="a",
        )
        install(service, state)

    def test_expiry_passes_for_disconnected_actor(self, service):
        self.active_with_disconnected_actor(service)
        events = service.handle_timeout(ROOM, TimeoutType.DISCONNECT_GRACE, "a")

        state = service.get_room_state(ROOM)
        assert events
        assert state.turn.passed_ids == ("a",)
        assert state.current_player_id == "b"

    def test_expiry_after_reconnect_is_ignored(self, service):
        self.active_with_disconnected_actor(service)
        service.join(ROOM, "a", "Alice")
        assert service.handle_timeout(ROOM, TimeoutType.DISCONNECT_GRACE, "a") == []
        assert service.get_room_state(ROOM).current_player_id == "a"

    def test_expiry_for_non_actor_is_ignored(self, service):
        self.active_with_disconnected_actor(service)
        assert service.handle_timeout(ROOM, TimeoutType.DISCONNECT_GRACE, "b") == []

    def test_disconnect_marks_in_place(self, service, clock):
        active_pair(service)
        clock.now = 2000.0
        service.handle_disconnect(ROOM, "b")
        participant = get_participant(service.get_room_state(ROOM), "b")
        assert participant.connected is False
        assert participant.disconnected_at == 2000.0
        assert participant.hand


class TestBotMoves:
    def bot_to_act(self, service):
        state = create_room_state(
            [
                create_participant("a", 0, hand=["4♠", "9♦"]),
                create_participant("bot-1", 1, hand=["3♥", "K♠"], is_bot=True, ready=True),
            ],
            status=RoomStatus.ACTIVE,
            current_player_id="bot-1",
            pile=["10♠"],
        )
        install(service, state)

    def test_plan_returns_legal_move_with_version(self, service):
        self.bot_to_act(service)
        decision = service.plan_bot_move(ROOM, "bot-1")

        assert decision is not None
        assert [str(c) for c in decision.cards] == ["K♠"]
        assert decision.version == service.get_room_state(ROOM).version
        assert 1.5 <= decision.delay <= 3.5

    def test_plan_only_for_current_bot(self, service):
        self.bot_to_act(service)
        assert service.plan_bot_move(ROOM, "a") is None

    def test_submit_plays_through_normal_path(self, service):
        self.bot_to_act(service)
        decision = service.plan_bot_move(ROOM, "bot-1")
        events = service.submit_bot_move(ROOM, "bot-1", decision)

        state = service.get_room_state(ROOM)
        assert events
        assert [str(c) for c in state.pile] == ["K♠"]
        assert state.current_player_id == "a"

    def test_submit_pass(self, service):
        self.bot_to_act(service)
        version = service.get_room_state(ROOM).version
        service.submit_bot_move(ROOM, "bot-1", BotDecision(cards=None, delay=0.0, version=version))
        state = service.get_room_state(ROOM)
        assert state.turn.round_number == 2

    def test_stale_decision_is_dropped(self, service):
        self.bot_to_act(service)
        decision = service.plan_bot_move(ROOM, "bot-1")
        service.join(ROOM, "a", "Alice")  # any transition moves the version on

        assert service.submit_bot_move(ROOM, "bot-1", decision) == []
        assert [str(c) for c in service.get_room_state(ROOM).pile] == ["10♠"]

    def test_decision_uses_parsed_cards(self, service):
        self.bot_to_act(service)
        version = service.get_room_state(ROOM).version
        decision = BotDecision(cards=parse_cards(["3♥"]), delay=0.0, version=version)
        # 3♥ does not beat 10♠: rejected like a human move
        assert service.submit_bot_move(ROOM, "bot-1", decision) == []


class TestPruneAndSnapshot:
    def test_prune_room_drops_stale_participants(self, service, clock):
        state = create_room_state(
            [create_participant("a", 0), create_participant("b", connected=False, disconnected_at=clock.now - 60)],
        )
        install(service, state)
        events = service.prune_room(ROOM)

        assert events
        assert get_participant(service.get_room_state(ROOM), "b") is None

    def test_prune_room_without_changes(self, service):
        service.load_room(ROOM)
        assert service.prune_room(ROOM) == []

    def test_snapshot_events_target_one_user(self, service):
        active_pair(service)
        events = service.build_snapshot_events(ROOM, "a")
        assert len(events) == 1
        assert events[0].event == EventType.ROOM_STATE
        assert events[0].target == ParticipantTarget("a")
        assert len(events[0].data.room.hand) == 13
