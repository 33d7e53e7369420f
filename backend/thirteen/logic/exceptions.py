"""Typed domain exceptions for game rule violations.

Every rejected room operation raises a subclass of GameRuleError. The service
boundary decides how each kind is reported: invalid combinations and illegal
moves are dropped silently, precondition failures become an error event for
the requester.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thirteen.logic.enums import GameErrorCode


class GameRuleError(Exception):
    """Base exception for game rule violations."""


class InvalidCombinationError(GameRuleError):
    """Card set does not form any known combination."""


class IllegalMoveError(GameRuleError):
    """Wrong turn, cards not held, or the play does not beat the pile."""


class PreconditionError(GameRuleError):
    """Operation is not allowed in the current room state.

    Attributes:
        code: Reason code reported to the requesting client.

    """

    def __init__(self, code: GameErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)
