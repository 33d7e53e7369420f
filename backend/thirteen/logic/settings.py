"""Centralized game settings for Thirteen: table size and timing rules."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GameSettings(BaseModel):
    """
    Configuration for one room's table and timers.

    Defaults match the standard four-seat game.
    """

    model_config = ConfigDict(frozen=True)

    # --- Table ---
    seat_count: int = Field(default=4, ge=2, le=4)
    hand_size: int = Field(default=13, ge=1, le=13)
    min_players: int = Field(default=2, ge=2)
    max_participants: int = Field(default=12, ge=1)

    # --- Timers (seconds) ---
    countdown_seconds: int = Field(default=6, ge=0)
    countdown_tick_seconds: float = Field(default=1.0, gt=0)
    deal_delay_seconds: float = Field(default=3.0, ge=0)
    disconnect_grace_seconds: float = Field(default=2.0, ge=0)
    bot_pass_delay_min_seconds: float = Field(default=1.0, ge=0)
    bot_pass_delay_max_seconds: float = Field(default=3.0, ge=0)
    bot_play_delay_min_seconds: float = Field(default=1.5, ge=0)
    bot_play_delay_max_seconds: float = Field(default=3.5, ge=0)

    # --- Housekeeping ---
    participant_prune_seconds: float = Field(default=30.0, ge=0)

    @model_validator(mode="after")
    def _validate_table(self) -> GameSettings:
        if self.min_players > self.seat_count:
            raise ValueError("min_players cannot exceed seat_count")
        if self.bot_pass_delay_min_seconds > self.bot_pass_delay_max_seconds:
            raise ValueError("bot pass delay range is inverted")
        if self.bot_play_delay_min_seconds > self.bot_play_delay_max_seconds:
            raise ValueError("bot play delay range is inverted")
        return self
