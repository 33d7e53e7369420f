"""Game server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="THIRTEEN_")

    log_dir: str = Field(default="backend/logs/thirteen", min_length=1)
    # empty keeps room snapshots in memory only
    database_path: str = "backend/data/thirteen.db"
    cors_origins: list[str] = ["http://localhost:8712"]
    room_idle_seconds: float = Field(default=1800.0, ge=60)
    reaper_interval_seconds: float = Field(default=30.0, gt=0)

    # Read from AUTH_GAME_TICKET_SECRET (not THIRTEEN_GAME_TICKET_SECRET): the
    # secret is shared with whoever issues tickets.
    game_ticket_secret: str = Field(validation_alias="AUTH_GAME_TICKET_SECRET", min_length=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    @property
    def uses_database(self) -> bool:
        return bool(self.database_path.strip())

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
