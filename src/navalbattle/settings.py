"""Game settings loaded from the environment."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field

from navalbattle.telemetry.config import env_flag


class GameSettings(BaseModel):
    """Tunables for a session and its host."""

    rng_seed: int | None = None
    computer_shot_delay_ms: int = Field(default=600, ge=0)
    auto_advance_computer: bool = True
    strict_attempts: int = Field(default=100, ge=0)
    relaxed_attempts: int = Field(default=100, ge=0)
    placement_retries: int = Field(default=10, ge=1)

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameSettings":
        """Construct settings from `NAVALBATTLE_*` env vars; overrides win."""

        data: Dict[str, Any] = {}
        int_fields = {
            "rng_seed": "NAVALBATTLE_RNG_SEED",
            "computer_shot_delay_ms": "NAVALBATTLE_COMPUTER_SHOT_DELAY_MS",
            "strict_attempts": "NAVALBATTLE_STRICT_ATTEMPTS",
            "relaxed_attempts": "NAVALBATTLE_RELAXED_ATTEMPTS",
            "placement_retries": "NAVALBATTLE_PLACEMENT_RETRIES",
        }
        for key, env_name in int_fields.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip():
                data[key] = raw.strip()

        auto_advance = env_flag("NAVALBATTLE_AUTO_ADVANCE")
        if auto_advance is not None:
            data["auto_advance_computer"] = auto_advance

        data.update(overrides)
        return cls(**data)


@lru_cache(maxsize=1)
def load_game_settings() -> GameSettings:
    """Load and cache game settings from the environment."""

    return GameSettings.from_env()
