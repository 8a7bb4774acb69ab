from __future__ import annotations

import os
from dataclasses import dataclass, field


def _env_bool(value: str | None, default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off"}


def _env_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    return int(value)


def _parse_origins(value: str | None) -> list[str]:
    if not value:
        return [
            "http://localhost:8000",
            "http://127.0.0.1:8000",
        ]
    return [origin.strip() for origin in value.split(",") if origin.strip()]


@dataclass(frozen=True)
class Settings:
    """Runtime settings loaded from environment variables.

    Game rules live in ``ghostmaze.common.constants`` and are not tunable here;
    these only control how the simulation is hosted.
    """

    tick_seconds: float = float(os.getenv("GHOSTMAZE_TICK_SECONDS", "0.05"))
    random_seed: int | None = _env_int(os.getenv("GHOSTMAZE_RANDOM_SEED"))
    enable_tick_loop: bool = _env_bool(os.getenv("GHOSTMAZE_ENABLE_TICK_LOOP", "1"))
    cors_origins: list[str] = field(
        default_factory=lambda: _parse_origins(os.getenv("GHOSTMAZE_CORS_ORIGINS"))
    )
    log_level: str = os.getenv("GHOSTMAZE_LOG_LEVEL", "INFO")
    api_key: str | None = os.getenv("GHOSTMAZE_API_KEY")


settings = Settings()
