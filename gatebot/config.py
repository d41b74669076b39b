"""Configuration helpers for the gate bot runtime."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_PORT = 3000
DEFAULT_REWARD_DELAY_SECONDS = 2
DEFAULT_API_BASE = "https://discord.com/api/v10"
DEFAULT_ACQUIRE_URL = "https://www.kucoin.com/how-to-buy/airdao"
DEFAULT_ACQUIRE_LABEL = "Buy AirDao Tokens"
DEFAULT_CLAIM_URL = "https://shop.ogs.gg"

REQUIRED_VARS = (
    "PUBLIC_KEY",
    "BOT_TOKEN",
    "APP_ID",
    "REQUIRED_ROLE_ID",
)


def env_bool(name: str, *, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def env_int(name: str, *, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, *, default: float | None = None) -> float | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


@dataclass(frozen=True)
class EnvironmentConfig:
    """Process-wide settings, read once at startup and never mutated."""

    public_key: str
    bot_token: str
    application_id: str
    required_role_id: int
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    verify_url: str = ""
    verification_channel_id: int | None = None
    cleanup_bot_messages: bool = False
    deferred_responses: bool = False
    reward_delay_seconds: float = DEFAULT_REWARD_DELAY_SECONDS
    acquire_url: str = DEFAULT_ACQUIRE_URL
    acquire_label: str = DEFAULT_ACQUIRE_LABEL
    claim_url: str = DEFAULT_CLAIM_URL
    serve_verify_stub: bool = True
    api_base: str = DEFAULT_API_BASE

    def __post_init__(self) -> None:
        if not self.verify_url:
            object.__setattr__(
                self, "verify_url", f"http://127.0.0.1:{self.port}/verify"
            )

    @classmethod
    def load(cls) -> "EnvironmentConfig":
        missing = [name for name in REQUIRED_VARS if not os.getenv(name)]
        if missing:
            raise RuntimeError("Missing env vars: " + ", ".join(sorted(missing)))

        raw_role_id = os.environ["REQUIRED_ROLE_ID"].strip()
        try:
            required_role_id = int(raw_role_id)
        except ValueError as exc:
            raise RuntimeError(
                f"REQUIRED_ROLE_ID must be a numeric role id, got {raw_role_id!r}"
            ) from exc

        reward_delay = env_float(
            "REWARD_DELAY_SECONDS", default=DEFAULT_REWARD_DELAY_SECONDS
        )

        return cls(
            public_key=os.environ["PUBLIC_KEY"].strip(),
            bot_token=os.environ["BOT_TOKEN"].strip(),
            application_id=os.environ["APP_ID"].strip(),
            required_role_id=required_role_id,
            host=os.getenv("HOST") or "0.0.0.0",
            port=env_int("PORT", default=DEFAULT_PORT),
            verify_url=os.getenv("VERIFY_URL") or "",
            verification_channel_id=env_int("VERIFICATION_CHANNEL_ID"),
            cleanup_bot_messages=env_bool("CLEANUP_BOT_MESSAGES"),
            deferred_responses=env_bool("DEFERRED_RESPONSES"),
            reward_delay_seconds=max(reward_delay, 0),
            acquire_url=os.getenv("ACQUIRE_URL") or DEFAULT_ACQUIRE_URL,
            acquire_label=os.getenv("ACQUIRE_LABEL") or DEFAULT_ACQUIRE_LABEL,
            claim_url=os.getenv("CLAIM_URL") or DEFAULT_CLAIM_URL,
            serve_verify_stub=env_bool("SERVE_VERIFY_STUB", default=True),
            api_base=(os.getenv("DISCORD_API_BASE") or DEFAULT_API_BASE).rstrip("/"),
        )
