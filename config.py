"""
Centralized configuration for the wager bot.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _parse_bool(env_var: str, default: bool) -> bool:
    raw = os.getenv(env_var)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


DB_PATH = os.getenv("DB_PATH", "wagers.db")
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN")

# Sync slash commands on startup (disable when running several instances)
SYNC_COMMANDS_ON_STARTUP = _parse_bool("SYNC_COMMANDS_ON_STARTUP", True)

# How long a resolve/cancel request waits for the counterpart (24 hours)
CONSENSUS_REQUEST_TTL_SECONDS = _parse_int("CONSENSUS_REQUEST_TTL_SECONDS", 86400)

WAGER_HISTORY_LIMIT = _parse_int("WAGER_HISTORY_LIMIT", 20)
WAGER_LEADERBOARD_SIZE = _parse_int("WAGER_LEADERBOARD_SIZE", 10)
WAGER_ACTIVE_LIST_LIMIT = _parse_int("WAGER_ACTIVE_LIST_LIMIT", 10)

# Upper bound on a base amount; keeps embed amounts readable
WAGER_MAX_AMOUNT = _parse_float("WAGER_MAX_AMOUNT", 1_000_000.0)
