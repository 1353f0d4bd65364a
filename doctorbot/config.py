from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _parse_item_key_indexes(raw: str) -> tuple[str, ...]:
    # ITEM_KEY_INDEXES is a comma-separated list, e.g. ITEM_KEY_INDEXES=1234abcd,5678efgh
    seen: set[str] = set()
    result: list[str] = []
    for p in (p.strip() for p in raw.split(",")):
        if not p or p in seen:
            continue
        seen.add(p)
        result.append(p)
    return tuple(result)


def _parse_optional_chat_id(name: str) -> str | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected integer chat id.") from e
    if raw == "0":
        raise RuntimeError(f"Invalid {name} value: '0' is not a valid chat id")
    return raw


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str

    database_url: str = "sqlite:///doctorbot.db"

    # Doctors checked by run_check_once / run_forever.
    item_key_indexes: tuple[str, ...] = ()

    # Start/stop/crash messages go here when set.
    telegram_admin_chat_id: str | None = None

    check_interval_seconds: int = 300

    # Only dates within [today, today + time_window_days] are announced.
    time_window_days: int = 60

    fetch_retry_attempts: int = 3
    fetch_retry_wait_seconds: float = 1.0
    http_timeout_seconds: float = 20.0


def _require(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Prefer .env in repo root; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    fetch_retry_attempts = int(os.getenv("FETCH_RETRY_ATTEMPTS", "3"))
    if fetch_retry_attempts < 1:
        raise RuntimeError("FETCH_RETRY_ATTEMPTS must be >= 1")

    time_window_days = int(os.getenv("TIME_WINDOW_DAYS", "60"))
    if time_window_days < 0:
        raise RuntimeError("TIME_WINDOW_DAYS must be >= 0")

    return Settings(
        telegram_bot_token=_require("TELEGRAM_BOT_TOKEN"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///doctorbot.db"),
        item_key_indexes=_parse_item_key_indexes(os.getenv("ITEM_KEY_INDEXES", "")),
        telegram_admin_chat_id=_parse_optional_chat_id("TELEGRAM_ADMIN_CHAT_ID"),
        check_interval_seconds=int(os.getenv("CHECK_INTERVAL_SECONDS", "300")),
        time_window_days=time_window_days,
        fetch_retry_attempts=fetch_retry_attempts,
        fetch_retry_wait_seconds=float(os.getenv("FETCH_RETRY_WAIT_SECONDS", "1")),
        http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "20")),
    )
