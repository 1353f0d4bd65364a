from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import httpx
from sqlalchemy.orm import sessionmaker

from doctorbot.config import Settings
from doctorbot.storage import get_subscribers

logger = logging.getLogger(__name__)

MAX_PARALLEL_SENDS = 32


def send_telegram_message(*, bot_token: str, chat_id: int | str, text: str, timeout_seconds: float = 20.0) -> None:
    url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
    payload = {
        "chat_id": chat_id,
        "text": text,
    }

    with httpx.Client(timeout=timeout_seconds) as client:
        r = client.post(url, json=payload)
        r.raise_for_status()


def notify(settings: Settings, chat_id: int | str, message: str) -> None:
    """Send ``message`` to one chat. Failures are logged, never raised."""
    try:
        send_telegram_message(
            bot_token=settings.telegram_bot_token,
            chat_id=chat_id,
            text=message,
            timeout_seconds=settings.http_timeout_seconds,
        )
    except Exception as e:
        logger.warning("Failed to send telegram message to chat_id=%s (%s: %s)", chat_id, type(e).__name__, e)


def notify_all(settings: Settings, session_factory: sessionmaker, item_key_index: str, message: str) -> int:
    """Send ``message`` to every chat subscribed to ``item_key_index``.

    Sends run concurrently, in no particular order, and are not retried.
    Returns how many sends were attempted.
    """
    chat_ids = get_subscribers(session_factory, item_key_index)
    if not chat_ids:
        logger.info("No subscribers for %s", item_key_index)
        return 0

    with ThreadPoolExecutor(max_workers=min(len(chat_ids), MAX_PARALLEL_SENDS)) as pool:
        for chat_id in chat_ids:
            pool.submit(notify, settings, chat_id, message)

    logger.info("Notified %d subscriber(s) of %s", len(chat_ids), item_key_index)
    return len(chat_ids)
