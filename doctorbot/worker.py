from __future__ import annotations

import datetime as dt
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy.orm import sessionmaker

from doctorbot.config import Settings
from doctorbot.date_extractor import fetch_appointment_date
from doctorbot.page_parser import build_appointment_url
from doctorbot.storage import get_last_notified_date, set_last_notified_date
from doctorbot.telegram_notifier import notify, notify_all

logger = logging.getLogger(__name__)


def liveness() -> str:
    return "OK"


def is_date_within_next_days(date: dt.date, days: int, today: dt.date | None = None) -> bool:
    today = today or dt.date.today()
    return today <= date <= today + dt.timedelta(days=days)


def format_notification(item_key_index: str, appointment_date: dt.date) -> str:
    return (
        f"New available appointment date: {appointment_date.isoformat()}\n"
        f"Schedule an appointment using the link: {build_appointment_url(item_key_index)}"
    )


def _send_status_message(settings: Settings, text: str) -> None:
    if settings.telegram_admin_chat_id is None:
        return
    notify(settings, settings.telegram_admin_chat_id, text)


def check_and_notify(
    settings: Settings,
    session_factory: sessionmaker,
    item_key_index: str,
    *,
    today: dt.date | None = None,
) -> None:
    """Announce a newly published appointment date for one doctor.

    Subscribers hear about a date only once per change, and only when it is
    within ``settings.time_window_days``. A FetchError propagates and leaves
    the stored date untouched.
    """
    logger.info("Checking %s", item_key_index)

    with ThreadPoolExecutor(max_workers=2) as pool:
        new_future = pool.submit(
            fetch_appointment_date,
            item_key_index,
            attempts=settings.fetch_retry_attempts,
            wait_seconds=settings.fetch_retry_wait_seconds,
            timeout_seconds=settings.http_timeout_seconds,
        )
        old_future = pool.submit(get_last_notified_date, session_factory, item_key_index)
        last_date = old_future.result()
        new_date = new_future.result()

    if new_date is None or new_date == last_date:
        logger.info("No new appointment date or no change for %s (current=%s)", item_key_index, new_date)
        return

    logger.info("New appointment date for %s: %s (previous=%s)", item_key_index, new_date, last_date)

    if not is_date_within_next_days(new_date, settings.time_window_days, today):
        # Not saved on purpose: the same date is re-evaluated on the next check.
        logger.info("Appointment %s is not within the next %d days", new_date, settings.time_window_days)
        return

    notify_all(settings, session_factory, item_key_index, format_notification(item_key_index, new_date))

    if not set_last_notified_date(session_factory, item_key_index, new_date):
        logger.warning("Last notification date for %s was not saved; it may be announced again", item_key_index)


def run_check_once(settings: Settings, session_factory: sessionmaker) -> None:
    failed: list[str] = []

    for item_key_index in settings.item_key_indexes:
        try:
            check_and_notify(settings, session_factory, item_key_index)
        except Exception as e:
            logger.error("Check failed for %s (%s: %s)", item_key_index, type(e).__name__, e)
            failed.append(item_key_index)

    if failed:
        raise RuntimeError(f"Check failed for: {', '.join(failed)}")


def run_forever(settings: Settings, session_factory: sessionmaker) -> None:
    logger.info(
        "Worker started. Interval=%ss doctors=%d",
        settings.check_interval_seconds,
        len(settings.item_key_indexes),
    )
    while True:
        try:
            run_check_once(settings, session_factory)
        except Exception as e:
            # Per-doctor errors were already logged by run_check_once().
            logger.error("Check failed in run_forever (%s: %s)", type(e).__name__, e)
        time.sleep(settings.check_interval_seconds)
