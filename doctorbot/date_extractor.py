from __future__ import annotations

import datetime as dt
import logging

import httpx
from tenacity import RetryCallState, RetryError, retry, stop_after_attempt, wait_fixed

from doctorbot.domain import FetchError
from doctorbot.page_parser import build_appointment_url, parse_appointment_date

logger = logging.getLogger(__name__)

# The site serves a bot-check page to clients without browser headers.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.3"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,"
        "image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.9"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}


def _short_exc(retry_state: RetryCallState) -> str | None:
    if retry_state.outcome is None or not retry_state.outcome.failed:
        return None
    exc = retry_state.outcome.exception()
    if exc is None:
        return None
    msg = str(exc).strip()
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


def _log_after_attempt(retry_state: RetryCallState) -> None:
    if retry_state.outcome is not None and retry_state.outcome.failed:
        logger.warning("Attempt %s failed (%s)", retry_state.attempt_number, _short_exc(retry_state))


def _log_before_sleep(retry_state: RetryCallState) -> None:
    sleep_seconds = getattr(retry_state.next_action, "sleep", None)
    if sleep_seconds is None:
        logger.info("Retrying fetch (attempt %s)", retry_state.attempt_number + 1)
        return
    logger.info("Retrying fetch in %.1f sec. (attempt %s)", sleep_seconds, retry_state.attempt_number + 1)


def _fetch_once(client: httpx.Client, item_key_index: str) -> dt.date | None:
    r = client.get(build_appointment_url(item_key_index))
    r.raise_for_status()
    return parse_appointment_date(r.text)


def fetch_appointment_date(
    item_key_index: str,
    *,
    attempts: int = 3,
    wait_seconds: float = 1.0,
    timeout_seconds: float = 20.0,
    transport: httpx.BaseTransport | None = None,
) -> dt.date | None:
    """Fetch the next published appointment date for a doctor.

    Returns None when the page says no appointment is published. Any other
    failure is retried; once ``attempts`` are used up FetchError is raised.
    """
    decorated = retry(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        after=_log_after_attempt,
        before_sleep=_log_before_sleep,
    )(_fetch_once)

    with httpx.Client(
        headers=BROWSER_HEADERS,
        timeout=timeout_seconds,
        follow_redirects=True,
        transport=transport,
    ) as client:
        try:
            return decorated(client, item_key_index)
        except RetryError as e:
            last = e.last_attempt.exception()
            raise FetchError(
                f"Failed fetching the new appointment date for {item_key_index} after {attempts} attempts"
            ) from last
