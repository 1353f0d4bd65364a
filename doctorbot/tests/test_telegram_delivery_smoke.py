"""Smoke/integration test for Telegram delivery.

This test talks to the real Telegram API and is skipped by default.
To run it set:
    TELEGRAM_BOT_TOKEN
    TELEGRAM_ADMIN_CHAT_ID

python -m pytest -q -m telegram
"""

from __future__ import annotations

import os

import pytest

from doctorbot.telegram_notifier import send_telegram_message


pytestmark = pytest.mark.telegram


@pytest.mark.skipif(
    not os.getenv("TELEGRAM_BOT_TOKEN") or not os.getenv("TELEGRAM_ADMIN_CHAT_ID"),
    reason="Set TELEGRAM_BOT_TOKEN and TELEGRAM_ADMIN_CHAT_ID to run Telegram smoke test",
)
def test_telegram_message_delivery_smoke() -> None:
    send_telegram_message(
        bot_token=os.environ["TELEGRAM_BOT_TOKEN"],
        chat_id=os.environ["TELEGRAM_ADMIN_CHAT_ID"],
        text="DoctorSlotBot: Telegram smoke test (pytest)",
    )
