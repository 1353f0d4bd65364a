from __future__ import annotations

import pytest

from doctorbot.config import Settings
from doctorbot.storage import NotificationRegistered, create_session_factory, init_schema


@pytest.fixture
def session_factory(tmp_path):
    factory = create_session_factory(f"sqlite:///{tmp_path / 'test.db'}")
    init_schema(factory)
    return factory


@pytest.fixture
def subscribe(session_factory):
    def _subscribe(item_key_index: str, *chat_ids: int) -> None:
        with session_factory() as session, session.begin():
            for chat_id in chat_ids:
                session.add(NotificationRegistered(chat_id=chat_id, item_key_index=item_key_index))

    return _subscribe


@pytest.fixture
def settings() -> Settings:
    # No real tokens here; nothing in the tests may reach the network.
    return Settings(
        telegram_bot_token="TEST_TOKEN",
        item_key_indexes=("doc-1",),
        fetch_retry_wait_seconds=0,
    )
