from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy import BigInteger, Column, Date, String, create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

# Dialects with INSERT ... ON CONFLICT DO UPDATE.
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class NotificationDate(Base):
    """Last appointment date that subscribers were notified about."""

    __tablename__ = "notification_date"

    item_key_index = Column(String(100), primary_key=True)
    last_notification_date = Column(Date, nullable=True)


class NotificationRegistered(Base):
    """A chat subscribed to one doctor. Managed outside this bot."""

    __tablename__ = "notifications_registered"

    chat_id = Column(BigInteger, primary_key=True, autoincrement=False)
    item_key_index = Column(String(100), primary_key=True)


def _is_sqlite_memory(database_url: str) -> bool:
    url = make_url(database_url)
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def create_session_factory(database_url: str) -> sessionmaker:
    if _is_sqlite_memory(database_url):
        # One shared connection, otherwise every thread gets its own empty database.
        engine = create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(database_url)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_schema(session_factory: sessionmaker) -> None:
    engine: Engine = session_factory.kw["bind"]
    Base.metadata.create_all(engine)


# Store errors are logged, never raised: reads return "nothing known", writes return False.
# That includes rows that can't be decoded, e.g. a datetime string in the DATE column.


def get_last_notified_date(session_factory: sessionmaker, item_key_index: str) -> dt.date | None:
    try:
        with session_factory() as session:
            return session.scalar(
                select(NotificationDate.last_notification_date).where(
                    NotificationDate.item_key_index == item_key_index
                )
            )
    except Exception as e:
        logger.error("Error reading last notification date for %s (%s: %s)", item_key_index, type(e).__name__, e)
        return None


def _upsert_last_date(session: Session, item_key_index: str, date: dt.date) -> None:
    insert = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
    if insert is None:
        session.merge(NotificationDate(item_key_index=item_key_index, last_notification_date=date))
        return

    stmt = insert(NotificationDate).values(item_key_index=item_key_index, last_notification_date=date)
    session.execute(
        stmt.on_conflict_do_update(
            index_elements=[NotificationDate.item_key_index],
            set_={"last_notification_date": stmt.excluded.last_notification_date},
        )
    )


def set_last_notified_date(session_factory: sessionmaker, item_key_index: str, date: dt.date) -> bool:
    try:
        with session_factory() as session, session.begin():
            _upsert_last_date(session, item_key_index, date)
        return True
    except Exception as e:
        logger.error("Error saving last notification date for %s (%s: %s)", item_key_index, type(e).__name__, e)
        return False


def get_subscribers(session_factory: sessionmaker, item_key_index: str) -> set[int]:
    try:
        with session_factory() as session:
            rows = session.scalars(
                select(NotificationRegistered.chat_id).where(
                    NotificationRegistered.item_key_index == item_key_index
                )
            )
            return set(rows)
    except Exception as e:
        logger.error("Error reading subscribers for %s (%s: %s)", item_key_index, type(e).__name__, e)
        return set()
