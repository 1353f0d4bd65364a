import argparse
import dataclasses
import logging

from doctorbot.config import load_settings
from doctorbot.storage import create_session_factory, init_schema
from doctorbot.worker import liveness, run_check_once, run_forever, _send_status_message


def _setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="DoctorSlotBot: doctor appointment watcher")
    parser.add_argument("item_key_indexes", nargs="*", help="Doctors to check (overrides ITEM_KEY_INDEXES)")
    parser.add_argument("--once", action="store_true", help="Run single check and exit")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables before checking")
    parser.add_argument("--health", action="store_true", help="Print liveness status and exit")
    args = parser.parse_args()

    if args.health:
        print(liveness())
        return 0

    _setup_logging()
    settings = load_settings()
    if args.item_key_indexes:
        settings = dataclasses.replace(settings, item_key_indexes=tuple(dict.fromkeys(args.item_key_indexes)))
    if not settings.item_key_indexes:
        parser.error("no doctors to check: pass ItemKeyIndex values or set ITEM_KEY_INDEXES")

    session_factory = create_session_factory(settings.database_url)
    if args.init_db:
        init_schema(session_factory)

    # Admin status messages are best-effort and skipped without TELEGRAM_ADMIN_CHAT_ID.
    _send_status_message(
        settings,
        text=(
            "DoctorSlotBot started.\n"
            f"Mode: {'once' if args.once else 'forever'}\n"
            f"doctors={len(settings.item_key_indexes)} interval={settings.check_interval_seconds}s"
        ),
    )

    try:
        if args.once:
            run_check_once(settings, session_factory)
            return 0

        run_forever(settings, session_factory)
        return 0

    except Exception as e:
        _send_status_message(
            settings,
            text=(
                "DoctorSlotBot stopped with an error.\n"
                f"Reason: {type(e).__name__}: {e}"
            ),
        )
        raise

    finally:
        _send_status_message(settings, text="DoctorSlotBot stopped (process exit).")


if __name__ == "__main__":
    raise SystemExit(main())
