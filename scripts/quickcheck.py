from __future__ import annotations

from datetime import date, timedelta

from loguru import logger

from reservation_desk import ReservationGateway
from reservation_desk.config import AppSettings, load_settings
from reservation_desk.logging_config import setup_logging


def run_checks(settings: AppSettings) -> int:
    with ReservationGateway(settings.database_url) as gateway:
        gateway.ensure_schema()
        logger.info("Schema ensured")

        before = len(gateway.list_reservations())
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        created = gateway.create_reservation("Quick Check", tomorrow, "3:00 PM", is_vip=True)
        logger.info("Created reservation {}: {}", created.id, created.to_dict())

        after = gateway.list_reservations()
        if len(after) != before + 1:
            logger.error("Expected {} reservations, found {}", before + 1, len(after))
            return 1
        logger.info("Reservations stored: {}", len(after))

    logger.info("Quick check completed successfully.")
    return 0


def main() -> int:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)
    logger.info("Reservation desk quick check")

    try:
        return run_checks(settings)
    except Exception:
        logger.exception("Quick check failed.")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
