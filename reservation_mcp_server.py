from __future__ import annotations

from typing import Any

from loguru import logger
from mcp.server.fastmcp import FastMCP

from reservation_desk import ReservationGateway, ReservationStorageError, parse_vip_flag
from reservation_desk.config import load_settings
from reservation_desk.logging_config import setup_logging


def build_server(gateway: ReservationGateway) -> FastMCP:
    mcp = FastMCP(
        "Reservation MCP Server",
        instructions="Record and list temple reservations stored by the reservation_desk service.",
        json_response=True,
    )

    @mcp.tool()
    def list_reservations() -> list[dict[str, Any]]:
        """Return every stored reservation ordered by id."""
        return [record.to_dict() for record in gateway.list_reservations()]

    @mcp.tool()
    def add_reservation(name: str, date: str, time: str, is_vip: bool = False) -> dict[str, Any]:
        """Create a reservation. ``date`` is YYYY-MM-DD and ``time`` is like "3:00 PM"."""
        created = gateway.create_reservation(name, date, time, is_vip=parse_vip_flag(is_vip))
        return created.to_dict()

    return mcp


def main() -> int:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_file)

    gateway = ReservationGateway(settings.database_url)
    try:
        gateway.open()
        gateway.ensure_schema()
    except ReservationStorageError as error:
        logger.critical("Database connection failed: {}", error)
        gateway.close()
        return 1

    try:
        build_server(gateway).run()
    finally:
        gateway.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
