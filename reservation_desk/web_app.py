from __future__ import annotations

from pathlib import Path
from typing import Any

from flask import Flask, jsonify, request
from loguru import logger
from werkzeug.exceptions import HTTPException

from .config import AppSettings, load_settings
from .logging_config import setup_logging
from .normalizer import ReservationInputError, parse_vip_flag
from .store import ReservationGateway, ReservationStorageError

STATIC_DIR = Path(__file__).parent / "static"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


def create_app(gateway: ReservationGateway, expose_storage_errors: bool = True) -> Flask:
    app = Flask(__name__, static_folder=str(STATIC_DIR))

    def _error(message: str, status_code: int) -> Any:
        return jsonify({"status": "error", "message": message}), status_code

    def _storage_failure(prefix: str, error: ReservationStorageError) -> Any:
        detail = str(error) if expose_storage_errors else "see server log"
        return _error(f"{prefix}: {detail}", 500)

    @app.after_request
    def add_cors_headers(response: Any) -> Any:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Any:
        return _error(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> Any:
        logger.opt(exception=error).error("Unhandled error on {} {}", request.method, request.path)
        return _error(UNEXPECTED_ERROR_MESSAGE, 500)

    @app.get("/")
    def index() -> Any:
        return app.send_static_file("index.html")

    @app.post("/api/reservations")
    def add_reservation() -> Any:
        payload = request.get_json(silent=True)
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            return _error("Request body must be a JSON object.", 400)

        try:
            created = gateway.create_reservation(
                name=_text_field(payload, "name"),
                date=_text_field(payload, "date"),
                time=_text_field(payload, "time"),
                is_vip=parse_vip_flag(payload.get("is_vip")),
            )
        except ReservationInputError as error:
            return _error(str(error), 400)
        except ReservationStorageError as error:
            return _storage_failure("Error adding reservation", error)

        return (
            jsonify(
                {
                    "status": "success",
                    "message": "Reservation added successfully.",
                    "id": created.id,
                }
            ),
            201,
        )

    @app.get("/api/reservations")
    def get_reservations() -> Any:
        try:
            records = gateway.list_reservations()
        except ReservationStorageError as error:
            return _storage_failure("Error fetching reservations", error)
        return jsonify({"status": "success", "data": [record.to_dict() for record in records]})

    return app


def _text_field(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None or isinstance(value, str):
        return value
    return str(value)


def main(settings: AppSettings | None = None) -> int:
    settings = settings or load_settings()
    setup_logging(settings.log_level, settings.log_file)

    gateway = ReservationGateway(settings.database_url)
    try:
        gateway.open()
        gateway.ensure_schema()
    except ReservationStorageError as error:
        logger.critical("Database connection failed: {}", error)
        gateway.close()
        return 1

    app = create_app(gateway, expose_storage_errors=settings.expose_storage_errors)
    logger.info("Server is running on http://{}:{}", settings.host, settings.port)
    try:
        app.run(host=settings.host, port=settings.port, debug=False)
    finally:
        gateway.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
