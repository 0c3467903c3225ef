from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any

from loguru import logger
from sqlalchemy import (
    Column,
    Date,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
    Time,
    create_engine,
    insert,
    select,
    text,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from .normalizer import (
    REQUIRED_FIELDS_MESSAGE,
    ReservationInputError,
    normalize_time,
    parse_date,
    sanitize,
)

metadata = MetaData()

reservations_table = Table(
    "reservations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("date", Date, nullable=False),
    Column("time", Time, nullable=False),
    Column(
        "is_vip",
        SmallInteger().with_variant(mysql.TINYINT(1), "mysql"),
        nullable=False,
        server_default=text("0"),
    ),
)


@dataclass(frozen=True)
class ReservationRecord:
    id: int
    name: str
    date: date
    time: time
    is_vip: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date.isoformat(),
            "time": self.time.strftime("%H:%M:%S"),
            "is_vip": self.is_vip,
        }

    @staticmethod
    def from_row(row: Any) -> "ReservationRecord":
        return ReservationRecord(
            id=int(row["id"]),
            name=str(row["name"]),
            date=row["date"],
            time=row["time"],
            is_vip=bool(row["is_vip"]),
        )


class ReservationStorageError(RuntimeError):
    pass


class ReservationGateway:
    """Owns the storage handle for the ``reservations`` table.

    The gateway must be opened before use and closed on shutdown. Operations
    on a closed gateway raise :class:`ReservationStorageError` rather than
    reconnecting on their own.
    """

    def __init__(self, database_url: str | URL) -> None:
        self.database_url = database_url
        self._engine: Engine | None = None

    def __enter__(self) -> "ReservationGateway":
        self.open()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> None:
        if self._engine is not None:
            return

        engine = create_engine(self.database_url, pool_pre_ping=True)
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            engine.dispose()
            raise ReservationStorageError(_driver_message(error)) from error

        self._engine = engine
        logger.info("Connected to reservation database {}", engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info("Reservation database connection closed")

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise ReservationStorageError("Storage handle is not open.")
        return self._engine

    def ensure_schema(self) -> None:
        engine = self._require_engine()
        try:
            metadata.create_all(engine, checkfirst=True)
        except SQLAlchemyError as error:
            logger.exception("Error creating reservations table")
            raise ReservationStorageError(_driver_message(error)) from error
        logger.info("Reservations table is ready")

    def create_reservation(
        self,
        name: str | None,
        date: str | None,
        time: str | None,
        is_vip: bool = False,
    ) -> ReservationRecord:
        name = sanitize(name).strip()
        date_text = sanitize(date).strip()
        time_text = sanitize(time).strip()
        if not name or not date_text or not time_text:
            raise ReservationInputError(REQUIRED_FIELDS_MESSAGE)

        canonical_time = normalize_time(time_text)
        reservation_date = parse_date(date_text)
        reservation_time = _time_from_canonical(canonical_time)
        if len(name) > 255:
            raise ReservationInputError("Name must be at most 255 characters.")

        engine = self._require_engine()
        stored_vip = 1 if is_vip else 0
        statement = insert(reservations_table).values(
            name=name,
            date=reservation_date,
            time=reservation_time,
            is_vip=stored_vip,
        )
        try:
            with engine.begin() as connection:
                result = connection.execute(statement)
                new_id = result.inserted_primary_key[0]
        except SQLAlchemyError as error:
            logger.exception("Error adding reservation")
            raise ReservationStorageError(_driver_message(error)) from error

        logger.debug("Reservation {} added for {} on {} {}", new_id, name, date_text, canonical_time)
        return ReservationRecord(
            id=int(new_id),
            name=name,
            date=reservation_date,
            time=reservation_time,
            is_vip=bool(stored_vip),
        )

    def list_reservations(self) -> list[ReservationRecord]:
        engine = self._require_engine()
        statement = select(reservations_table).order_by(reservations_table.c.id)
        try:
            with engine.connect() as connection:
                rows = connection.execute(statement).mappings().all()
        except SQLAlchemyError as error:
            logger.exception("Error fetching reservations")
            raise ReservationStorageError(_driver_message(error)) from error
        return [ReservationRecord.from_row(row) for row in rows]


def _time_from_canonical(value: str) -> time:
    hours, minutes, seconds = (int(part) for part in value.split(":"))
    return time(hours, minutes, seconds)


def _driver_message(error: SQLAlchemyError) -> str:
    original = getattr(error, "orig", None)
    return str(original if original is not None else error)
