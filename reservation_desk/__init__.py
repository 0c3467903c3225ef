from .normalizer import (
	ReservationInputError,
	normalize_time,
	parse_date,
	parse_vip_flag,
	sanitize,
)
from .store import ReservationGateway, ReservationRecord, ReservationStorageError

__all__ = [
	"ReservationInputError",
	"normalize_time",
	"parse_date",
	"parse_vip_flag",
	"sanitize",
	"ReservationGateway",
	"ReservationRecord",
	"ReservationStorageError",
]
