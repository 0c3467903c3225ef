"""Runtime settings for the reservation service.

Values come from built-in defaults, an optional YAML file named by
``RESERVATION_DESK_CONFIG``, a ``.env`` file and the process environment, in
increasing order of precedence.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Any, Mapping

from dotenv import load_dotenv
from sqlalchemy.engine import URL
import yaml

CONFIG_FILE_ENV = "RESERVATION_DESK_CONFIG"

_DEFAULTS: dict[str, str] = {
    "host": "127.0.0.1",
    "port": "3000",
    "db_host": "localhost",
    "db_port": "3306",
    "db_user": "root",
    "db_password": "root",
    "db_name": "temple_reservation",
    "database_url": "",
    "log_level": "INFO",
    "log_file": "",
    "expose_storage_errors": "true",
}


@dataclass(frozen=True)
class AppSettings:
    host: str
    port: int
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    database_url_override: str | None
    log_level: str
    log_file: str | None
    expose_storage_errors: bool

    @property
    def database_url(self) -> str | URL:
        if self.database_url_override:
            return self.database_url_override
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )


def load_settings(env: Mapping[str, str] | None = None) -> AppSettings:
    """Load settings; pass ``env`` to bypass ``os.environ`` and ``.env``."""
    if env is None:
        load_dotenv(override=False)
        env = os.environ

    values = dict(_DEFAULTS)
    config_path = env.get(CONFIG_FILE_ENV)
    if config_path:
        values.update(_read_config_file(Path(config_path)))

    for key in _DEFAULTS:
        env_value = env.get(key.upper())
        if env_value is not None and env_value != "":
            values[key] = env_value

    return AppSettings(
        host=values["host"],
        port=_to_int(values["port"], "port"),
        db_host=values["db_host"],
        db_port=_to_int(values["db_port"], "db_port"),
        db_user=values["db_user"],
        db_password=values["db_password"],
        db_name=values["db_name"],
        database_url_override=values["database_url"] or None,
        log_level=values["log_level"].upper(),
        log_file=values["log_file"] or None,
        expose_storage_errors=_to_bool(values["expose_storage_errors"]),
    )


def _read_config_file(path: Path) -> dict[str, str]:
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as error:
        raise ValueError(f"Could not read config file: {path}") from error

    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    values: dict[str, str] = {}
    for key, value in payload.items():
        normalized_key = str(key).lower()
        if normalized_key in _DEFAULTS and value is not None:
            values[normalized_key] = _stringify(value)
    return values


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _to_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as error:
        raise ValueError(f"{name} must be an integer, got {value!r}") from error


def _to_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}
