from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_PATH = "config.toml"
CONFIG_ENV_VAR = "ORDERDESK_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DbConfig:
    host: str
    port: int
    name: str
    user: str
    password: str
    sslmode: str = "disable"


@dataclass(frozen=True)
class OrdersConfig:
    created_status: str = "Created"
    completed_status: str = "Completed"
    locked_statuses: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 5000


@dataclass(frozen=True)
class AppConfig:
    name: str
    log_level: str
    log_format: str
    db: DbConfig
    orders: OrdersConfig
    web: WebConfig


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path)
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH))


def load_config(path: str | Path | None = None) -> AppConfig:
    p = resolve_config_path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p.resolve()}")

    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to read config TOML: {e}") from e

    try:
        app = data["app"]
        db = data["db"]
        orders = data.get("orders", {})
        web = data.get("web", {})

        log_format = str(app.get("log_format", "text")).lower()
        if log_format not in {"text", "json"}:
            raise ValueError(f"app.log_format must be 'text' or 'json', got {log_format!r}")

        locked = orders.get("locked_statuses", [])
        if not isinstance(locked, list):
            raise ValueError("orders.locked_statuses must be a list of status names")

        return AppConfig(
            name=str(app.get("name", "OrderDesk")),
            log_level=str(app.get("log_level", "INFO")).upper(),
            log_format=log_format,
            db=DbConfig(
                host=str(db["host"]),
                port=int(db.get("port", 5432)),
                name=str(db["name"]),
                user=str(db["user"]),
                password=str(db["password"]),
                sslmode=str(db.get("sslmode", "disable")),
            ),
            orders=OrdersConfig(
                created_status=str(orders.get("created_status", "Created")),
                completed_status=str(orders.get("completed_status", "Completed")),
                locked_statuses=tuple(str(s) for s in locked),
            ),
            web=WebConfig(
                host=str(web.get("host", "127.0.0.1")),
                port=int(web.get("port", 5000)),
            ),
        )
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e
    except Exception as e:
        raise ConfigError(f"Invalid config values: {e}") from e
