"""
config
======

YAML configuration loading, overrides and validation.

Example ``config.yml``::

    cache_file: queryCache.json
    renderer: table            # or "log"

    database:
      driver: odbc             # or "snowflake"
      connection_string: "Driver={ODBC Driver 18 for SQL Server};Server=db;Database=Sales;Trusted_Connection=yes"

    query: |
      select OrderId, Status, Total from dbo.OpenOrders

    primary_key: [OrderId]

    smtp:
      server: smtp.example.com
      port: 25
      ssl: false
      from_address: alerts@example.com
      to_addresses: [ops@example.com]
      subject: Open orders

    logging:
      level: INFO

Precedence is CLI flag > environment variable > config file. Environment
variables are named ``SQLNOTIFY_<FIELD>``, e.g. ``SQLNOTIFY_CONNECTION_STRING`` or
``SQLNOTIFY_SMTP_PASSWORD``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ConfigError
from .executor import DRIVERS
from .notifier import SmtpSettings
from .store import DEFAULT_CACHE_FILE

ENV_PREFIX = "SQLNOTIFY"
RENDERERS = ("table", "log")

_EMAIL_RE = re.compile(r"^[^@\s<>]+@[^@\s<>]+\.[^@\s<>]+$")


@dataclass(frozen=True)
class Settings:
    """Validated settings for one run."""

    connection_string: str
    query: str
    primary_key: List[str]
    smtp: SmtpSettings
    driver: str = "odbc"
    cache_file: Path = Path(DEFAULT_CACHE_FILE)
    renderer: str = "table"
    log_level: str = "INFO"
    dry_run: bool = False


def load_config(path: Path) -> Dict[str, Any]:
    """Load a YAML config file.

    Raises
    ------
    ConfigError
        If the file does not exist or is not a YAML mapping.
    """
    if not path.exists():
        raise ConfigError(f"config not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return data


def deep_get(d: Mapping[str, Any], keys: List[str], default: Any = None) -> Any:
    """Safely get a nested value with a default."""
    cur: Any = d
    for k in keys:
        if not isinstance(cur, Mapping) or k not in cur:
            return default
        cur = cur[k]
    return cur


def get_env_var(field_name: str) -> Optional[str]:
    """Return ``SQLNOTIFY_<FIELD>`` from the environment, if set and non-empty."""
    return os.environ.get(f"{ENV_PREFIX}_{field_name.upper()}") or None


def _pick(override: Any, field_name: str, cfg_value: Any) -> Any:
    if override is not None and override != "":
        return override
    env = get_env_var(field_name)
    if env is not None:
        return env
    return cfg_value


def as_list(value: Any) -> List[str]:
    """Accept a YAML list or a comma separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def is_valid_email(address: str) -> bool:
    return bool(_EMAIL_RE.match(address or ""))


def build_settings(cfg: Mapping[str, Any], overrides: Optional[Mapping[str, Any]] = None) -> Settings:
    """Combine config, environment and CLI overrides into :class:`Settings`.

    Parameters
    ----------
    cfg:
        Parsed YAML config.
    overrides:
        Values from the CLI keyed by field name (``connection_string``,
        ``cache_file``, ``renderer``, ``log_level``, ``dry_run``).

    Raises
    ------
    ConfigError
        If the resulting settings fail :func:`validate_settings`.
    """
    ov = dict(overrides or {})
    port_raw = _pick(ov.get("smtp_port"), "smtp_port", deep_get(cfg, ["smtp", "port"], 25))
    try:
        port = int(port_raw)
    except (TypeError, ValueError):
        raise ConfigError(f"smtp.port must be an integer, got {port_raw!r}") from None

    smtp = SmtpSettings(
        server=str(_pick(ov.get("smtp_server"), "smtp_server", deep_get(cfg, ["smtp", "server"], "")) or ""),
        port=port,
        from_address=str(_pick(None, "smtp_from_address", deep_get(cfg, ["smtp", "from_address"], "")) or ""),
        to_addresses=as_list(_pick(None, "smtp_to_addresses", deep_get(cfg, ["smtp", "to_addresses"]))),
        ssl=as_bool(_pick(None, "smtp_ssl", deep_get(cfg, ["smtp", "ssl"], False))),
        username=_pick(None, "smtp_username", deep_get(cfg, ["smtp", "username"])) or None,
        password=_pick(None, "smtp_password", deep_get(cfg, ["smtp", "password"])) or None,
        subject=_pick(None, "smtp_subject", deep_get(cfg, ["smtp", "subject"])) or None,
    )

    settings = Settings(
        connection_string=str(
            _pick(ov.get("connection_string"), "connection_string", deep_get(cfg, ["database", "connection_string"], "")) or ""
        ),
        driver=str(_pick(ov.get("driver"), "driver", deep_get(cfg, ["database", "driver"], "odbc"))).lower(),
        query=str(_pick(None, "query", cfg.get("query", "")) or "").strip(),
        primary_key=as_list(_pick(None, "primary_key", cfg.get("primary_key"))),
        smtp=smtp,
        cache_file=Path(_pick(ov.get("cache_file"), "cache_file", cfg.get("cache_file", DEFAULT_CACHE_FILE))),
        renderer=str(_pick(ov.get("renderer"), "renderer", cfg.get("renderer", "table"))).lower(),
        log_level=str(_pick(ov.get("log_level"), "log_level", deep_get(cfg, ["logging", "level"], "INFO"))).upper(),
        dry_run=bool(ov.get("dry_run", False)),
    )
    validate_settings(settings)
    return settings


def validate_settings(settings: Settings) -> None:
    """Check settings, raising one :class:`ConfigError` that lists every problem."""
    problems: List[str] = []
    smtp = settings.smtp

    if not smtp.server.strip():
        problems.append("SMTP Server must not be empty or null.")
    if smtp.port == 0:
        problems.append("SMTP Port must not be 0.")
    if not is_valid_email(smtp.from_address):
        problems.append("SMTP From Address must be a valid email address.")
    if not smtp.to_addresses or not all(is_valid_email(a) for a in smtp.to_addresses):
        problems.append("SMTP Notification To Addresses must contain at least one valid email address.")
    if not settings.query.lower().startswith("select "):
        problems.append("Query must start with 'select '.")
    if not settings.primary_key:
        problems.append("Primary Key must contain at least one column name.")
    if len(settings.connection_string) < 8:
        problems.append("Connection String must be a valid connection string.")
    if settings.driver not in DRIVERS:
        problems.append(f"Driver must be one of: {', '.join(DRIVERS)}.")
    if settings.renderer not in RENDERERS:
        problems.append(f"Renderer must be one of: {', '.join(RENDERERS)}.")

    if problems:
        raise ConfigError("invalid configuration:\n  - " + "\n  - ".join(problems))
