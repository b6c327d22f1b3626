"""
Application settings.

Settings come from a YAML file (config/config.yaml by default, or the path in
PROMPTDESK_CONFIG) and are validated on load.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PROMPTDESK_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "config.yaml"

BACKENDS = ("sql", "memory")


@dataclass(frozen=True)
class Settings:
    database_backend: str = "sql"
    database_url: str = "sqlite:///./promptdesk.db"
    session_cookie: str = "promptdesk.session_token"
    sentinel_tenant_id: int = -1
    default_page_size: int = 10
    max_page_size: int = 100
    cors_origins: Tuple[str, ...] = field(default_factory=tuple)
    log_level: str = "INFO"
    # (token, user_id, tenant_id) sessions preloaded into the in-memory session store
    dev_sessions: Tuple[Tuple[str, str, int], ...] = field(default_factory=tuple)


def settings_from_dict(config: Dict[str, Any]) -> Settings:
    if not isinstance(config, dict):
        raise ValueError("Config must be a mapping")
    if "database" not in config:
        raise ValueError("Config missing 'database'")
    if "auth" not in config:
        raise ValueError("Config missing 'auth'")

    database = config["database"] or {}
    auth = config["auth"] or {}
    pagination = config.get("pagination") or {}
    cors = config.get("cors") or {}
    logging_cfg = config.get("logging") or {}

    backend = database.get("backend", "sql")
    if backend not in BACKENDS:
        raise ValueError(f"Unknown database backend '{backend}' (expected one of {', '.join(BACKENDS)})")
    if backend == "sql" and not database.get("url"):
        raise ValueError("Config 'database' missing 'url'")

    dev_sessions = []
    for entry in auth.get("dev_sessions") or []:
        if not isinstance(entry, dict) or not entry.get("token") or "tenant_id" not in entry:
            raise ValueError("auth.dev_sessions entries need 'token' and 'tenant_id'")
        dev_sessions.append((str(entry["token"]), str(entry.get("user_id", entry["token"])), int(entry["tenant_id"])))

    default_page_size = int(pagination.get("default_page_size", 10))
    max_page_size = int(pagination.get("max_page_size", 100))
    if not 1 <= default_page_size <= max_page_size:
        raise ValueError("pagination.default_page_size must be between 1 and max_page_size")

    return Settings(
        database_backend=backend,
        database_url=database.get("url", Settings.database_url),
        session_cookie=auth.get("session_cookie", Settings.session_cookie),
        sentinel_tenant_id=int(auth.get("sentinel_tenant_id", -1)),
        default_page_size=default_page_size,
        max_page_size=max_page_size,
        cors_origins=tuple(cors.get("allow_origins", ())),
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
        dev_sessions=tuple(dev_sessions),
    )


def load_settings(config_path: Optional[Union[Path, str]] = None) -> Settings:
    path = Path(config_path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        config = yaml.safe_load(f)
    settings = settings_from_dict(config)
    logger.info(f"Loaded settings from {path} (backend={settings.database_backend})")
    return settings
