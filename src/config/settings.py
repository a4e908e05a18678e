# Process configuration read from the environment (and a local .env file).

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from src.profile_archive.domain.errors import ConfigurationError

STORAGE_BACKENDS = ("pinata", "ipfs")
DEFAULT_READY_SELECTOR = "h1[aria-label='Public Name']"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 5000
    storage_backend: str = "pinata"
    pinata_api_key: str = ""
    pinata_secret_api_key: str = ""
    pinata_api_url: str = "https://api.pinata.cloud"
    infura_project_id: str = ""
    infura_project_secret: str = ""
    ipfs_api_url: str = "https://ipfs.infura.io:5001"
    gateway_base_url: str = "https://gateway.pinata.cloud/ipfs"
    dedup_enabled: bool = True
    dedup_db_path: Path | None = None
    dedup_max_entries: int | None = None
    publish_retries: int = 0
    publish_timeout_seconds: float = 60.0
    ledger_enabled: bool = False
    ledger_db_path: Path = Path("artifacts/ledger.db")
    browser_headless: bool = True
    nav_timeout_seconds: float = 60.0
    ready_selector: str = DEFAULT_READY_SELECTOR
    ready_timeout_seconds: float = 15.0
    settle_seconds: float = 0.0
    diagnostics_dir: Path | None = None
    pin_events_dir: Path | None = None
    cors_origin: str = "*"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        if environ is None:
            load_dotenv()
            environ = os.environ

        backend = environ.get("STORAGE_BACKEND", "pinata").strip().lower()
        if backend not in STORAGE_BACKENDS:
            raise ConfigurationError(f"Unsupported STORAGE_BACKEND: {backend}")

        settings = cls(
            host=environ.get("HOST", "0.0.0.0"),
            port=_to_int(environ, "PORT", 5000),
            storage_backend=backend,
            pinata_api_key=environ.get("PINATA_API_KEY", "").strip(),
            pinata_secret_api_key=environ.get("PINATA_SECRET_API_KEY", "").strip(),
            pinata_api_url=environ.get("PINATA_API_URL", "https://api.pinata.cloud"),
            infura_project_id=environ.get("INFURA_PROJECT_ID", "").strip(),
            infura_project_secret=environ.get("INFURA_PROJECT_SECRET", "").strip(),
            ipfs_api_url=environ.get("IPFS_API_URL", "https://ipfs.infura.io:5001"),
            gateway_base_url=environ.get("GATEWAY_BASE_URL", "https://gateway.pinata.cloud/ipfs"),
            dedup_enabled=_to_bool(environ, "DEDUP_ENABLED", True),
            dedup_db_path=_to_path(environ, "DEDUP_DB_PATH"),
            dedup_max_entries=_to_optional_int(environ, "DEDUP_MAX_ENTRIES"),
            publish_retries=_to_int(environ, "PUBLISH_RETRIES", 0),
            publish_timeout_seconds=_to_float(environ, "PUBLISH_TIMEOUT_SECONDS", 60.0),
            ledger_enabled=_to_bool(environ, "LEDGER_ENABLED", False),
            ledger_db_path=_to_path(environ, "LEDGER_DB_PATH") or Path("artifacts/ledger.db"),
            browser_headless=_to_bool(environ, "BROWSER_HEADLESS", True),
            nav_timeout_seconds=_to_float(environ, "NAV_TIMEOUT_SECONDS", 60.0),
            ready_selector=environ.get("READY_SELECTOR", DEFAULT_READY_SELECTOR),
            ready_timeout_seconds=_to_float(environ, "READY_TIMEOUT_SECONDS", 15.0),
            settle_seconds=_to_float(environ, "SETTLE_SECONDS", 0.0),
            diagnostics_dir=_to_path(environ, "DIAGNOSTICS_DIR"),
            pin_events_dir=_to_path(environ, "PIN_EVENTS_DIR"),
            cors_origin=environ.get("CORS_ORIGIN", "*"),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.storage_backend == "pinata":
            if not self.pinata_api_key or not self.pinata_secret_api_key:
                raise ConfigurationError("Missing Pinata API credentials (PINATA_API_KEY, PINATA_SECRET_API_KEY).")
        elif self.storage_backend == "ipfs":
            if not self.infura_project_id or not self.infura_project_secret:
                raise ConfigurationError(
                    "Missing IPFS API credentials (INFURA_PROJECT_ID, INFURA_PROJECT_SECRET)."
                )
        if self.publish_retries < 0:
            raise ConfigurationError("PUBLISH_RETRIES must be >= 0")
        if self.dedup_max_entries is not None and self.dedup_max_entries <= 0:
            raise ConfigurationError("DEDUP_MAX_ENTRIES must be a positive integer")


def _to_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


def _to_int(environ: Mapping[str, str], key: str, default: int) -> int:
    value = _to_optional_int(environ, key)
    return default if value is None else value


def _to_optional_int(environ: Mapping[str, str], key: str) -> int | None:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc


def _to_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc


def _to_path(environ: Mapping[str, str], key: str) -> Path | None:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    return Path(raw.strip())
