from __future__ import annotations

import os
from datetime import timedelta, timezone
from decimal import Decimal
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

APP_NAME = "gstr1-filer"


# kind -> (override env var, platformdirs fallback)
_DIRS = {
    "config": ("GSTR1_CONFIG_DIR", platformdirs.user_config_dir),
    "data": ("GSTR1_DATA_DIR", platformdirs.user_data_dir),
}


def _resolve_dir(kind: str) -> Path:
    """Resolve the config or data directory.

    An explicit GSTR1_CONFIG_DIR / GSTR1_DATA_DIR wins. In a source checkout
    the repo's own config/ or data/ folder is used if present, otherwise the
    platformdirs user directory. Re-evaluated on each call.
    """
    env_var, platform_dir = _DIRS[kind]
    override = os.environ.get(env_var)
    if override:
        return Path(override)
    # <checkout>/src/gstr1/config.py
    checkout_dir = Path(__file__).resolve().parents[2] / kind
    if checkout_dir.is_dir():
        return checkout_dir
    return Path(platform_dir(APP_NAME))


def get_config_dir() -> Path:
    return _resolve_dir("config")


def get_data_dir() -> Path:
    return _resolve_dir("data")


# .env in cwd wins; the config dir's .env only fills in unset variables
load_dotenv()
load_dotenv(get_config_dir() / ".env")


IST = timezone(timedelta(hours=5, minutes=30))

# Statutory constants for GSTR-1 preparation
TAX_TOLERANCE = Decimal("0.01")
B2CL_THRESHOLD = Decimal("250000")
VALID_STATE_CODES = frozenset(f"{n:02d}" for n in range(1, 39))
VALID_HSN_LENGTHS = frozenset({4, 6, 8})
DEFAULT_STATE_CODE = "24"
DEFAULT_EXPORT_TYPE = "WPAY"
DEFAULT_HSN_CODE = "NA"
HSN_UQC = "NOS"
B2CL_DEFAULT_POS = "00"


# --- YAML config ---


def load_yaml(path: Path) -> dict:
    """Load and parse a YAML file, returning the top-level object."""
    return yaml.safe_load(path.read_text(encoding="utf-8"))


def load_client(name: str) -> dict:
    """Load a client (filer) profile from config/clients/{name}.yaml."""
    return load_yaml(get_config_dir() / "clients" / f"{name}.yaml")


def list_clients() -> list[str]:
    """Return sorted list of client names (YAML file stems) from config/clients/."""
    clients_dir = get_config_dir() / "clients"
    if not clients_dir.exists():
        return []
    return sorted(f.stem for f in clients_dir.glob("*.yaml"))


def get_returns_dir() -> Path:
    """Return the directory generated GSTR-1 JSON files are written to."""
    return get_data_dir() / "returns"
