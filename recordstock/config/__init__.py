"""
Configuration management for recordstock.

This module loads the store location and display/purchase defaults from a
TOML file. The loaded config is an immutable value passed to whoever needs it;
there is no process-wide configuration singleton.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from recordstock.core import ValidationError

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

# Directory relative store paths are resolved against ("alongside the program").
PROGRAM_DIR = CONFIG_DIR.parent

DEFAULT_CONFIG_PATH = CONFIG_DIR / "recordstock.toml"

DB_ENV_VAR = "RECORDSTOCK_DB"


@dataclass(frozen=True)
class StoreConfig:
    """Location of the SQLite store file."""

    path: Path = PROGRAM_DIR / "inventory.db"


@dataclass(frozen=True)
class DisplayConfig:
    color: bool = True


@dataclass(frozen=True)
class PurchaseConfig:
    default_quantity: int = 1


@dataclass(frozen=True)
class AppConfig:
    """Loaded application configuration."""

    store: StoreConfig = field(default_factory=StoreConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    purchase: PurchaseConfig = field(default_factory=PurchaseConfig)


def resolve_store_path(value: str | Path, base_dir: Path = PROGRAM_DIR) -> Path:
    """Resolve a configured store path; relative paths are taken from `base_dir`."""
    if str(value) == ":memory:":
        return Path(":memory:")
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ValidationError(f"Config section [{name}] must be a table.")
    return section


def load_config(
    config_path: Path | None = None,
    *,
    db_override: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> AppConfig:
    """
    Load configuration from a TOML file.

    Args:
        config_path: Path to recordstock.toml. If None, uses the bundled default.
        db_override: Store path given on the command line; wins over everything.
        environ: Environment mapping to read RECORDSTOCK_DB from (default: os.environ).

    Returns:
        Loaded AppConfig instance.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    logger.debug("Loading config from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ValidationError(f"Config file {config_path} does not exist.") from None
    except tomllib.TOMLDecodeError as e:
        raise ValidationError(f"Config file {config_path} is not valid TOML: {e}") from e

    store = _section(data, "store")
    display = _section(data, "display")
    purchase = _section(data, "purchase")

    # Paths given on the command line or environment are relative to where the
    # user is; only the config file's path is relative to the program.
    if db_override is not None:
        store_path = resolve_store_path(db_override, Path.cwd())
    elif env.get(DB_ENV_VAR):
        store_path = resolve_store_path(env[DB_ENV_VAR], Path.cwd())
    else:
        store_path = resolve_store_path(store.get("path", "inventory.db"))

    default_quantity = purchase.get("default_quantity", 1)
    if not isinstance(default_quantity, int) or default_quantity < 1:
        raise ValidationError(
            f"[purchase] default_quantity must be a positive integer, got {default_quantity!r}."
        )

    return AppConfig(
        store=StoreConfig(path=store_path),
        display=DisplayConfig(color=bool(display.get("color", True))),
        purchase=PurchaseConfig(default_quantity=default_quantity),
    )
