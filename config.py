"""
Central configuration for the order lifecycle engine.

All paths and tunables are defined here.
Override via environment variables or by passing a Config instance directly.

Settings priority (highest wins):
  1. Environment variables
  2. config/lifecycle_settings.json  (admin-editable, persisted)
  3. Hardcoded defaults in this file
"""
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

# Default data locations (relative to project root)
DEFAULT_SNAPSHOT_PATH   = PROJECT_ROOT / "data" / "snapshot.json"
DEFAULT_ORDERS_CSV      = PROJECT_ROOT / "data" / "orders.csv"
DEFAULT_ORDER_LINES_CSV = PROJECT_ROOT / "data" / "order_lines.csv"
DEFAULT_ARCHIVE_PATH    = PROJECT_ROOT / "data" / "archive.json"


def _env_path(name: str, default: Path) -> Path:
    return Path(os.getenv(name, str(default)))


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _to_bool(value) -> bool:
    """JSON booleans pass through; strings like "false" or "0" are parsed, not truth-tested."""
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


@dataclass
class Config:
    # --- Data source paths ---
    snapshot_path:   Path = field(default_factory=lambda: _env_path("SNAPSHOT_PATH", DEFAULT_SNAPSHOT_PATH))
    orders_csv:      Path = field(default_factory=lambda: _env_path("ORDERS_CSV", DEFAULT_ORDERS_CSV))
    order_lines_csv: Path = field(default_factory=lambda: _env_path("ORDER_LINES_CSV", DEFAULT_ORDER_LINES_CSV))
    archive_path:    Path = field(default_factory=lambda: _env_path("ARCHIVE_PATH", DEFAULT_ARCHIVE_PATH))

    # --- Output settings ---
    pretty_json: bool = True        # Indent JSON output for human readability

    # --- Classification ---
    show_ticket_badge: bool = field(
        default_factory=lambda: os.getenv("SHOW_TICKET_BADGE", "false").lower() == "true"
    )
    project_id_marker: str = "projekt"   # Order ids containing this are project orders

    # --- History reconstruction ---
    placeholder_delivery_notes: tuple[str, ...] = ("ausstehend", "pending")
    default_actor: str = "system"

    # --- Clock ---
    # Fixed evaluation date (YYYY-MM-DD) for reproducible reports; unset = local date
    today_override: Optional[str] = field(
        default_factory=lambda: os.getenv("LIFECYCLE_TODAY") or None
    )

    def __post_init__(self) -> None:
        """Overlay runtime-tunable settings from lifecycle_settings.json if present."""
        config_dir = Path(os.getenv("CONFIG_DIR", str(PROJECT_ROOT / "config")))
        settings_file = config_dir / "lifecycle_settings.json"
        if not settings_file.exists():
            return
        _type_map: dict[str, Callable] = {
            "pretty_json":                _to_bool,
            "show_ticket_badge":          _to_bool,
            "project_id_marker":          str,
            "placeholder_delivery_notes": tuple,
            "default_actor":              str,
            "archive_path":               Path,
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key in _type_map and hasattr(self, key):
                    setattr(self, key, _type_map[key](val))
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Failed to load lifecycle_settings.json: %s", exc)

    def today(self) -> date:
        """The evaluation date: today_override when set and valid, else the local date."""
        if self.today_override:
            try:
                return date.fromisoformat(self.today_override)
            except ValueError:
                logger.warning("Ignoring invalid LIFECYCLE_TODAY value: %r", self.today_override)
        return date.today()
