"""Factoid store configuration.

Loads settings from a JSON file (``~/.factoids/config.json`` by default) or
from ``FACTOIDS_*`` environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".factoids" / "config.json"

DEFAULT_MAX_ALIAS_DEPTH = 3


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class FactoidsConfig:
    """Configuration for the factoid store.

    Attributes:
        max_alias_depth: How many aliases a read may follow before giving up.
        max_message_length: Longest allowed message, None for unbounded.
        safe_replace: Require explicit confirmation to overwrite a factoid.
        admin_check_timeout: Seconds to wait for the admin check, None to wait forever.
        database: Location of the durable map, None or "" for in-memory.
        audit_log_dir: Directory for the JSONL audit log, None to disable it.
    """

    max_alias_depth: int = DEFAULT_MAX_ALIAS_DEPTH
    max_message_length: int | None = None
    safe_replace: bool = False
    admin_check_timeout: float | None = None
    database: str | None = None
    audit_log_dir: str | None = None

    def __post_init__(self) -> None:
        """Validate config."""
        if not _is_int(self.max_alias_depth) or self.max_alias_depth < 1:
            raise ValueError("max_alias_depth must be a positive integer")

        if self.max_message_length is not None and (
            not _is_int(self.max_message_length) or self.max_message_length < 1
        ):
            raise ValueError("max_message_length must be a positive integer or None")

        if self.admin_check_timeout is not None and self.admin_check_timeout <= 0:
            raise ValueError("admin_check_timeout must be positive or None")

    def message_too_long(self, message: str) -> bool:
        """Check a message against max_message_length."""
        return self.max_message_length is not None and len(message) > self.max_message_length


def load_config(config_path: Path | None = None) -> FactoidsConfig:
    """Load FactoidsConfig from a JSON file.

    The config file should have this structure:
    ```json
    {
      "factoids": {
        "max_alias_depth": 3,
        "max_message_length": 400,
        "safe_replace": true,
        "admin_check_timeout": 5,
        "database": "~/.factoids/factoids.db",
        "audit_log_dir": "~/.factoids/logs"
      }
    }
    ```

    Args:
        config_path: Path to config file. Uses DEFAULT_CONFIG_PATH if None.

    Returns:
        FactoidsConfig instance with loaded values.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.debug("No config file at %s, using defaults", path)
        return FactoidsConfig()

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s. Using defaults.", path, e)
        return FactoidsConfig()
    except OSError as e:
        logger.warning("Cannot read %s: %s. Using defaults.", path, e)
        return FactoidsConfig()

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> FactoidsConfig:
    """Parse config dictionary into FactoidsConfig.

    Values of the wrong type fall back to the field default.
    """
    section = data.get("factoids", {})
    if not isinstance(section, dict):
        section = {}

    max_alias_depth = section.get("max_alias_depth", DEFAULT_MAX_ALIAS_DEPTH)
    if not _is_int(max_alias_depth) or max_alias_depth < 1:
        max_alias_depth = DEFAULT_MAX_ALIAS_DEPTH

    max_message_length = section.get("max_message_length")
    if not _is_int(max_message_length) or max_message_length < 1:
        max_message_length = None

    safe_replace = section.get("safe_replace", False)
    if not isinstance(safe_replace, bool):
        safe_replace = False

    timeout = section.get("admin_check_timeout")
    if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
        timeout = None

    database = section.get("database")
    if not isinstance(database, str):
        database = None

    audit_log_dir = section.get("audit_log_dir")
    if not isinstance(audit_log_dir, str):
        audit_log_dir = None

    return FactoidsConfig(
        max_alias_depth=max_alias_depth,
        max_message_length=max_message_length,
        safe_replace=safe_replace,
        admin_check_timeout=timeout,
        database=database,
        audit_log_dir=audit_log_dir,
    )


def config_from_env() -> FactoidsConfig:
    """Load configuration from environment variables (and a .env file)."""
    load_dotenv(find_dotenv(usecwd=True))

    max_length = os.getenv("FACTOIDS_MAX_MESSAGE_LENGTH")
    timeout = os.getenv("FACTOIDS_ADMIN_CHECK_TIMEOUT")

    return FactoidsConfig(
        max_alias_depth=int(os.getenv("FACTOIDS_MAX_ALIAS_DEPTH", str(DEFAULT_MAX_ALIAS_DEPTH))),
        max_message_length=int(max_length) if max_length else None,
        safe_replace=os.getenv("FACTOIDS_SAFE_REPLACE", "").lower() in ("1", "true", "yes"),
        admin_check_timeout=float(timeout) if timeout else None,
        database=os.getenv("FACTOIDS_DATABASE") or None,
        audit_log_dir=os.getenv("FACTOIDS_AUDIT_LOG_DIR") or None,
    )


def save_config(config: FactoidsConfig, config_path: Path | None = None) -> None:
    """Save FactoidsConfig to a JSON file.

    Only values that differ from the defaults are written.

    Args:
        config: The config to save.
        config_path: Path to write to. Uses DEFAULT_CONFIG_PATH if None.
    """
    path = config_path or DEFAULT_CONFIG_PATH

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    section: dict[str, Any] = {}

    if config.max_alias_depth != DEFAULT_MAX_ALIAS_DEPTH:
        section["max_alias_depth"] = config.max_alias_depth

    if config.max_message_length is not None:
        section["max_message_length"] = config.max_message_length

    if config.safe_replace:
        section["safe_replace"] = True

    if config.admin_check_timeout is not None:
        section["admin_check_timeout"] = config.admin_check_timeout

    if config.database:
        section["database"] = config.database

    if config.audit_log_dir:
        section["audit_log_dir"] = config.audit_log_dir

    data: dict[str, Any] = {"factoids": section} if section else {}

    try:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        raise
