"""JSONL audit log of factoid edits."""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class LogEntry:
    """A single log entry."""

    timestamp: str
    event: str
    key: str | None = None
    editor: str | None = None
    intent: str | None = None
    message: str | None = None
    frozen: bool | None = None
    reason: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values."""
        data = asdict(self)
        return {k: v for k, v in data.items() if v is not None and v != {}}


class JSONLLogger:
    """Logger that writes structured logs in JSONL format."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "audit.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        if log_dir is None:
            log_dir = Path.home() / ".factoids" / "logs"
        self.log_dir = Path(log_dir).expanduser()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        """Current log file path."""
        return self.log_dir / self.filename

    def _rotate_if_needed(self) -> None:
        """Rotate log file if it exceeds max size."""
        if not self.log_path.exists():
            return

        if self.log_path.stat().st_size >= self.max_size_bytes:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            rotated_name = f"{self.log_path.stem}_{timestamp}.jsonl"
            self.log_path.rename(self.log_dir / rotated_name)

    def _write(self, entry: LogEntry) -> None:
        """Write a log entry to the file."""
        self._rotate_if_needed()

        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")

    def log(
        self,
        event: str,
        *,
        key: str | None = None,
        editor: str | None = None,
        intent: str | None = None,
        message: str | None = None,
        frozen: bool | None = None,
        reason: str | None = None,
        **extra: Any,
    ) -> None:
        """Log an event."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            key=key,
            editor=editor,
            intent=intent,
            message=message,
            frozen=frozen,
            reason=reason,
            extra=extra if extra else {},
        )
        self._write(entry)

    def log_edit(
        self,
        event: str,
        key: str,
        editor: str,
        *,
        intent: str | None = None,
        message: str | None = None,
    ) -> None:
        """Log a committed set, replace or delete."""
        self.log(event, key=key, editor=editor, intent=intent, message=message)

    def log_lock(self, key: str, frozen: bool) -> None:
        """Log a freeze or unfreeze."""
        self.log("factoid_freeze" if frozen else "factoid_unfreeze", key=key, frozen=frozen)

    def log_rejected(
        self,
        operation: str,
        key: str,
        reason: str,
        *,
        editor: str | None = None,
    ) -> None:
        """Log an edit that was refused."""
        self.log(
            "factoid_rejected",
            key=key,
            editor=editor,
            reason=reason,
            operation=operation,
        )


# Global logger instance
_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Configure and return the global logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
