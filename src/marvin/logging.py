"""Logging setup and the JSONL event log.

Two channels are configured here:

- Standard ``logging`` for human-readable diagnostics. ``configure_logging``
  sets the root format and level and keeps chatty third-party libraries at
  WARNING and above.
- A structured event log (one JSON object per line) recording how each
  message was routed, which facts were saved and which replies could not be
  delivered. It is meant for later analysis, not for debugging.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Third-party loggers that only report warnings and errors
NOISY_LOGGERS = ("httpx", "httpcore", "telegram", "pymongo")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DEFAULT_EVENT_DIR = Path.home() / ".marvin" / "logs"


class SeverityFilter(logging.Filter):
    """Drops records below a minimum level for a set of logger names."""

    def __init__(self, prefixes: tuple[str, ...], min_level: int = logging.WARNING) -> None:
        super().__init__()
        self.prefixes = prefixes
        self.min_level = min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= self.min_level:
            return True
        return not any(
            record.name == prefix or record.name.startswith(prefix + ".")
            for prefix in self.prefixes
        )


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root logger and quiet noisy third-party libraries."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    severity_filter = SeverityFilter(NOISY_LOGGERS)
    for handler in logging.getLogger().handlers:
        handler.addFilter(severity_filter)


@dataclass
class LogEntry:
    """One line of the event log.

    Attributes:
        timestamp: ISO-8601 UTC time the event was recorded.
        event: Event name, e.g. 'message_routed'.
        chat_id: Conversation the event belongs to.
        sender_id: Who sent the message.
        route: How the message was answered (see ``processor.Route``).
        duration_ms: Processing time, for routing events.
        error: Error text, for failure events.
        extra: Any other event-specific fields.
    """

    timestamp: str
    event: str
    chat_id: str | None = None
    sender_id: str | None = None
    route: str | None = None
    duration_ms: float | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Fields with a value; unset fields and an empty ``extra`` are left out."""
        data: dict[str, Any] = {"timestamp": self.timestamp, "event": self.event}
        for name in ("chat_id", "sender_id", "route", "duration_ms", "error"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.extra:
            data["extra"] = dict(self.extra)
        return data


class JSONLLogger:
    """Appends events to ``<log_dir>/<filename>``, one JSON object per line.

    When the file reaches ``max_size_mb`` it is renamed to ``<stem>.1.jsonl``
    (older backups shift to ``.2``, ``.3``...) and a new file is started. At
    most ``backup_count`` backups are kept.
    """

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "events.jsonl",
        max_size_mb: float = 10.0,
        backup_count: int = 5,
    ) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else DEFAULT_EVENT_DIR
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_path = self.log_dir / filename
        self.max_bytes = int(max_size_mb * 1024 * 1024)
        self.backup_count = backup_count

    def backup_path(self, index: int) -> Path:
        """Path of the ``index``-th rotated file (1 is the most recent)."""
        return self.log_dir / f"{self.log_path.stem}.{index}{self.log_path.suffix}"

    def _rotate(self) -> None:
        oldest = self.backup_path(self.backup_count)
        if oldest.exists():
            oldest.unlink()
        for index in range(self.backup_count - 1, 0, -1):
            source = self.backup_path(index)
            if source.exists():
                source.rename(self.backup_path(index + 1))
        if self.backup_count > 0:
            self.log_path.rename(self.backup_path(1))
        else:
            self.log_path.unlink()

    def _append(self, line: str) -> None:
        if self.log_path.exists() and self.log_path.stat().st_size >= self.max_bytes:
            self._rotate()
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def log(
        self,
        event: str,
        *,
        chat_id: str | None = None,
        sender_id: str | None = None,
        route: str | None = None,
        duration_ms: float | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Record an event. Extra keyword arguments go under ``extra``."""
        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            chat_id=chat_id,
            sender_id=sender_id,
            route=route,
            duration_ms=duration_ms,
            error=error,
            extra=extra,
        )
        self._append(json.dumps(entry.to_dict(), ensure_ascii=False, default=str))

    def log_message(
        self, *, chat_id: str | None, sender_id: str | None, message_length: int
    ) -> None:
        """Record an incoming message (its length, never its text)."""
        self.log(
            "message_received",
            chat_id=chat_id,
            sender_id=sender_id,
            message_length=message_length,
        )

    def log_route(
        self,
        route: str,
        *,
        chat_id: str | None = None,
        sender_id: str | None = None,
        duration_ms: float | None = None,
        facts_stored: int | None = None,
    ) -> None:
        """Record how a message was answered."""
        extra = {"facts_stored": facts_stored} if facts_stored is not None else {}
        self.log(
            "message_routed",
            chat_id=chat_id,
            sender_id=sender_id,
            route=route,
            duration_ms=duration_ms,
            **extra,
        )

    def log_fact_saved(self, kind: str, key: str, entity: str, updated: bool) -> None:
        self.log("fact_saved", kind=kind, key=key, entity=entity, updated=updated)

    def log_delivery_error(self, *, chat_id: str | None, error: str, final: bool) -> None:
        self.log("delivery_error", chat_id=chat_id, error=error, final=final)


_event_log: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Return the process-wide event log, creating it in the default directory."""
    global _event_log
    if _event_log is None:
        _event_log = JSONLLogger()
    return _event_log


def configure_logger(
    log_dir: str | Path | None = None,
    max_size_mb: float = 10.0,
    backup_count: int = 5,
) -> JSONLLogger:
    """Replace the process-wide event log and return it."""
    global _event_log
    _event_log = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb, backup_count=backup_count)
    return _event_log
