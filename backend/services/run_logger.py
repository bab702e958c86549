"""Per-question event logger for the RAG pipeline."""
import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class RunLogger:
    """
    Records the structured events of one pipeline run.

    Each event is kept in memory, forwarded to the standard logging module at
    the matching level and, when a file path is given, appended to a JSON
    Lines file. One instance lives for exactly one question.
    """

    LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }

    def __init__(
        self,
        run_id: Optional[str] = None,
        log_file_path: Optional[str] = None,
        target: Optional[logging.Logger] = None
    ):
        """
        Initialize the run logger.

        Args:
            run_id: Identifier stamped on every event (random when omitted)
            log_file_path: Optional JSON Lines file to append events to
            target: Logger that receives the forwarded records
        """
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.target = target or logger
        self.events: List[Dict[str, Any]] = []
        self._file = None

        if log_file_path:
            path = Path(log_file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "a", encoding="utf-8")

    def log(self, level: str, event: str, **fields: Any) -> Dict[str, Any]:
        """
        Record an event.

        Args:
            level: One of debug, info, warning, error
            event: Short event name, e.g. "retry"
            **fields: Structured payload

        Returns:
            The recorded event

        Raises:
            ValueError: If the level is not recognized
        """
        if level not in self.LEVELS:
            raise ValueError(f"Unknown log level: {level}")

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "run_id": self.run_id,
            "level": level,
            "event": event,
            **fields,
        }
        self.events.append(entry)

        summary = " ".join(f"{key}={value}" for key, value in fields.items())
        self.target.log(
            self.LEVELS[level],
            f"[{self.run_id}] {event} {summary}".rstrip(),
            extra={"fields": {"run_id": self.run_id, "event": event, **fields}}
        )

        if self._file is not None:
            self._file.write(json.dumps(entry, default=str) + "\n")
            self._file.flush()

        return entry

    def debug(self, event: str, **fields: Any) -> Dict[str, Any]:
        return self.log("debug", event, **fields)

    def info(self, event: str, **fields: Any) -> Dict[str, Any]:
        return self.log("info", event, **fields)

    def warning(self, event: str, **fields: Any) -> Dict[str, Any]:
        return self.log("warning", event, **fields)

    def error(self, event: str, **fields: Any) -> Dict[str, Any]:
        return self.log("error", event, **fields)

    def events_named(self, event: str) -> List[Dict[str, Any]]:
        """Return every recorded event with the given name."""
        return [entry for entry in self.events if entry["event"] == event]

    def close(self) -> None:
        """Close the JSON Lines file if one is open."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "RunLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
