"""Session log — durable record of install, uninstall, and doctor runs.

Events are appended as newline-delimited JSON to one file per UTC day under
the configured log directory.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


@dataclass
class SessionEvent:
    """A single session log entry."""

    timestamp: str
    action: str  # install | uninstall | doctor | ...
    message: str
    success: bool = True
    details: dict[str, Any] = field(default_factory=dict)


class SessionLog:
    """File-based JSONL session log."""

    def __init__(self, log_dir: Path | str) -> None:
        self._log_dir = Path(log_dir)
        self._log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._log_dir / f"session-{dt.strftime('%Y-%m-%d')}.jsonl"

    def current_log_file(self) -> Path:
        return self._log_file_for_date(datetime.now(timezone.utc))

    def log(
        self,
        action: str,
        message: str,
        success: bool = True,
        details: Optional[dict[str, Any]] = None,
    ) -> SessionEvent:
        """Append an event and return it."""
        event = SessionEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            action=action,
            message=message,
            success=success,
            details=details or {},
        )
        with self.current_log_file().open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(event)) + "\n")
        return event

    def get_events(self, *, action: Optional[str] = None, limit: int = 200) -> list[SessionEvent]:
        """Return events, newest first."""
        events: list[SessionEvent] = []
        for path in sorted(self._log_dir.glob("session-*.jsonl")):
            try:
                text = path.read_text(encoding="utf-8")
            except OSError:
                continue
            for line in text.strip().splitlines():
                if not line.strip():
                    continue
                try:
                    events.append(SessionEvent(**json.loads(line)))
                except (json.JSONDecodeError, TypeError):
                    continue

        if action:
            events = [e for e in events if e.action == action]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
