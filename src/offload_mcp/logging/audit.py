"""Structured JSONL audit log utilities."""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterator
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

# Identifiers that are safe to log as-is. Every other string (payloads, prompt
# stages, free text) is reduced to presence and length.
_VERBATIM_STRING_KEYS = frozenset(
    {
        "path",
        "calling_file",
        "root",
        "entry_point",
        "class_name",
        "method_name",
        "name",
        "since",
    }
)


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized representation of a single tool request."""

    timestamp: str
    request_id: str
    tool: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Keep identifiers, numbers and flags; summarize text and containers."""
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        sanitized.update(_sanitize_entry(key, arguments[key]))
    return sanitized


def _sanitize_entry(key: str, value: object) -> dict[str, object]:
    if isinstance(value, str):
        if key in _VERBATIM_STRING_KEYS:
            return {key: value}
        return {f"{key}_present": True, f"{key}_length": len(value)}
    if value is None or isinstance(value, (bool, int, float)):
        return {key: value}
    if isinstance(value, (list, tuple)):
        return {f"{key}_type": "list", f"{key}_length": len(value)}
    if isinstance(value, dict):
        return {f"{key}_type": "dict", f"{key}_keys": sorted(str(item) for item in value)}
    return {f"{key}_type": type(value).__name__}


class JsonlAuditLogger:
    """Append-only JSONL audit logger and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: AuditEvent) -> None:
        """Append a sanitized event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Return up to `limit` most recent events at or after `since`, oldest first."""
        if limit < 1 or not self._path.exists():
            return []
        recent: deque[dict[str, object]] = deque(maxlen=limit)
        for event in self._iter_events():
            timestamp = event.get("timestamp")
            if since is not None and (not isinstance(timestamp, str) or timestamp < since):
                continue
            recent.append(event)
        return list(recent)

    def _iter_events(self) -> Iterator[dict[str, object]]:
        # Partial or corrupt lines are skipped.
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if not stripped:
                    continue
                try:
                    event = json.loads(stripped)
                except json.JSONDecodeError:
                    continue
                if isinstance(event, dict):
                    yield event
