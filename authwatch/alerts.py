"""Alert records stored as one JSON object per line."""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, Union

ALERTS_FILE = Path("alerts.json")
BRUTE_FORCE_MESSAGE = "Tentative de brute-force SSH détectée"

PathLike = Union[str, "os.PathLike[str]"]

_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


@dataclass
class Alert:
    """A single detection event."""

    ip: str
    message: str
    timestamp: str
    alert_type: Optional[str] = None

    def to_json(self) -> str:
        """Serialise the alert as a compact single-line JSON object."""
        data = {"ip": self.ip, "message": self.message, "timestamp": self.timestamp}
        if self.alert_type is not None:
            data["alert_type"] = self.alert_type
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_rfc3339(text: str) -> Optional[datetime]:
    match = _RFC3339.match(text)
    if match is None:
        return None
    date, clock, fraction, offset = match.groups()
    micros = (fraction or "")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        return datetime.fromisoformat(f"{date}T{clock}.{micros}{offset}")
    except ValueError:
        return None


def _split_lines(text: str) -> list[str]:
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_alert(line: str) -> Optional[Alert]:
    """Parse one JSON line into an Alert, or return None if it is not one."""
    try:
        data = json.loads(line)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    fields = [data.get(key) for key in ("ip", "message", "timestamp")]
    if not all(isinstance(value, str) for value in fields):
        return None
    alert_type = data.get("alert_type")
    return Alert(*fields, alert_type=alert_type if isinstance(alert_type, str) else None)


def append_alert(alert: Alert, path: PathLike = ALERTS_FILE) -> None:
    """Append an alert as a new line to the alerts file."""
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(alert.to_json() + "\n")


def save_alert(ip: str, path: PathLike = ALERTS_FILE) -> Alert:
    """Record a brute-force alert for ``ip`` stamped with the current time."""
    alert = Alert(ip, BRUTE_FORCE_MESSAGE, _now_rfc3339())
    append_alert(alert, path)
    return alert


def record_alert(ip: str, message: str, alert_type: str, path: PathLike = ALERTS_FILE) -> Alert:
    """Record a typed alert for ``ip`` stamped with the current time."""
    alert = Alert(ip, message, _now_rfc3339(), alert_type)
    append_alert(alert, path)
    return alert


def load_alerts(path: PathLike = ALERTS_FILE) -> list[Alert]:
    """Return every well-formed alert in the file; a missing file gives none."""
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    return [alert for alert in map(parse_alert, _split_lines(content)) if alert is not None]


def clean_old_alerts(
    max_age_hours: float = 24,
    path: PathLike = ALERTS_FILE,
    now: Optional[datetime] = None,
) -> list[Alert]:
    """Rewrite the alerts file keeping only alerts no older than ``max_age_hours``.

    Lines that are not alerts or whose timestamp cannot be read are dropped.
    Returns the alerts kept; an unreadable file is left untouched.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    current = now if now is not None else datetime.now(timezone.utc)
    max_age = timedelta(hours=max_age_hours)
    kept = []
    for alert in map(parse_alert, _split_lines(content)):
        if alert is None:
            continue
        stamp = _parse_rfc3339(alert.timestamp)
        if stamp is not None and current - stamp <= max_age:
            kept.append(alert)

    try:
        with open(path, "w", encoding="utf-8") as handle:
            handle.writelines(alert.to_json() + "\n" for alert in kept)
    except OSError:
        return []
    return kept