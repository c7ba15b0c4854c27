"""Watching an SSH authentication log and raising alerts."""

from __future__ import annotations

import ipaddress
import logging
import os
import queue
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from authwatch.alerts import ALERTS_FILE, PathLike, record_alert
from authwatch.firewall import BLOCKED_FILE, Runner, block_ip, is_ip_blocked

LOG_PATH = Path("/var/log/auth.log")
MAX_ATTEMPTS = 5
TIME_WINDOW = timedelta(seconds=120)
ALERT_COOLDOWN = timedelta(minutes=5)

log = logging.getLogger(__name__)

# (marker in the log line, alert message, alert type)
_EVENTS = (
    ("Accepted password", "Connexion SSH réussie", "login_success"),
    ("Invalid user", "Tentative avec un utilisateur invalide", "invalid_user"),
    ("Disconnected from", "Déconnexion SSH", "disconnected"),
)


def extract_ip(line: str) -> Optional[str]:
    """Return the IP address following the first word "from", if it is one."""
    words = line.split()
    try:
        candidate = words[words.index("from") + 1]
    except (ValueError, IndexError):
        return None
    if "%" in candidate:
        return None
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return None
    return candidate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptTracker:
    """Counts failed attempts per address within a sliding time window."""

    def __init__(self, max_attempts: int = MAX_ATTEMPTS, window: timedelta = TIME_WINDOW):
        self.max_attempts = max_attempts
        self.window = window
        self._attempts: dict[str, list[datetime]] = defaultdict(list)

    def should_trigger_alert(self, ip: str, now: Optional[datetime] = None) -> bool:
        """Record one attempt from ``ip`` and tell whether the threshold is reached."""
        current = now if now is not None else _utcnow()
        recent = [t for t in self._attempts[ip] if current - t <= self.window]
        recent.append(current)
        self._attempts[ip] = recent
        return len(recent) >= self.max_attempts


class _ModifiedHandler(FileSystemEventHandler):
    def __init__(self, target: Path, events: "queue.Queue[None]"):
        super().__init__()
        self._target = target
        self._events = events

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(os.fsdecode(event.src_path)).resolve() == self._target:
            self._events.put(None)


class LogMonitor:
    """Reads new lines of an authentication log and reacts to each one."""

    def __init__(
        self,
        log_path: PathLike = LOG_PATH,
        alerts_path: PathLike = ALERTS_FILE,
        blocked_path: PathLike = BLOCKED_FILE,
        runner: Optional[Runner] = None,
        tracker: Optional[AttemptTracker] = None,
        cooldown: timedelta = ALERT_COOLDOWN,
    ):
        self.log_path = Path(log_path)
        self.alerts_path = alerts_path
        self.blocked_path = blocked_path
        self.runner = runner
        self.tracker = tracker if tracker is not None else AttemptTracker()
        self.cooldown = cooldown
        self.position = 0
        self._alerted: dict[str, datetime] = {}

    def handle_line(self, line: str, now: Optional[datetime] = None) -> Optional[str]:
        """Process one log line; return the type of alert recorded, if any."""
        ip = extract_ip(line)
        if ip is None:
            return None
        current = now if now is not None else _utcnow()

        if "Failed password" in line:
            last = self._alerted.get(ip)
            if last is not None and current - last < self.cooldown:
                return None
            if not self.tracker.should_trigger_alert(ip, current):
                return None
            log.warning("brute-force attempt detected from %s", ip)
            record_alert(ip, "Tentative de brute-force SSH détectée", "brute_force", self.alerts_path)
            self._alerted[ip] = current
            if not is_ip_blocked(ip, self.blocked_path):
                block_ip(ip, self.blocked_path, self.runner)
            return "brute_force"

        for marker, message, alert_type in _EVENTS:
            if marker in line:
                log.info("%s: %s", message, ip)
                record_alert(ip, message, alert_type, self.alerts_path)
                return alert_type
        return None

    def read_new_lines(self) -> list[str]:
        """Process lines appended since the last read; return the alert types raised."""
        raised = []
        with open(self.log_path, "rb") as handle:
            handle.seek(self.position)
            for raw in handle:
                self.position += len(raw)
                try:
                    line = raw.decode("utf-8").rstrip("\r\n")
                except UnicodeDecodeError:
                    continue
                alert_type = self.handle_line(line)
                if alert_type is not None:
                    raised.append(alert_type)
        return raised

    def run(self) -> None:
        """Watch the log file and process it each time it is modified. Never returns."""
        if not self.log_path.exists():
            raise FileNotFoundError(f"log file not found: {self.log_path}")
        target = self.log_path.resolve()
        events: "queue.Queue[None]" = queue.Queue()
        observer = Observer()
        observer.schedule(_ModifiedHandler(target, events), str(target.parent), recursive=False)
        observer.start()
        try:
            while True:
                events.get()
                self.read_new_lines()
        finally:
            observer.stop()
            observer.join()


def start_monitoring(
    log_path: PathLike = LOG_PATH,
    alerts_path: PathLike = ALERTS_FILE,
    blocked_path: PathLike = BLOCKED_FILE,
) -> None:
    """Monitor ``log_path`` forever, recording alerts and blocking attackers."""
    print(f"Surveillance de {log_path}")
    LogMonitor(log_path, alerts_path, blocked_path).run()