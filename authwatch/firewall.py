"""Blocking and unblocking addresses with iptables, tracked in a text file."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

BLOCKED_FILE = Path("blocked_ips.json")

PathLike = Union[str, "os.PathLike[str]"]
Runner = Callable[[Sequence[str]], object]

log = logging.getLogger(__name__)


class FirewallError(RuntimeError):
    """Raised when the firewall command cannot be started."""


def _run(argv: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(list(argv), capture_output=True, check=False)


def _rule(action: str, ip: str) -> list[str]:
    return ["sudo", "iptables", action, "INPUT", "-s", ip, "-j", "DROP"]


def _read_lines(path: PathLike) -> Optional[list[str]]:
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def block_ip(ip: str, path: PathLike = BLOCKED_FILE, runner: Optional[Runner] = None) -> bool:
    """Add a DROP rule for ``ip`` and record it. Returns False for a blank address."""
    log.debug("blocking address %r", ip)
    if not ip.strip():
        log.warning("empty address, nothing blocked")
        return False
    try:
        (runner or _run)(_rule("-A", ip))
    except OSError as exc:
        raise FirewallError(f"cannot run iptables to block {ip}: {exc}") from exc
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"{ip}\n")
    return True


def is_ip_blocked(ip: str, path: PathLike = BLOCKED_FILE) -> bool:
    """Tell whether ``ip`` is recorded as blocked."""
    lines = _read_lines(path)
    return lines is not None and any(line.strip() == ip for line in lines)


def get_blocked_ips(path: PathLike = BLOCKED_FILE) -> list[str]:
    """Return every recorded blocked address, in file order."""
    lines = _read_lines(path) or []
    return [line.strip() for line in lines if line.strip()]


def unblock_ip(ip: str, path: PathLike = BLOCKED_FILE, runner: Optional[Runner] = None) -> bool:
    """Forget ``ip`` and remove its DROP rule.

    Returns False only when the record file cannot be read or rewritten.
    """
    lines = _read_lines(path)
    if lines is None:
        return False
    remaining = [line for line in lines if line.strip() != ip]
    try:
        with open(path, "w", encoding="utf-8") as handle:
            handle.writelines(f"{line}\n" for line in remaining)
    except OSError:
        return False
    try:
        (runner or _run)(_rule("-D", ip))
    except OSError as exc:
        log.warning("cannot run iptables to unblock %s: %s", ip, exc)
    return True