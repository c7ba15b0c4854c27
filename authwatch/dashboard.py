"""Fetching alerts from the API and rendering them as an HTML table."""

from __future__ import annotations

import json
import urllib.request
from html import escape
from typing import Iterable

from authwatch.alerts import Alert

ALERTS_URL = "http://127.0.0.1:8080/alerts"
TITLE = "IDS - Alertes détectées"


def fetch_alerts(url: str = ALERTS_URL) -> list[Alert]:
    """Download the alert list; any failure yields an empty list."""
    try:
        with urllib.request.urlopen(url, timeout=10) as response:
            data = json.loads(response.read().decode("utf-8"))
    except (OSError, ValueError):
        return []
    if not isinstance(data, list):
        return []
    alerts = []
    for item in data:
        if not isinstance(item, dict):
            return []
        fields = [item.get(key) for key in ("ip", "message", "timestamp")]
        if not all(isinstance(value, str) for value in fields):
            return []
        alerts.append(Alert(*fields))
    return alerts


def render_alerts(alerts: Iterable[Alert]) -> str:
    """Render alerts as an HTML page holding a single table."""
    rows = "".join(
        "<tr>"
        f"<td>{escape(alert.ip)}</td>"
        f"<td>{escape(alert.message)}</td>"
        f"<td>{escape(alert.timestamp)}</td>"
        "</tr>"
        for alert in alerts
    )
    return (
        "<div>"
        f"<h1>{escape(TITLE)}</h1>"
        '<table border="1">'
        "<thead><tr><th>IP</th><th>Message</th><th>Horodatage</th></tr></thead>"
        f"<tbody>{rows}</tbody>"
        "</table>"
        "</div>"
    )