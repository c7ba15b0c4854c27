"""HTTP API exposing recorded alerts and blocked addresses."""

from __future__ import annotations

from typing import Optional

from flask import Flask, Response, jsonify, request

from authwatch.alerts import ALERTS_FILE, PathLike, load_alerts
from authwatch.firewall import BLOCKED_FILE, Runner, get_blocked_ips, unblock_ip


def _allow_any_origin(response: Response) -> Response:
    response.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
    requested = request.headers.get("Access-Control-Request-Headers")
    response.headers["Access-Control-Allow-Headers"] = requested or "*"
    response.headers["Access-Control-Allow-Credentials"] = "true"
    return response


def create_app(
    alerts_path: PathLike = ALERTS_FILE,
    blocked_path: PathLike = BLOCKED_FILE,
    runner: Optional[Runner] = None,
) -> Flask:
    """Build the web application serving alerts and the block list."""
    app = Flask(__name__)
    app.after_request(_allow_any_origin)

    @app.get("/alerts")
    def get_alerts():
        alerts = load_alerts(alerts_path)
        return jsonify(
            [{"ip": a.ip, "message": a.message, "timestamp": a.timestamp} for a in alerts]
        )

    @app.get("/blocked")
    def get_blocked():
        return jsonify(get_blocked_ips(blocked_path))

    @app.delete("/blocked/<ip>")
    def delete_blocked(ip: str):
        if unblock_ip(ip, blocked_path, runner):
            return Response(f"✅ IP {ip} débloquée", status=200, mimetype="text/plain")
        return Response(
            f"❌ IP {ip} non trouvée ou erreur", status=404, mimetype="text/plain"
        )

    return app