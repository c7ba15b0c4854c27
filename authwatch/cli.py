"""Command line entry point: clean old alerts, watch the log, serve the API."""

from __future__ import annotations

import argparse
import logging
import threading
from typing import Optional, Sequence

from authwatch.alerts import ALERTS_FILE, clean_old_alerts
from authwatch.api import create_app
from authwatch.firewall import BLOCKED_FILE
from authwatch.monitor import LOG_PATH, start_monitoring

log = logging.getLogger(__name__)


def _monitor(log_path: str, alerts_path: str, blocked_path: str) -> None:
    try:
        start_monitoring(log_path, alerts_path, blocked_path)
    except OSError as exc:
        log.error("log monitoring stopped: %s", exc)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SSH intrusion detection service.")
    parser.add_argument("--log", default=str(LOG_PATH), help="authentication log to watch")
    parser.add_argument("--alerts", default=str(ALERTS_FILE), help="alerts file")
    parser.add_argument("--blocked", default=str(BLOCKED_FILE), help="blocked addresses file")
    parser.add_argument("--host", default="127.0.0.1", help="address to listen on")
    parser.add_argument("--port", type=int, default=8080, help="port to listen on")
    parser.add_argument(
        "--max-age", type=float, default=24, help="hours after which alerts are discarded"
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the detection service until the web server stops."""
    args = _parser().parse_args(argv)
    print("🚀 IDS démarré !")

    clean_old_alerts(args.max_age, args.alerts)

    threading.Thread(
        target=_monitor, args=(args.log, args.alerts, args.blocked), daemon=True
    ).start()

    app = create_app(args.alerts, args.blocked)
    app.run(host=args.host, port=args.port, threaded=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())