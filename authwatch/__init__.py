"""Watch SSH authentication logs, record alerts, block brute-force sources and serve them over HTTP."""

__version__ = "0.1.0"