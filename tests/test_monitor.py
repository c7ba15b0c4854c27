from datetime import datetime, timedelta, timezone

import pytest

from authwatch.alerts import load_alerts
from authwatch.firewall import get_blocked_ips
from authwatch.monitor import AttemptTracker, LogMonitor, extract_ip

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
FAILED = "sshd[1]: Failed password for root from {ip} port 22 ssh2"


class RecordingRunner:
    def __init__(self):
        self.calls = []

    def __call__(self, argv):
        self.calls.append(list(argv))


@pytest.fixture
def monitor(tmp_path):
    return LogMonitor(
        tmp_path / "auth.log",
        tmp_path / "alerts.json",
        tmp_path / "blocked.json",
        runner=RecordingRunner(),
    )


@pytest.mark.parametrize(
    "line, expected",
    [
        ("Failed password for root from 192.168.1.10 port 22 ssh2", "192.168.1.10"),
        ("Accepted password for bob from 2001:db8::1 port 22", "2001:db8::1"),
        ("Failed password for root from host.example.com port 22", None),
        ("Connection closed by 192.168.1.10", None),
        ("Disconnected from", None),
        ("from 999.1.1.1 port", None),
    ],
)
def test_extract_ip(line, expected):
    assert extract_ip(line) == expected


def test_tracker_triggers_at_threshold():
    tracker = AttemptTracker()
    results = [tracker.should_trigger_alert("10.2.0.1", NOW + timedelta(seconds=i)) for i in range(5)]
    assert results == [False, False, False, False, True]


def test_tracker_forgets_attempts_outside_window():
    tracker = AttemptTracker(max_attempts=2, window=timedelta(seconds=120))
    assert tracker.should_trigger_alert("10.2.0.2", NOW) is False
    assert tracker.should_trigger_alert("10.2.0.2", NOW + timedelta(seconds=121)) is False
    assert tracker.should_trigger_alert("10.2.0.2", NOW + timedelta(seconds=122)) is True


def test_tracker_counts_addresses_separately():
    tracker = AttemptTracker(max_attempts=2)
    assert tracker.should_trigger_alert("10.2.0.3", NOW) is False
    assert tracker.should_trigger_alert("10.2.0.4", NOW) is False
    assert tracker.should_trigger_alert("10.2.0.3", NOW) is True


def test_brute_force_alerts_and_blocks(monitor):
    line = FAILED.format(ip="10.2.0.5")
    results = [monitor.handle_line(line, NOW + timedelta(seconds=i)) for i in range(5)]
    assert results == [None, None, None, None, "brute_force"]
    alerts = load_alerts(monitor.alerts_path)
    assert [(a.ip, a.alert_type) for a in alerts] == [("10.2.0.5", "brute_force")]
    assert alerts[0].message == "Tentative de brute-force SSH détectée"
    assert get_blocked_ips(monitor.blocked_path) == ["10.2.0.5"]
    assert monitor.runner.calls[0][2] == "-A"


def test_cooldown_suppresses_repeat_alerts(monitor):
    line = FAILED.format(ip="10.2.0.6")
    for i in range(5):
        monitor.handle_line(line, NOW + timedelta(seconds=i))
    assert monitor.handle_line(line, NOW + timedelta(seconds=10)) is None
    assert len(load_alerts(monitor.alerts_path)) == 1


def test_already_blocked_address_is_not_blocked_again(monitor):
    monitor.blocked_path.write_text("10.2.0.7\n", encoding="utf-8")
    line = FAILED.format(ip="10.2.0.7")
    for i in range(5):
        monitor.handle_line(line, NOW + timedelta(seconds=i))
    assert monitor.runner.calls == []
    assert get_blocked_ips(monitor.blocked_path) == ["10.2.0.7"]


@pytest.mark.parametrize(
    "line, alert_type, message",
    [
        ("Accepted password for bob from 10.2.0.8 port 22", "login_success", "Connexion SSH réussie"),
        ("Invalid user admin from 10.2.0.8 port 22", "invalid_user", "Tentative avec un utilisateur invalide"),
        ("Disconnected from 10.2.0.8 port 22", "disconnected", "Déconnexion SSH"),
    ],
)
def test_other_events_are_recorded(monitor, line, alert_type, message):
    assert monitor.handle_line(line, NOW) == alert_type
    alerts = load_alerts(monitor.alerts_path)
    assert [(a.ip, a.message, a.alert_type) for a in alerts] == [("10.2.0.8", message, alert_type)]


def test_line_without_address_is_ignored(monitor):
    assert monitor.handle_line("Accepted password for bob", NOW) is None
    assert load_alerts(monitor.alerts_path) == []


def test_read_new_lines_only_reads_appended_text(monitor):
    monitor.log_path.write_text(
        "Accepted password for bob from 10.2.0.9 port 22\nnoise\n", encoding="utf-8"
    )
    assert monitor.read_new_lines() == ["login_success"]
    assert monitor.position == monitor.log_path.stat().st_size
    with open(monitor.log_path, "a", encoding="utf-8") as handle:
        handle.write("Disconnected from 10.2.0.9 port 22\n")
    assert monitor.read_new_lines() == ["disconnected"]
    assert monitor.read_new_lines() == []
    assert len(load_alerts(monitor.alerts_path)) == 2


def test_run_requires_existing_log(monitor):
    with pytest.raises(FileNotFoundError):
        monitor.run()