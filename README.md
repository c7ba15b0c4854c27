# authwatch

A small intrusion-detection service for SSH. It follows the system
authentication log, spots brute-force password attempts, writes alerts to a
JSON-lines file, blocks offending addresses with `iptables`, and exposes the
alerts and the block list over a local HTTP API.

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running

```
authwatch
```

On start-up the service:

1. removes alerts older than `--max-age` hours (24 by default) from the alerts
   file, dropping any line that is not a readable alert;
2. starts following the authentication log in a background thread;
3. serves the HTTP API with Flask.

Options:

| Option       | Default                | Meaning                                  |
|--------------|------------------------|------------------------------------------|
| `--log`      | `/var/log/auth.log`    | authentication log to watch              |
| `--alerts`   | `alerts.json`          | alerts file (one JSON object per line)   |
| `--blocked`  | `blocked_ips.json`     | blocked addresses file (one per line)    |
| `--host`     | `127.0.0.1`            | address to listen on                     |
| `--port`     | `8080`                 | port to listen on                        |
| `--max-age`  | `24`                   | hours after which alerts are discarded   |

If the log file does not exist, the monitoring thread logs an error and stops;
the API keeps running.

Reading the auth log and changing firewall rules need the right privileges:
blocking and unblocking run `sudo iptables`, so the user running the service
must be allowed to do that.

## What is detected

The log is read from where the last read stopped each time the file is
modified; the first read starts at the beginning of the file. Each line that
has an IP address right after the word `from` is examined:

| Log line contains   | Alert type      | Alert message                              |
|---------------------|-----------------|--------------------------------------------|
| `Failed password`   | `brute_force`   | `Tentative de brute-force SSH détectée`    |
| `Accepted password` | `login_success` | `Connexion SSH réussie`                    |
| `Invalid user`      | `invalid_user`  | `Tentative avec un utilisateur invalide`   |
| `Disconnected from` | `disconnected`  | `Déconnexion SSH`                          |

A brute-force alert is raised once an address has 5 failed passwords within
120 seconds. The address is then recorded in the block list and dropped with
`sudo iptables -A INPUT -s <ip> -j DROP`, unless it is already listed. Failures
from that address are ignored for five minutes after an alert.

Alerts are appended to the alerts file as JSON objects with the fields `ip`,
`message`, `timestamp` (RFC 3339, UTC) and `alert_type`.

## HTTP API

| Method   | Path             | Result                                             |
|----------|------------------|----------------------------------------------------|
| `GET`    | `/alerts`        | JSON list of alerts (`ip`, `message`, `timestamp`) |
| `GET`    | `/blocked`       | JSON list of blocked addresses                     |
| `DELETE` | `/blocked/<ip>`  | removes the address from the block list and runs `sudo iptables -D INPUT -s <ip> -j DROP` |

`DELETE /blocked/<ip>` answers 200 with a plain-text message, also when the
address was not listed; it answers 404 only when the block list file cannot
be read or rewritten. Every response carries headers allowing any origin.

## Using it from Python

```python
from authwatch.monitor import extract_ip, AttemptTracker, LogMonitor
from authwatch.alerts import Alert, load_alerts, record_alert, clean_old_alerts
from authwatch.firewall import block_ip, unblock_ip, get_blocked_ips, is_ip_blocked

extract_ip("Failed password for root from 203.0.113.7 port 22 ssh2")
# '203.0.113.7'
```

- `authwatch.alerts`: `Alert` (with `to_json()`), `parse_alert`,
  `append_alert`, `save_alert`, `record_alert`, `load_alerts` and
  `clean_old_alerts`, all taking the alerts file path.
- `authwatch.firewall`: `block_ip`, `unblock_ip`, `is_ip_blocked` and
  `get_blocked_ips`. `block_ip` and `unblock_ip` accept a `runner` callable
  used instead of running the command; `block_ip` raises `FirewallError` if
  the command cannot be started and returns `False` for a blank address.
- `authwatch.monitor`: `AttemptTracker.should_trigger_alert`,
  `LogMonitor.handle_line` (one line), `LogMonitor.read_new_lines` (the lines
  appended since the last read), `LogMonitor.run` and `start_monitoring`, which
  watch the file forever.
- `authwatch.api.create_app` builds the Flask application serving the API.
- `authwatch.dashboard.fetch_alerts` downloads the alert list from a running
  service (an empty list on any failure) and
  `authwatch.dashboard.render_alerts` turns alerts into an HTML fragment
  holding a table with the columns IP, Message and Horodatage.

## What it does not do

There is no browser dashboard: the service does not serve a web page, and
`render_alerts` only returns HTML as a string for you to place where you like.