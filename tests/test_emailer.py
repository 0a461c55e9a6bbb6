import smtplib

from utils.emailer import send_email


class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.sent = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, username, password):
        pass

    def send_message(self, msg):
        self.sent.append(msg)


class UnreachableSMTP(RecordingSMTP):
    def __init__(self, host, port, timeout=None):
        raise TimeoutError("timed out")


def configure_smtp(app, **overrides):
    app.config.update(SMTP_HOST="mail.example.com", SMTP_FROM_EMAIL="rooms@example.com", **overrides)


def test_unconfigured_mail_is_only_logged(app):
    assert send_email("alice@example.com", "Hello", "Body") == (False, "Email not configured")


def test_send_uses_configured_timeout(app, monkeypatch):
    RecordingSMTP.instances.clear()
    monkeypatch.setattr(smtplib, "SMTP", RecordingSMTP)
    configure_smtp(app, SMTP_TIMEOUT_SECONDS=2)

    assert send_email("alice@example.com", "Reservation Confirmation", "See you") == (True, None)
    server = RecordingSMTP.instances[-1]
    assert server.timeout == 2
    assert server.sent[0]["To"] == "alice@example.com"


def test_default_timeout_is_short(app):
    assert app.config["SMTP_TIMEOUT_SECONDS"] <= 5


def test_unreachable_server_reports_failure(app, monkeypatch):
    monkeypatch.setattr(smtplib, "SMTP", UnreachableSMTP)
    configure_smtp(app)

    ok, error = send_email("alice@example.com", "Hello", "Body")
    assert ok is False
    assert "timed out" in error
