import asyncio
import smtplib
from datetime import datetime

import pytest

from clinic_api.errors import NotificationError
from clinic_api.services.email_service import EmailService
from clinic_api.services.email_templates import ClinicInfo, Scenario, compose_email

from conftest import make_settings

CLINIC = ClinicInfo(name="Doctor Derma Clinic", email="admin@example.com", phone="+1 555 0100")

APPOINTMENT = {
    "name": "Jane <Doe>",
    "email": "jane@example.com",
    "phone": "+1 555 123 4567",
    "treatment_type": "Chemical Peels",
    "preferred_date": datetime(2026, 10, 19),
    "preferred_time": "9:00 AM",
    "message": "line one\nline two",
    "reference_id": "APT-ABCDEF12",
}


def html_of(message):
    return message.get_payload()[0].get_payload(decode=True).decode("utf-8")


def test_patient_acknowledgement():
    message = compose_email(Scenario.APPOINTMENT_REQUEST_CONFIRMATION, APPOINTMENT, CLINIC, "clinic@example.com")

    assert message["To"] == "jane@example.com"
    assert message["From"] == "Doctor Derma Clinic <clinic@example.com>"
    assert message["Reply-To"] is None
    html = html_of(message)
    assert "Monday, October 19, 2026" in html
    assert "APT-ABCDEF12" in html
    assert "+1 555 0100" in html


def test_admin_alert_goes_to_clinic_and_escapes_input():
    message = compose_email(Scenario.APPOINTMENT_ADMIN_ALERT, APPOINTMENT, CLINIC, "clinic@example.com")

    assert message["To"] == "admin@example.com"
    assert message["Reply-To"] == "jane@example.com"
    html = html_of(message)
    assert "Jane &lt;Doe&gt;" in html
    assert "line one<br>line two" in html


def test_admin_alert_falls_back_to_sender_address():
    clinic = ClinicInfo(name="Doctor Derma Clinic")

    message = compose_email(Scenario.CONTACT_ADMIN_ALERT, {
        "name": "John", "email": "john@example.com", "subject": "Hello there", "message": "Hi",
    }, clinic, "clinic@example.com")

    assert message["To"] == "clinic@example.com"
    assert message["Subject"] == "Contact Form: Hello there"


def test_confirmation_uses_appointment_slot():
    payload = {**APPOINTMENT, "appointment_date": datetime(2026, 10, 21), "appointment_time": "2:00 PM"}

    message = compose_email(Scenario.APPOINTMENT_CONFIRMED, payload, CLINIC, "clinic@example.com")

    assert message["Subject"] == "Appointment Confirmed - Chemical Peels"
    html = html_of(message)
    assert "Wednesday, October 21, 2026" in html
    assert "2:00 PM" in html


@pytest.mark.parametrize("scenario", list(Scenario))
def test_every_scenario_renders(scenario):
    payload = {
        **APPOINTMENT,
        "subject": "A question",
        "appointment_date": datetime(2026, 10, 21),
        "appointment_time": "2:00 PM",
    }

    message = compose_email(scenario, payload, CLINIC, "clinic@example.com")

    assert message["Subject"]
    assert "Doctor Derma Clinic" in html_of(message)


def test_disabled_service_skips_transport():
    service = EmailService(make_settings(EMAIL_USER="", EMAIL_PASS=""))
    delivered = []
    service._deliver = delivered.append

    sent = asyncio.run(service.send(Scenario.SUBSCRIPTION_CONFIRMATION, {"email": "reader@example.com"}))

    assert sent is False
    assert delivered == []
    assert service.verify_connection() is False


def test_notify_best_effort_swallows_transport_errors():
    service = EmailService(make_settings())

    def fail(message):
        raise smtplib.SMTPException("boom")

    service._deliver = fail

    sent = asyncio.run(service.notify(Scenario.SUBSCRIPTION_CONFIRMATION, {"email": "reader@example.com"}))

    assert sent is False


def test_notify_required_raises_notification_error():
    service = EmailService(make_settings())

    def fail(message):
        raise ConnectionRefusedError("no SMTP server")

    service._deliver = fail

    with pytest.raises(NotificationError):
        asyncio.run(service.notify(
            Scenario.SUBSCRIPTION_CONFIRMATION, {"email": "reader@example.com"}, required=True
        ))


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None, context=None):
        self.host, self.port = host, port
        self.calls = []
        FakeSMTP.instances.append(self)

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, message):
        self.calls.append(("send", message["To"]))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.calls.append("quit")


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


def test_send_over_starttls(fake_smtp):
    service = EmailService(make_settings(EMAIL_HOST="smtp.example.com", EMAIL_PORT=587))

    sent = asyncio.run(service.send(Scenario.SUBSCRIPTION_CONFIRMATION, {"email": "reader@example.com"}))

    assert sent is True
    (server,) = fake_smtp.instances
    assert (server.host, server.port) == ("smtp.example.com", 587)
    assert server.calls == [
        "starttls",
        ("login", "clinic@example.com", "app-password"),
        ("send", "reader@example.com"),
        "quit",
    ]


def test_secure_port_skips_starttls(fake_smtp):
    service = EmailService(make_settings(EMAIL_PORT=465))

    assert service.verify_connection() is True
    (server,) = fake_smtp.instances
    assert "starttls" not in server.calls
