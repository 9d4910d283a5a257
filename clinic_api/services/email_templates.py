"""
Email templates
HTML bodies are rendered from the jinja2 templates in templates/email; every
scenario extends base.html.
"""
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup, escape

from clinic_api.models.common import format_long_date

# Clinic colors - Blue for enquiries, green for appointments
THEME = {
    "primary": "#1e40af",
    "primary_gradient": "linear-gradient(135deg, #3b82f6 0%, #1e40af 100%)",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "info_bg": "#eff6ff",
    "success": "#059669",
    "success_gradient": "linear-gradient(135deg, #10b981 0%, #059669 100%)",
    "success_bg": "#ecfdf5",
    "warning": "#92400e",
    "warning_bg": "#fef3c7",
}


def nl2br(value: Optional[str]) -> Markup:
    if not value:
        return Markup("")
    return Markup("<br>").join(escape(value).split("\n"))


environment = Environment(
    loader=PackageLoader("clinic_api", "templates/email"),
    autoescape=select_autoescape(["html"]),
)
environment.filters["nl2br"] = nl2br
environment.filters["long_date"] = format_long_date


class Scenario(str, Enum):
    CONTACT_CONFIRMATION = "contact_confirmation"
    CONTACT_ADMIN_ALERT = "contact_admin_alert"
    APPOINTMENT_REQUEST_CONFIRMATION = "appointment_request_confirmation"
    APPOINTMENT_ADMIN_ALERT = "appointment_admin_alert"
    APPOINTMENT_CONFIRMED = "appointment_confirmed"
    SUBSCRIPTION_CONFIRMATION = "subscription_confirmation"


@dataclass(frozen=True)
class ClinicInfo:
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""


@dataclass(frozen=True)
class ScenarioSpec:
    subject: Callable[[Mapping[str, Any], ClinicInfo], str]
    to_clinic: bool = False
    accent: str = THEME["primary_gradient"]


SCENARIOS: Dict[Scenario, ScenarioSpec] = {
    Scenario.CONTACT_CONFIRMATION: ScenarioSpec(
        subject=lambda p, c: f"Thank you for contacting us - {p['subject']}",
    ),
    Scenario.CONTACT_ADMIN_ALERT: ScenarioSpec(
        subject=lambda p, c: f"Contact Form: {p['subject']}",
        to_clinic=True,
    ),
    Scenario.APPOINTMENT_REQUEST_CONFIRMATION: ScenarioSpec(
        subject=lambda p, c: f"Appointment Request Received - {p['treatment_type']}",
        accent=THEME["success_gradient"],
    ),
    Scenario.APPOINTMENT_ADMIN_ALERT: ScenarioSpec(
        subject=lambda p, c: f"New Appointment Request - {p['treatment_type']}",
        to_clinic=True,
        accent=THEME["success_gradient"],
    ),
    Scenario.APPOINTMENT_CONFIRMED: ScenarioSpec(
        subject=lambda p, c: f"Appointment Confirmed - {p['treatment_type']}",
        accent=THEME["success_gradient"],
    ),
    Scenario.SUBSCRIPTION_CONFIRMATION: ScenarioSpec(
        subject=lambda p, c: f"Welcome to the {c.name} newsletter",
    ),
}


def render_email(scenario: Scenario, payload: Mapping[str, Any], clinic: ClinicInfo) -> str:
    spec = SCENARIOS[scenario]
    template = environment.get_template(f"{Scenario(scenario).value}.html")
    return template.render(theme=THEME, accent=spec.accent, clinic=clinic, **payload)


def compose_email(
    scenario: Scenario,
    payload: Mapping[str, Any],
    clinic: ClinicInfo,
    sender_address: str,
) -> MIMEMultipart:
    """
    Build the outgoing message for a scenario

    Args:
        scenario: Which email to send
        payload: Template values (name, email, subject, treatment_type, ...)
        clinic: Clinic display info; its email receives admin alerts
        sender_address: SMTP account the message is sent from

    Returns:
        Message ready for smtplib.SMTP.send_message
    """
    spec = SCENARIOS[scenario]

    msg = MIMEMultipart("alternative")
    msg["Subject"] = spec.subject(payload, clinic)
    msg["From"] = formataddr((clinic.name, sender_address))
    msg["To"] = (clinic.email or sender_address) if spec.to_clinic else payload["email"]
    if spec.to_clinic:
        # admin alerts are answered straight to the patient
        msg["Reply-To"] = payload["email"]

    msg.attach(MIMEText(render_email(scenario, payload, clinic), "html", "utf-8"))
    return msg
