from datetime import timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from clinic_api.app import create_app
from clinic_api.config import Settings
from clinic_api.models.common import clinic_today
from clinic_api.services.database_service import DatabaseService
from clinic_api.services.email_service import EmailService


def make_settings(**overrides) -> Settings:
    values = dict(
        ENVIRONMENT="test",
        MONGODB_DB_NAME="clinic_test",
        EMAIL_USER="clinic@example.com",
        EMAIL_PASS="app-password",
        EMAIL_VERIFY_CONNECTION=False,
        CLINIC_NAME="Doctor Derma Clinic",
        CLINIC_EMAIL="admin@example.com",
        CLINIC_PHONE="+1 555 0100",
        CLINIC_ADDRESS="1 Main Street",
        CLINIC_TIMEZONE="UTC",
        RATE_LIMIT_MAX_REQUESTS=1000,
        REDIS_URL="",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def test_settings():
    return make_settings()


@pytest.fixture
def database():
    return DatabaseService(client=mongomock.MongoClient(), db_name="clinic_test")


@pytest.fixture
def outbox():
    """Messages handed to the SMTP transport"""
    return []


@pytest.fixture
def email_service(test_settings, outbox):
    service = EmailService(test_settings)
    service._deliver = outbox.append
    return service


@pytest.fixture
def client(test_settings, database, email_service):
    app = create_app(test_settings, database=database, email_service=email_service)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def tomorrow():
    return (clinic_today("UTC") + timedelta(days=1)).isoformat()


@pytest.fixture
def appointment_payload(tomorrow):
    return {
        "name": "Jane Doe",
        "email": "Jane.Doe@Example.com",
        "phone": "+1 (555) 123-4567",
        "treatmentType": "Acne Treatment",
        "preferredDate": tomorrow,
        "preferredTime": "10:00 AM",
        "message": "First visit.\nPlease call after 5pm.",
    }


@pytest.fixture
def contact_payload():
    return {
        "name": "John Smith",
        "email": "john@example.com",
        "subject": "Question about laser treatment",
        "message": "Do you offer laser hair removal on weekends?",
    }


@pytest.fixture
def blog_payload():
    return {
        "title": "Caring for your skin in winter",
        "slug": "winter-skin-care",
        "excerpt": "Simple steps to keep your skin healthy when it gets cold.",
        "content": "<p>Moisturise often and keep showers short.</p>",
        "category": "Skin Care",
        "tags": ["winter", "skin", "winter"],
    }
