import smtplib
from datetime import datetime

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from clinic_api.app import create_app

from conftest import make_settings


def submit(client, payload, **overrides):
    response = client.post("/api/contact", json={**payload, **overrides})
    assert response.status_code == 201, response.text
    return response.json()["data"]


def failing_transport(message):
    raise smtplib.SMTPException("authentication failed")


def test_submit_contact(client, contact_payload, outbox):
    response = client.post("/api/contact", json={**contact_payload, "email": "John@Example.com"})

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Thank you for your message! We will get back to you soon."
    assert set(body["data"]) == {"id", "name", "email", "subject", "status", "createdAt"}
    assert body["data"]["email"] == "john@example.com"
    assert body["data"]["status"] == "new"

    assert [message["Subject"] for message in outbox] == [
        "Thank you for contacting us - Question about laser treatment",
        "Contact Form: Question about laser treatment",
    ]
    assert outbox[1]["To"] == "admin@example.com"
    assert outbox[1]["Reply-To"] == "john@example.com"


@pytest.mark.parametrize("field,value", [
    ("name", "J"),
    ("email", "john"),
    ("subject", "Hi"),
    ("message", "Too short"),
    ("message", "x" * 2001),
])
def test_submit_contact_validation(client, contact_payload, field, value):
    response = client.post("/api/contact", json={**contact_payload, field: value})

    assert response.status_code == 400
    assert field in [error["field"] for error in response.json()["errors"]]


def test_submit_contact_fails_when_email_fails(client, contact_payload, email_service, database):
    email_service._deliver = failing_transport

    response = client.post("/api/contact", json=contact_payload)

    assert response.status_code == 500
    assert response.json()["success"] is False
    # the message was stored before the email attempt
    assert database.collection("contacts").count_documents({}) == 1


def test_submit_contact_best_effort_mode(database, email_service, contact_payload):
    email_service._deliver = failing_transport
    app = create_app(make_settings(EMAIL_FAILURES_BEST_EFFORT=True), database=database, email_service=email_service)

    with TestClient(app) as client:
        response = client.post("/api/contact", json=contact_payload)

    assert response.status_code == 201


def test_submit_contact_with_email_disabled(database, contact_payload, outbox):
    settings = make_settings(EMAIL_USER="", EMAIL_PASS="")
    app = create_app(settings, database=database)
    app.state.email_service._deliver = outbox.append

    with TestClient(app) as client:
        response = client.post("/api/contact", json=contact_payload)

        assert response.status_code == 201
        assert client.get("/health").json()["email"] == {"enabled": False}
    assert outbox == []


def test_list_contacts_newest_first_with_search(client, contact_payload, database):
    submit(client, contact_payload, name="First Sender")
    database.collection("contacts").update_one(
        {"name": "First Sender"}, {"$set": {"createdAt": datetime(2020, 1, 1)}}
    )
    submit(client, contact_payload, name="Second Sender", subject="Pricing for chemical peels")

    data = client.get("/api/contact").json()["data"]
    assert [item["name"] for item in data["contacts"]] == ["Second Sender", "First Sender"]
    assert data["pagination"]["totalItems"] == 2

    data = client.get("/api/contact", params={"search": "PEELS"}).json()["data"]
    assert [item["name"] for item in data["contacts"]] == ["Second Sender"]


def test_search_is_literal_text(client, contact_payload):
    submit(client, contact_payload)

    data = client.get("/api/contact", params={"search": ".*"}).json()["data"]

    assert data["contacts"] == []


def test_update_contact(client, contact_payload):
    created = submit(client, contact_payload)

    response = client.put(
        f"/api/contact/{created['id']}",
        json={"status": "replied", "priority": "high", "assignedTo": "Dr. Rao", "subject": "ignored"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "replied"
    assert data["priority"] == "high"
    assert data["assignedTo"] == "Dr. Rao"
    assert data["subject"] == contact_payload["subject"]


def test_update_contact_rejects_bad_status(client, contact_payload):
    created = submit(client, contact_payload)

    response = client.put(f"/api/contact/{created['id']}", json={"status": "spam"})

    assert response.status_code == 400


def test_get_and_delete_contact(client, contact_payload):
    created = submit(client, contact_payload)

    assert client.get(f"/api/contact/{created['id']}").json()["data"]["message"] == contact_payload["message"]
    assert client.delete(f"/api/contact/{created['id']}").json()["message"] == "Contact deleted successfully"
    assert client.get(f"/api/contact/{created['id']}").status_code == 404
    assert client.delete(f"/api/contact/{ObjectId()}").status_code == 404


def test_contact_stats(client, contact_payload):
    first = submit(client, contact_payload)
    second = submit(client, contact_payload)
    client.put(f"/api/contact/{first['id']}", json={"status": "read", "priority": "high"})
    client.put(f"/api/contact/{second['id']}", json={"status": "archived", "priority": "low"})
    submit(client, contact_payload)

    data = client.get("/api/contact/stats/summary").json()["data"]

    assert data == {
        "total": 3,
        "new": 1,
        "read": 1,
        "replied": 0,
        "archived": 1,
        "highPriority": 1,
        "mediumPriority": 1,
        "lowPriority": 1,
    }
