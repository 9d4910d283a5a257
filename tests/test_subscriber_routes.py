import smtplib
from datetime import datetime


def test_subscribe(client, outbox):
    response = client.post("/api/subscriber", json={"email": "Reader@Example.com", "source": "footer"})

    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "Subscribed successfully."}
    assert len(outbox) == 1
    assert outbox[0]["To"] == "reader@example.com"
    assert outbox[0]["Subject"] == "Welcome to the Doctor Derma Clinic newsletter"


def test_subscribe_twice_is_idempotent(client, outbox, database):
    client.post("/api/subscriber", json={"email": "reader@example.com"})
    outbox.clear()

    response = client.post("/api/subscriber", json={"email": "READER@example.com"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "You are already subscribed."}
    assert outbox == []
    assert database.collection("subscribers").count_documents({}) == 1


def test_subscribe_survives_email_failure(client, email_service, database):
    def fail(message):
        raise smtplib.SMTPException("quota exceeded")

    email_service._deliver = fail

    response = client.post("/api/subscriber", json={"email": "reader@example.com"})

    assert response.status_code == 201
    assert database.collection("subscribers").count_documents({}) == 1


def test_subscribe_validation(client):
    response = client.post("/api/subscriber", json={"email": "reader", "source": "x" * 51})

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"email", "source"}


def test_list_subscribers(client, database):
    for email in ("first@example.com", "second@example.com", "third@example.org"):
        client.post("/api/subscriber", json={"email": email})
    database.collection("subscribers").update_one(
        {"email": "first@example.com"}, {"$set": {"createdAt": datetime(2020, 1, 1)}}
    )

    body = client.get("/api/subscriber", params={"limit": 2}).json()
    assert body["message"] == "Subscribers retrieved successfully"
    assert "first@example.com" not in [item["email"] for item in body["data"]["subscribers"]]
    assert body["data"]["pagination"]["totalItems"] == 3
    assert body["data"]["pagination"]["totalPages"] == 2

    page_two = client.get("/api/subscriber", params={"limit": 2, "page": 2}).json()["data"]
    assert [item["email"] for item in page_two["subscribers"]] == ["first@example.com"]

    found = client.get("/api/subscriber", params={"search": "EXAMPLE.ORG"}).json()["data"]
    assert [item["email"] for item in found["subscribers"]] == ["third@example.org"]
