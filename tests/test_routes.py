import os
from pathlib import Path

from fastapi.testclient import TestClient
from google.api_core import exceptions as google_exceptions

from rakshak.services import incident_service as incident_service_module
from rakshak.services import stats_service as stats_service_module
from rakshak.services.incident_service import IncidentService, get_incident_service
from rakshak.services.stats_service import StatsService, get_stats_service
from rakshak.core.exceptions import ServiceUnavailableError
from rakshak.core.settings import settings
from rakshak.routes import health
from conftest import PNG_BYTES, make_incident, utc


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------

def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["health"] == "/api/health"


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["providers"]["database"] == "mock"


def test_database_health(client):
    response = client.get("/api/health/db")
    assert response.status_code == 200
    assert response.json()["connected"] is True
    # Default users are created on startup
    assert "users" in response.json()["collections"]


def test_database_health_when_unavailable(client, monkeypatch):
    monkeypatch.setattr(health, "get_db_or_none", lambda: None)

    response = client.get("/api/health/db")
    assert response.status_code == 503
    assert "error" in response.json()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def test_login_default_users(client):
    response = client.post("/api/auth/login", json={"username": "Admin", "password": "admin123"})
    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "admin"
    assert body["role"] == "admin"
    assert body["id"]

    response = client.post("/api/auth/login", json={"username": "moderator", "password": "mod123"})
    assert response.json()["role"] == "moderator"


def test_login_failure(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


# ---------------------------------------------------------------------------
# Incidents
# ---------------------------------------------------------------------------

def test_create_incident_form(client, upload_dir):
    response = client.post(
        "/api/incidents",
        data={
            "title": "Broken streetlight",
            "description": "Dark for a week",
            "category": "lighting",
            "latitude": "18.5204",
            "longitude": "73.8567",
            "address": "FC Road",
            "isAnonymous": "false",
            "reporterName": "Asha",
            "reporterContact": "asha@example.com",
        },
        files={"image": ("street.png", PNG_BYTES, "image/png")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Broken streetlight"
    assert body["status"] == "pending"
    assert body["priority"] == "normal"
    assert body["isSOS"] is False
    assert body["isAnonymous"] is False
    assert body["reporter"] == {"name": "Asha", "contact": "asha@example.com"}
    assert body["location"] == {"latitude": 18.5204, "longitude": 73.8567, "address": "FC Road"}
    assert body["image"].startswith("/uploads/")
    assert body["createdAt"]
    assert (upload_dir / os.path.basename(body["image"])).read_bytes() == PNG_BYTES


def test_uploaded_images_are_served(client):
    (Path(settings.UPLOAD_DIR) / "served.png").write_bytes(PNG_BYTES)

    response = client.get("/uploads/served.png")
    assert response.status_code == 200
    assert response.content == PNG_BYTES


def test_create_incident_validation_errors(client):
    response = client.post("/api/incidents", data={"title": "No description"})
    assert response.status_code == 400
    assert response.json() == {"error": "Title and description are required"}

    response = client.post("/api/incidents", data={"title": "t", "description": "d", "category": "alien"})
    assert response.status_code == 400
    assert "Invalid category" in response.json()["error"]


def test_create_incident_rejects_non_image(client):
    response = client.post(
        "/api/incidents",
        data={"title": "t", "description": "d"},
        files={"image": ("notes.txt", b"hello", "text/plain")},
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Only image files are allowed!"}


def test_list_incidents(client, services):
    db = services
    make_incident(db, utc(2024, 1, 1), category="fire", status="active")
    make_incident(db, utc(2024, 1, 2), category="theft")

    all_incidents = client.get("/api/incidents").json()
    assert [i["category"] for i in all_incidents] == ["theft", "fire"]

    fires = client.get("/api/incidents", params={"category": "fire", "status": "active"}).json()
    assert len(fires) == 1
    assert fires[0]["moderatorNotes"] is None

    response = client.get("/api/incidents", params={"priority": "urgent"})
    assert response.status_code == 400


def test_list_incidents_by_radius(client, services):
    db = services
    make_incident(db, utc(2024, 1, 1), location={"latitude": 18.5704, "longitude": 73.8567, "address": "near"})
    make_incident(db, utc(2024, 1, 2), location={"latitude": 19.5204, "longitude": 73.8567, "address": "far"})

    response = client.get("/api/incidents", params={"latitude": 18.5204, "longitude": 73.8567, "radius": 10})
    body = response.json()
    assert [i["location"]["address"] for i in body] == ["near"]
    assert body[0]["distance"] == 5.6


def test_get_patch_delete_incident(client, services):
    incident_id = make_incident(services, utc(2024, 1, 1))

    assert client.get(f"/api/incidents/{incident_id}").json()["id"] == incident_id

    response = client.patch(f"/api/incidents/{incident_id}", json={"status": "resolved", "notes": "Fixed"})
    assert response.status_code == 200
    assert response.json()["status"] == "resolved"
    assert response.json()["moderatorNotes"] == "Fixed"

    response = client.patch(f"/api/incidents/{incident_id}", json={"status": "archived"})
    assert response.status_code == 400

    response = client.delete(f"/api/incidents/{incident_id}")
    assert response.json() == {"message": "Incident deleted successfully"}

    response = client.get(f"/api/incidents/{incident_id}")
    assert response.status_code == 404
    assert response.json() == {"error": "Incident not found"}


def test_missing_incident_is_404_everywhere(client):
    assert client.patch("/api/incidents/missing", json={"status": "active"}).status_code == 404
    assert client.delete("/api/incidents/missing").status_code == 404


def test_create_returns_503_when_store_unavailable(app, client, monkeypatch, storage, sos_service):
    def unavailable():
        raise ServiceUnavailableError("Database not available. Please try again later.")

    monkeypatch.setattr(incident_service_module, "require_db", unavailable)
    app.dependency_overrides[get_incident_service] = lambda: IncidentService(storage=storage, sos_service=sos_service)

    response = client.post("/api/incidents", data={"title": "t", "description": "d"})
    assert response.status_code == 503
    assert response.json() == {"error": "Database not available. Please try again later."}


class _DownDocument:
    id = "down"

    def set(self, data):
        raise google_exceptions.ServiceUnavailable("firestore unreachable")


class _DownDB:
    def collection(self, name):
        return self

    def document(self, document_id=None):
        return _DownDocument()


def test_create_returns_503_when_store_fails_mid_request(app, client, storage, sos_service):
    app.dependency_overrides[get_incident_service] = lambda: IncidentService(
        db=_DownDB(), storage=storage, sos_service=sos_service
    )

    response = client.post("/api/incidents", data={"title": "t", "description": "d"})
    assert response.status_code == 503
    assert response.json() == {"error": "Database not available. Please try again later."}


# ---------------------------------------------------------------------------
# SOS
# ---------------------------------------------------------------------------

def test_sos_flow(app, contact_service, sms_channel, whatsapp_channel, db):
    contact_service.create_contact("user-7", "Ravi", "9876543210")

    with TestClient(app) as client:
        response = client.post(
            "/api/incidents/sos",
            data={"description": "Help", "latitude": "18.52", "longitude": "73.85", "userId": "user-7"},
        )
        assert response.status_code == 201
        body = response.json()

    # Shutdown waits for the background dispatch
    assert body["title"] == "SOS EMERGENCY"
    assert body["isSOS"] is True
    assert body["priority"] == "critical"
    assert body["status"] == "active"
    assert sms_channel.phones == ["+919876543210"]
    assert whatsapp_channel.phones == ["+919876543210"]


def test_send_sms_and_links(client, contact_service, sms_channel, services):
    incident_id = make_incident(services, utc(2024, 1, 1), is_sos=True, title="SOS EMERGENCY")
    contact_service.create_contact("default", "Ravi", "9876543210")

    response = client.post("/api/incidents/sos/send-sms", json={"incidentId": incident_id})
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "sent": 1,
        "total": 1,
        "results": [{"contact": "Ravi", "phone": "+919876543210", "success": True, "error": None}],
    }

    links = client.get(f"/api/incidents/{incident_id}/sos-links").json()
    assert links[0]["displayPhone"] == "+91 98765 43210"
    assert links[0]["url"].startswith("https://wa.me/919876543210")


def test_send_sms_errors(client, services):
    response = client.post("/api/incidents/sos/send-sms", json={"incidentId": "missing"})
    assert response.status_code == 404

    incident_id = make_incident(services, utc(2024, 1, 1), is_sos=True)
    response = client.post("/api/incidents/sos/send-sms", json={"incidentId": incident_id, "userId": "nobody"})
    assert response.status_code == 400
    assert response.json() == {"error": "No favorite contacts found"}


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------

def test_contacts_crud(client):
    response = client.post("/api/contacts", json={"name": "Ravi", "phone": "098765 43210"})
    assert response.status_code == 201
    contact = response.json()
    assert contact["phone"] == "+919876543210"
    assert contact["userId"] == "default"
    assert contact["isDefault"] is False

    other = client.post("/api/contacts", json={"name": "Meera", "phone": "8765432109", "userId": "user-42"}).json()

    assert [c["name"] for c in client.get("/api/contacts").json()] == ["Ravi"]
    assert [c["name"] for c in client.get("/api/contacts", params={"userId": "user-42"}).json()] == ["Meera"]

    # Wrong partition
    assert client.delete(f"/api/contacts/{other['id']}").status_code == 404

    response = client.delete(f"/api/contacts/{contact['id']}")
    assert response.json() == {"message": "Contact deleted successfully"}
    assert client.get("/api/contacts").json() == []


def test_contact_invalid_phone(client):
    response = client.post("/api/contacts", json={"name": "Ravi", "phone": "12345"})
    assert response.status_code == 400
    assert "valid 10-digit Indian mobile number" in response.json()["error"]


def test_default_contact_is_protected(client, contact_service):
    contact = contact_service.create_contact("default", "Police", "9876543210", is_default=True)

    response = client.delete(f"/api/contacts/{contact['id']}")
    assert response.status_code == 400
    assert response.json() == {"error": "Cannot delete default contact"}


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

def test_stats(client, services):
    make_incident(services, utc(2024, 1, 1), category="fire", status="active", priority="critical")
    make_incident(services, utc(2024, 1, 2), category="fire")

    assert client.get("/api/stats").json() == {
        "total": 2,
        "pending": 1,
        "active": 1,
        "resolved": 0,
        "critical": 1,
        "byCategory": {"fire": 2},
    }


def test_stats_when_store_unavailable(app, client, monkeypatch):
    monkeypatch.setattr(stats_service_module, "get_db_or_none", lambda: None)
    app.dependency_overrides[get_stats_service] = lambda: StatsService()

    response = client.get("/api/stats")
    assert response.status_code == 200
    assert response.json()["total"] == 0
    assert response.json()["byCategory"] == {}
