import os
import tempfile
import threading
from datetime import datetime, timezone

# Settings are read at import time, so the environment is fixed before any
# rakshak module is imported.
os.environ["USE_MOCK_DB"] = "true"
os.environ["MOCK_DB_PATH"] = ""
os.environ["STORAGE_PROVIDER"] = "local"
os.environ["MESSAGING_PROVIDER"] = "mock"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="rakshak-uploads-")

import pytest

from rakshak.config import firebase
from rakshak.config.mock_firestore import MockFirestore
from rakshak.services import contact_service as contact_service_module
from rakshak.services import incident_service as incident_service_module
from rakshak.services import sos_service as sos_service_module
from rakshak.services import stats_service as stats_service_module
from rakshak.services import user_service as user_service_module
from rakshak.services.contact_service import ContactService
from rakshak.services.incident_service import IncidentService
from rakshak.services.messaging import MessagingChannel, MessagingChannels
from rakshak.services.messaging.base import failure_result, success_result
from rakshak.services.sos_service import SOSService
from rakshak.services.stats_service import StatsService
from rakshak.services.storage import LocalStorageProvider
from rakshak.services.user_service import UserService


class RecordingChannel(MessagingChannel):
    """Messaging channel that records every send instead of delivering it."""

    def __init__(self, channel_name, fail_for=(), raise_for=()):
        self.channel_name = channel_name
        self.fail_for = set(fail_for)
        self.raise_for = set(raise_for)
        self.sent = []
        self._lock = threading.Lock()

    def send(self, phone, message):
        with self._lock:
            self.sent.append((phone, message))
        if phone in self.raise_for:
            raise ConnectionError("provider unreachable")
        if phone in self.fail_for:
            return failure_result("rejected by provider")
        return success_result(f"{self.channel_name}-{len(self.sent)}")

    @property
    def phones(self):
        return sorted(phone for phone, _ in self.sent)


@pytest.fixture
def db():
    return MockFirestore()


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def storage(upload_dir):
    return LocalStorageProvider(str(upload_dir), max_bytes=1024 * 1024)


@pytest.fixture
def sms_channel():
    return RecordingChannel("sms")


@pytest.fixture
def whatsapp_channel():
    return RecordingChannel("whatsapp")


@pytest.fixture
def channels(sms_channel, whatsapp_channel):
    return MessagingChannels(sms=sms_channel, whatsapp=whatsapp_channel)


@pytest.fixture
def contact_service(db):
    return ContactService(db=db)


@pytest.fixture
def sos_service(db, contact_service, channels):
    return SOSService(contact_service=contact_service, channels=channels, db=db)


@pytest.fixture
def incident_service(db, storage, sos_service):
    return IncidentService(db=db, storage=storage, sos_service=sos_service)


@pytest.fixture
def stats_service(db):
    return StatsService(db=db)


@pytest.fixture
def user_service(db):
    return UserService(db=db)


@pytest.fixture
def services(monkeypatch, db, incident_service, sos_service, contact_service, stats_service, user_service):
    """
    Install the test services as the application singletons, so routes and
    the startup/shutdown hooks all see the same in-memory database.
    """
    monkeypatch.setattr(firebase, "db", db)
    monkeypatch.setattr(incident_service_module, "_incident_service", incident_service)
    monkeypatch.setattr(sos_service_module, "_sos_service", sos_service)
    monkeypatch.setattr(contact_service_module, "_contact_service", contact_service)
    monkeypatch.setattr(stats_service_module, "_stats_service", stats_service)
    monkeypatch.setattr(user_service_module, "_user_service", user_service)
    return db


@pytest.fixture
def app(services):
    from rakshak.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


def make_incident(db, created_at, **fields):
    """Write an incident document directly, with an explicit creation time."""
    document = {
        "title": "Incident",
        "description": "Something happened",
        "category": "other",
        "location": {"latitude": 18.5204, "longitude": 73.8567, "address": "Pune"},
        "is_anonymous": False,
        "reporter": {"name": "Unknown", "contact": None},
        "image": None,
        "priority": "normal",
        "status": "pending",
        "is_sos": False,
        "moderator_notes": None,
        "created_at": created_at,
        "updated_at": created_at,
    }
    document.update(fields)
    doc_ref = db.collection("incidents").document()
    doc_ref.set(document)
    return doc_ref.id


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
