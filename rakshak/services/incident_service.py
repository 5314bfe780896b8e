"""
Incident service - Business logic for incident reports and SOS alerts.
Handles Firestore CRUD operations for incidents.

DESIGN NOTE:
- Standard reports always start PENDING; moderators move them along
- SOS reports start ACTIVE with CRITICAL priority and notify contacts
- Contact notification is detached and never blocks or fails the SOS report
- Radius filtering happens in memory after the Firestore query
"""

from firebase_admin import firestore
from rakshak.config.firebase import require_db, store_outage_as_unavailable
from rakshak.core.exceptions import NotFoundError, ValidationError
from rakshak.core.settings import settings
from rakshak.models.incident import (
    IncidentCategory,
    IncidentCreate,
    IncidentPriority,
    IncidentStatus,
)
from rakshak.services.sos_service import get_sos_service
from rakshak.services.storage import ImageUpload, get_storage_provider
from rakshak.utils.firestore_helpers import where_filter, snapshot_to_dict
from rakshak.utils.geo import haversine_km, round_distance
from enum import Enum
from typing import Dict, List, Optional, Type, TypeVar, Union
import logging
import math

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

SOS_TITLE = "SOS EMERGENCY"
SOS_DEFAULT_DESCRIPTION = "Emergency situation reported"


def parse_enum(enum_cls: Type[E], value: Optional[Union[str, E]], field: str, default: Optional[E] = None) -> Optional[E]:
    """
    Blank -> default; known value -> enum member; anything else -> ValidationError.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Allowed values: {allowed}")


def parse_coordinate(value: Optional[Union[float, str]], fallback: float) -> float:
    """Numeric value or the fallback when absent/non-numeric."""
    if value is None or value == "":
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if math.isnan(number) or math.isinf(number):
        return fallback
    return number


class IncidentService:
    """
    Incident lifecycle: create, list, get, moderate, delete.
    """

    COLLECTION = "incidents"

    def __init__(self, db=None, storage=None, sos_service=None):
        self._db = db
        self._storage = storage
        self._sos_service = sos_service

    @property
    def db(self):
        # Raises ServiceUnavailableError when the store is down
        if self._db is None:
            self._db = require_db()
        return self._db

    @property
    def storage(self):
        if self._storage is None:
            self._storage = get_storage_provider()
        return self._storage

    @property
    def sos_service(self):
        if self._sos_service is None:
            self._sos_service = get_sos_service()
        return self._sos_service

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_incident(self, data: IncidentCreate, image: Optional[ImageUpload] = None) -> Dict:
        """
        Create a standard incident report.

        Status is always PENDING regardless of input; priority defaults to NORMAL.

        Raises:
            ValidationError: missing title/description, unknown category/priority, bad image
            ServiceUnavailableError: Firestore is not reachable
        """
        title = (data.title or "").strip()
        description = (data.description or "").strip()
        if not title or not description:
            raise ValidationError("Title and description are required")

        return await self._store(
            data,
            title=title,
            description=description,
            category=parse_enum(IncidentCategory, data.category, "category", IncidentCategory.OTHER),
            priority=parse_enum(IncidentPriority, data.priority, "priority", IncidentPriority.NORMAL),
            status=IncidentStatus.PENDING,
            is_sos=False,
            image=image,
        )

    async def create_sos_incident(self, data: IncidentCreate, user_id: str, image: Optional[ImageUpload] = None) -> Dict:
        """
        Create an SOS incident and start notifying the user's emergency contacts.

        Any priority/category/title sent by the client is ignored. Notification
        runs detached; the stored incident is returned immediately.
        """
        description = (data.description or "").strip() or SOS_DEFAULT_DESCRIPTION

        incident = await self._store(
            data,
            title=SOS_TITLE,
            description=description,
            category=IncidentCategory.EMERGENCY,
            priority=IncidentPriority.CRITICAL,
            status=IncidentStatus.ACTIVE,
            is_sos=True,
            image=image,
        )

        self.sos_service.trigger_sos_alerts(incident, user_id)
        return incident

    async def _store(
        self,
        data: IncidentCreate,
        *,
        title: str,
        description: str,
        category: IncidentCategory,
        priority: IncidentPriority,
        status: IncidentStatus,
        is_sos: bool,
        image: Optional[ImageUpload],
    ) -> Dict:
        # Pre-flight: fail fast before touching the blob store
        db = self.db

        image_ref = self.storage.save(image) if image else None

        is_anonymous = bool(data.is_anonymous)
        doc_ref = db.collection(self.COLLECTION).document()
        document = {
            "title": title,
            "description": description,
            "category": category.value,
            "location": {
                "latitude": parse_coordinate(data.latitude, settings.DEFAULT_LATITUDE),
                "longitude": parse_coordinate(data.longitude, settings.DEFAULT_LONGITUDE),
                "address": (data.address or "").strip() or settings.DEFAULT_ADDRESS,
            },
            "is_anonymous": is_anonymous,
            "reporter": {
                "name": "Anonymous" if is_anonymous else ((data.reporter_name or "").strip() or "Unknown"),
                "contact": None if is_anonymous else ((data.reporter_contact or "").strip() or None),
            },
            "image": image_ref,
            "priority": priority.value,
            "status": status.value,
            "is_sos": is_sos,
            "moderator_notes": None,
            "created_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        }

        with store_outage_as_unavailable():
            try:
                doc_ref.set(document)
                logger.info(f"Incident saved to Firestore: {doc_ref.id} (category={category.value}, sos={is_sos})")
            except Exception as e:
                logger.error(f"Failed to save incident to Firestore: {e}", exc_info=True)
                if image_ref:
                    self._delete_image(image_ref)
                raise

            return snapshot_to_dict(doc_ref.get())

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_incidents(
        self,
        category: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius: Optional[float] = None,
    ) -> List[Dict]:
        """
        Retrieve incidents matching all given filters, newest first.

        When latitude, longitude and radius (km) are all given, only incidents
        within the radius are kept; each gets a "distance" (km, one decimal)
        and the list is re-sorted nearest first.
        """
        filters = {
            "category": parse_enum(IncidentCategory, category, "category"),
            "status": parse_enum(IncidentStatus, status, "status"),
            "priority": parse_enum(IncidentPriority, priority, "priority"),
        }

        query = self.db.collection(self.COLLECTION)
        for field, value in filters.items():
            if value is not None:
                query = where_filter(query, field, "==", value.value)
        query = query.order_by("created_at", direction=firestore.Query.DESCENDING)

        incidents = [snapshot_to_dict(doc) for doc in query.stream()]

        if latitude is None or longitude is None or radius is None:
            return incidents

        return self._filter_by_radius(incidents, latitude, longitude, radius)

    def _filter_by_radius(self, incidents: List[Dict], latitude: float, longitude: float, radius: float) -> List[Dict]:
        nearby = []
        for incident in incidents:
            location = incident.get("location") or {}
            inc_lat = location.get("latitude")
            inc_lon = location.get("longitude")
            if inc_lat is None or inc_lon is None:
                continue

            distance = haversine_km(latitude, longitude, inc_lat, inc_lon)
            if distance <= radius:
                incident["distance"] = round_distance(distance)
                nearby.append((distance, incident))

        # sort() is stable, so equally distant incidents stay newest first
        nearby.sort(key=lambda pair: pair[0])
        return [incident for _, incident in nearby]

    async def get_incident(self, incident_id: str) -> Dict:
        incident = snapshot_to_dict(self.db.collection(self.COLLECTION).document(incident_id).get())
        if not incident:
            raise NotFoundError("Incident not found")
        return incident

    # ------------------------------------------------------------------
    # Moderate / delete
    # ------------------------------------------------------------------

    async def update_incident_status(self, incident_id: str, status: Optional[str] = None, notes: Optional[str] = None) -> Dict:
        """
        Partial moderator update. Fields passed as None are left unchanged.

        Raises:
            NotFoundError: unknown id
            ValidationError: status outside pending/active/resolved
        """
        with store_outage_as_unavailable():
            doc_ref = self.db.collection(self.COLLECTION).document(incident_id)
            if not doc_ref.get().exists:
                raise NotFoundError("Incident not found")

            updates = {}
            new_status = parse_enum(IncidentStatus, status, "status")
            if new_status is not None:
                updates["status"] = new_status.value
            if notes is not None:
                updates["moderator_notes"] = notes

            if updates:
                updates["updated_at"] = firestore.SERVER_TIMESTAMP
                doc_ref.update(updates)
                logger.info(f"✅ Incident {incident_id} updated: {sorted(k for k in updates if k != 'updated_at')}")

            return snapshot_to_dict(doc_ref.get())

    async def delete_incident(self, incident_id: str) -> None:
        """
        Delete an incident and its stored image.

        The image goes first; if that fails the record is still deleted.
        """
        with store_outage_as_unavailable():
            doc_ref = self.db.collection(self.COLLECTION).document(incident_id)
            incident = snapshot_to_dict(doc_ref.get())
            if not incident:
                raise NotFoundError("Incident not found")

            if incident.get("image"):
                self._delete_image(incident["image"])

            doc_ref.delete()
            logger.info(f"Incident deleted: {incident_id}")

    def _delete_image(self, reference: str) -> bool:
        try:
            return self.storage.delete(reference)
        except Exception as e:
            logger.error(f"⚠️ Failed to delete image {reference}: {e}", exc_info=True)
            return False


# Global service instance (singleton pattern)
_incident_service = None


def get_incident_service() -> IncidentService:
    global _incident_service
    if _incident_service is None:
        _incident_service = IncidentService()
    return _incident_service
