"""
Contact Service - Emergency contacts notified on SOS.

Contacts are partitioned by user_id. Every method takes the partition
explicitly; the HTTP layer supplies the shared "default" partition when the
client does not send one.
"""

from firebase_admin import firestore
from rakshak.config.firebase import require_db, store_outage_as_unavailable
from rakshak.core.exceptions import NotFoundError, ValidationError
from rakshak.utils.firestore_helpers import where_filter, snapshot_to_dict
from rakshak.utils.phone import normalize_indian_phone
from typing import Dict, List
import logging

logger = logging.getLogger(__name__)

INVALID_PHONE_MESSAGE = (
    "Phone number must be a valid 10-digit Indian mobile number "
    "(e.g., 9876543210 or +919876543210)"
)


class ContactService:
    """
    Service for emergency contact management in Firestore.
    """

    COLLECTION = "contacts"

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = require_db()
        return self._db

    def list_contacts(self, user_id: str) -> List[Dict]:
        """
        Contacts of one partition, newest first.
        """
        contacts_ref = self.db.collection(self.COLLECTION)
        query = where_filter(contacts_ref, "user_id", "==", user_id).order_by(
            "created_at", direction=firestore.Query.DESCENDING
        )
        return [snapshot_to_dict(doc) for doc in query.stream()]

    def create_contact(self, user_id: str, name: str, phone: str, is_default: bool = False) -> Dict:
        """
        Store a contact after normalizing its phone number.

        Raises:
            ValidationError: blank name or phone that is not a valid Indian mobile number
        """
        if not name or not name.strip():
            raise ValidationError("Name and phone are required")

        canonical_phone = normalize_indian_phone(phone)
        if not canonical_phone:
            raise ValidationError(INVALID_PHONE_MESSAGE)

        with store_outage_as_unavailable():
            doc_ref = self.db.collection(self.COLLECTION).document()
            doc_ref.set({
                "user_id": user_id,
                "name": name.strip(),
                "phone": canonical_phone,
                "is_default": is_default,
                "created_at": firestore.SERVER_TIMESTAMP,
                "updated_at": firestore.SERVER_TIMESTAMP,
            })
            logger.info(f"Contact saved to Firestore: {doc_ref.id} (user {user_id})")

            return snapshot_to_dict(doc_ref.get())

    def delete_contact(self, contact_id: str, user_id: str) -> None:
        """
        Raises:
            NotFoundError: unknown id, or the contact belongs to another partition
            ValidationError: the contact is a protected default contact
        """
        with store_outage_as_unavailable():
            doc_ref = self.db.collection(self.COLLECTION).document(contact_id)
            contact = snapshot_to_dict(doc_ref.get())

            if not contact or contact.get("user_id") != user_id:
                raise NotFoundError("Contact not found")

            if contact.get("is_default"):
                raise ValidationError("Cannot delete default contact")

            doc_ref.delete()
            logger.info(f"Contact deleted: {contact_id} (user {user_id})")


# Global service instance (singleton pattern)
_contact_service = None


def get_contact_service() -> ContactService:
    global _contact_service
    if _contact_service is None:
        _contact_service = ContactService()
    return _contact_service
