"""
User Service - Moderator/admin accounts in Firestore.

Passwords are compared as plain text; this login only decides which panel
the web client shows and is not a security boundary.
"""

from firebase_admin import firestore
from rakshak.config.firebase import require_db
from rakshak.models.user import UserRole
from rakshak.utils.firestore_helpers import where_filter, snapshot_to_dict
from typing import Optional, Dict, List, Tuple
import logging

logger = logging.getLogger(__name__)


# (username, password, role) created on startup when missing
DEFAULT_USERS: List[Tuple[str, str, UserRole]] = [
    ("admin", "admin123", UserRole.ADMIN),
    ("moderator", "mod123", UserRole.MODERATOR),
]


class UserService:
    """
    Service for user lookup in Firestore.
    """

    COLLECTION = "users"

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        if self._db is None:
            self._db = require_db()
        return self._db

    def get_user_by_username(self, username: str) -> Optional[Dict]:
        users_ref = self.db.collection(self.COLLECTION)
        query = where_filter(users_ref, "username", "==", username.strip().lower()).limit(1)

        docs = list(query.stream())
        if not docs:
            return None

        return snapshot_to_dict(docs[0])

    def create_user(self, username: str, password: str, role: UserRole = UserRole.USER) -> Dict:
        user_ref = self.db.collection(self.COLLECTION).document()
        user_ref.set({
            "username": username.strip().lower(),
            "password": password,
            "role": role.value,
            "created_at": firestore.SERVER_TIMESTAMP,
            "updated_at": firestore.SERVER_TIMESTAMP,
        })

        user_data = snapshot_to_dict(user_ref.get())

        logger.info(f"User created: {user_data['username']} ({role.value})")
        return user_data

    def ensure_default_users(self) -> int:
        """
        Create the default admin and moderator accounts if they do not exist.

        Returns:
            Number of users created
        """
        created = 0
        for username, password, role in DEFAULT_USERS:
            if self.get_user_by_username(username) is None:
                self.create_user(username, password, role)
                created += 1
        return created

    def authenticate(self, username: str, password: str) -> Optional[Dict]:
        """
        Username is matched case-insensitively, password exactly.

        Returns:
            {"id", "username", "role"} or None on mismatch
        """
        user = self.get_user_by_username(username)
        if not user or user.get("password") != password:
            logger.info(f"Login failed for username '{username}'")
            return None

        return {
            "id": user["id"],
            "username": user["username"],
            "role": user.get("role", UserRole.USER.value),
        }


# Global service instance (singleton pattern)
_user_service = None


def get_user_service() -> UserService:
    """
    Get or create UserService singleton instance.

    Returns:
        UserService: The global user service instance
    """
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
