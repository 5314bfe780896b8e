"""
Stats Service - Dashboard counters over the incidents collection.

Counting is done in a single pass over the stream so the whole collection is
never held in memory. Stats are informational: when Firestore is unreachable
the dashboard gets zeros instead of an error.
"""

from rakshak.config.firebase import get_db_or_none
from rakshak.models.incident import IncidentPriority, IncidentStatus
from collections import defaultdict
from typing import Dict
import logging

logger = logging.getLogger(__name__)


def empty_stats() -> Dict:
    return {
        "total": 0,
        "pending": 0,
        "active": 0,
        "resolved": 0,
        "critical": 0,
        "by_category": {},
    }


class StatsService:

    COLLECTION = "incidents"

    def __init__(self, db=None):
        self._db = db

    def get_stats(self) -> Dict:
        db = self._db if self._db is not None else get_db_or_none()
        if db is None:
            logger.warning("Stats requested while Firestore is unavailable, returning zeros")
            return empty_stats()

        total = 0
        critical = 0
        statuses = defaultdict(int)
        categories = defaultdict(int)

        try:
            for doc in db.collection(self.COLLECTION).stream():
                data = doc.to_dict() or {}
                total += 1
                statuses[data.get("status")] += 1
                if data.get("category"):
                    categories[data["category"]] += 1
                if data.get("priority") == IncidentPriority.CRITICAL.value:
                    critical += 1
        except Exception as e:
            logger.warning(f"Failed to read incidents for stats, returning zeros: {e}")
            return empty_stats()

        return {
            "total": total,
            "pending": statuses.get(IncidentStatus.PENDING.value, 0),
            "active": statuses.get(IncidentStatus.ACTIVE.value, 0),
            "resolved": statuses.get(IncidentStatus.RESOLVED.value, 0),
            "critical": critical,
            "by_category": dict(categories),
        }


# Global service instance (singleton pattern)
_stats_service = None


def get_stats_service() -> StatsService:
    global _stats_service
    if _stats_service is None:
        _stats_service = StatsService()
    return _stats_service
