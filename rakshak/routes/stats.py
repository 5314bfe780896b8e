"""
Dashboard statistics endpoint.
"""

from fastapi import APIRouter, Depends

from rakshak.models.incident import StatsResponse
from rakshak.services.stats_service import StatsService, get_stats_service

router = APIRouter(prefix="/stats", tags=["Stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(service: StatsService = Depends(get_stats_service)):
    """
    Incident counters for the dashboard.
    Returns zeros (not an error) while the database is unavailable.
    """
    return service.get_stats()
