"""
Pydantic models for incident reports.

Firestore documents use snake_case fields; API responses are serialized with
camelCase aliases because that is what the web client reads.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Dict, Union
from enum import Enum


class IncidentCategory(str, Enum):
    EMERGENCY = "emergency"
    SUSPICIOUS = "suspicious"
    INFRASTRUCTURE = "infrastructure"
    HEALTH = "health"
    ENVIRONMENT = "environment"
    COMMUNITY = "community"
    DESTRUCTION = "destruction"
    NOISE = "noise"
    TRAFFIC = "traffic"
    THEFT = "theft"
    FIRE = "fire"
    FLOODING = "flooding"
    ANIMAL = "animal"
    LIGHTING = "lighting"
    PARKING = "parking"
    WASTE = "waste"
    ACCIDENT = "accident"
    ASSAULT = "assault"
    DRUG = "drug"
    TRESPASSING = "trespassing"
    WATER = "water"
    ELECTRICAL = "electrical"
    OTHER = "other"


class IncidentPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class IncidentStatus(str, Enum):
    """
    Moderation lifecycle.
    Reports start PENDING, SOS alerts start ACTIVE.
    """
    PENDING = "pending"
    ACTIVE = "active"
    RESOLVED = "resolved"


class IncidentCreate(BaseModel):
    """
    Raw report fields as submitted by the client (multipart form or JSON).
    Defaults and enum checks are applied by the incident service.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    latitude: Optional[Union[float, str]] = None
    longitude: Optional[Union[float, str]] = None
    address: Optional[str] = None
    is_anonymous: bool = False
    reporter_name: Optional[str] = None
    reporter_contact: Optional[str] = None
    priority: Optional[str] = None

    class Config:
        extra = "ignore"


class IncidentStatusUpdate(BaseModel):
    """Moderator PATCH body. Only fields that are sent are changed."""
    status: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)


class Location(BaseModel):
    latitude: float
    longitude: float
    address: str


class Reporter(BaseModel):
    name: str = "Unknown"
    contact: Optional[str] = None


class IncidentResponse(BaseModel):
    id: str = Field(..., description="Firestore document ID")
    title: str
    description: str
    category: IncidentCategory
    location: Location
    is_anonymous: bool = Field(False, alias="isAnonymous")
    reporter: Reporter
    image: Optional[str] = None
    priority: IncidentPriority
    status: IncidentStatus
    is_sos: bool = Field(False, alias="isSOS")
    moderator_notes: Optional[str] = Field(None, alias="moderatorNotes")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    # Only set on radius queries, in km rounded to one decimal
    distance: Optional[float] = None

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "k2Jd8aQ1",
                "title": "Broken streetlight",
                "description": "Streetlight near the park gate has been off for a week.",
                "category": "lighting",
                "location": {"latitude": 18.5204, "longitude": 73.8567, "address": "FC Road, Pune"},
                "isAnonymous": False,
                "reporter": {"name": "Asha", "contact": "asha@example.com"},
                "image": "/uploads/1700000000000-3f1c.png",
                "priority": "normal",
                "status": "pending",
                "isSOS": False,
                "moderatorNotes": None,
                "createdAt": "2024-01-15T10:30:00Z",
                "updatedAt": "2024-01-15T10:30:00Z",
            }
        }


class StatsResponse(BaseModel):
    total: int = 0
    pending: int = 0
    active: int = 0
    resolved: int = 0
    critical: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict, alias="byCategory")

    class Config:
        populate_by_name = True
