"""
Pydantic models for emergency contacts and SOS dispatch results.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=1, max_length=32, description="Any Indian mobile format, normalized to +91XXXXXXXXXX")
    user_id: Optional[str] = Field(None, alias="userId")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {"name": "Ravi", "phone": "98765 43210", "userId": "default"}
        }


class ContactResponse(BaseModel):
    id: str
    user_id: str = Field(..., alias="userId")
    name: str
    phone: str
    is_default: bool = Field(False, alias="isDefault")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    class Config:
        populate_by_name = True


class SOSSmsRequest(BaseModel):
    incident_id: str = Field(..., alias="incidentId")
    user_id: Optional[str] = Field(None, alias="userId")

    class Config:
        populate_by_name = True


class SOSSmsResult(BaseModel):
    contact: str
    phone: str
    success: bool
    error: Optional[str] = None


class SOSSmsResponse(BaseModel):
    success: bool = True
    sent: int
    total: int
    results: List[SOSSmsResult] = Field(default_factory=list)


class SOSLink(BaseModel):
    contact: str
    phone: str
    display_phone: str = Field(..., alias="displayPhone")
    url: str

    class Config:
        populate_by_name = True
