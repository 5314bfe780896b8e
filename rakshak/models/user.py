"""
User models for the moderator/admin login.
"""

from pydantic import BaseModel, Field
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)


class LoginResponse(BaseModel):
    """Returned on successful login. No session token is issued."""
    id: str = Field(..., description="Firestore document ID")
    username: str
    role: UserRole
