"""
Authentication endpoint - username/password login for the moderator and admin panels.
"""

from fastapi import APIRouter, Depends
from rakshak.core.exceptions import AuthenticationError
from rakshak.models.user import LoginRequest, LoginResponse
from rakshak.services.user_service import UserService, get_user_service
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, user_service: UserService = Depends(get_user_service)):
    """
    Log in with username and password.

    Username is matched case-insensitively. No session token is issued; the
    client keeps the returned role to decide which panel to show.

    Returns:
        LoginResponse with id, username and role
    """
    user = user_service.authenticate(request.username, request.password)
    if user is None:
        raise AuthenticationError("Invalid credentials")

    logger.info(f"User logged in: {user['username']} ({user['role']})")
    return user
