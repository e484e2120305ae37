"""
Auth endpoints — sign-up, login (OAuth2 password form), logout & session.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.v1.deps import (
    get_current_session,
    get_db,
    get_optional_session,
    get_session_resolver,
)
from storefront.core.config import settings
from storefront.core.exceptions import NotFound, Unauthenticated
from storefront.schemas.common import ActionResult
from storefront.schemas.token import AuthResponse, SessionClaims
from storefront.schemas.user import UserCreate, UserRead
from storefront.services.credentials import CredentialStore, claims_for
from storefront.services.session import SessionResolver

# Rate limiter, keyed by client IP
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=AuthResponse, status_code=201)
@limiter.limit(settings.SIGNUP_RATE_LIMIT)
async def sign_up(
    request: Request,
    response: Response,
    body: UserCreate,
    db: AsyncSession = Depends(get_db),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> AuthResponse:
    """Create a customer or seller account and start a session."""
    user = await CredentialStore(db).create_user(
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        avatar=body.avatar,
    )
    claims = claims_for(user)
    access_token = resolver.issue_session(claims, response)
    return AuthResponse(message="Sign-up successful", access_token=access_token, user=claims)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    resolver: SessionResolver = Depends(get_session_resolver),
) -> AuthResponse:
    """Authenticate with email/password. Sets HttpOnly token cookies."""
    user = await CredentialStore(db).authenticate(form_data.username, form_data.password)
    if user is None:
        logger.info("Failed login for %s", form_data.username.strip().lower()[:320])
        raise Unauthenticated("Invalid credentials")

    claims = claims_for(user)
    access_token = resolver.issue_session(claims, response)
    logger.info("User %s logged in", user.id)
    return AuthResponse(message="Login successful", access_token=access_token, user=claims)


@router.post("/logout", response_model=ActionResult)
async def logout(
    response: Response,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> ActionResult:
    """Clear auth and display cookies and end the session."""
    resolver.clear_session(response)
    return ActionResult(message="Logout successful")


@router.get("/session", response_model=SessionClaims | None)
async def read_session(
    claims: SessionClaims | None = Depends(get_optional_session),
) -> SessionClaims | None:
    """Current session claims, or ``null`` for anonymous visitors."""
    return claims


@router.get("/me", response_model=UserRead)
async def read_current_user(
    claims: SessionClaims = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
):
    """Return the stored profile of the currently authenticated user."""
    user = await CredentialStore(db).find_by_id(claims.identifier)
    if user is None:
        raise NotFound("User not found")
    return user
