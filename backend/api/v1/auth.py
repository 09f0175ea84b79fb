"""Authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_identity, get_db
from core import create_access_token, hash_password
from db.errors import is_unique_violation
from models import User
from services.auth import (
    SessionIdentity,
    authenticate_user,
    clear_session_cookie,
    find_user_by_email,
    normalize_email,
    set_session_cookie,
)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
DUPLICATE_EMAIL_DETAIL = "An account with this email already exists"


class CredentialsRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=MAX_PASSWORD_LENGTH)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str


class AuthResponse(BaseModel):
    message: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    user: UserResponse


def _start_session(response: Response, user: User) -> None:
    token = create_access_token(user.id, email=user.email)
    set_session_cookie(response, token)


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(
    payload: CredentialsRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> AuthResponse:
    normalized_email = normalize_email(str(payload.email))
    if await find_user_by_email(session, normalized_email) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=DUPLICATE_EMAIL_DETAIL,
        )

    user = User(email=normalized_email, password_hash=hash_password(payload.password))
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=DUPLICATE_EMAIL_DETAIL,
            ) from exc
        raise

    _start_session(response, user)
    return AuthResponse(
        message="Registration successful",
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: CredentialsRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> AuthResponse:
    user = await authenticate_user(session, str(payload.email), payload.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    _start_session(response, user)
    return AuthResponse(message="Login successful", user=UserResponse.model_validate(user))


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response) -> dict[str, str]:
    clear_session_cookie(response)
    return {"message": "Logged out"}


@router.get("/me", response_model=CurrentUserResponse)
async def me(
    identity: SessionIdentity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db),
) -> CurrentUserResponse:
    user = await session.get(User, identity.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return CurrentUserResponse(user=UserResponse.model_validate(user))
