"""
Discory Backend — Auth Routes
==============================

What:  POST /api/auth/register and POST /api/auth/login.
How:   Both return {user, token}; the token goes into
       `Authorization: Bearer <token>` on every other call.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from discory.database import get_db_session
from discory.schemas.account import AuthResponse, LoginRequest, RegisterRequest
from discory.schemas.common import ErrorResponse
from discory.services.auth_service import auth_service

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        409: {"description": "Email or username taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.register(db, body.email, body.username, body.password)


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing field", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    return await auth_service.login(db, body.email, body.password)
