"""Registration, sign-in and profile routes."""

import datetime

from fastapi import APIRouter, Depends

from timekeeper.api.auth import User, get_current_user, issue_token
from timekeeper.api.dependencies import get_account_service, get_app_settings
from timekeeper.api.schemas import (ErrorResponse, LoginRequest, MessageResponse,
                                    ProfileResponse, ProfileUpdate, RegisterRequest,
                                    TokenResponse)
from timekeeper.infra.config import Settings
from timekeeper.services import AccountService

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
user_router = APIRouter(prefix="/user", tags=["User"])


@auth_router.post(
    "/register",
    response_model=MessageResponse,
    responses={409: {"description": "Email already registered", "model": ErrorResponse}},
)
async def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    await accounts.register(body.email, body.password, body.full_name)
    return MessageResponse(message="Registered")


@auth_router.post(
    "/login",
    response_model=TokenResponse,
    responses={401: {"description": "Invalid credentials", "model": ErrorResponse}},
)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_app_settings),
):
    """Exchange email and password for a bearer token."""
    account = await accounts.authenticate(body.email, body.password)
    token = issue_token(
        account.id,
        settings,
        email=account.email,
        role=account.role,
        expires_in=datetime.timedelta(days=settings.jwt_expire_days),
    )
    return TokenResponse(token=token)


@user_router.get("/me", response_model=ProfileResponse)
async def me(
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return ProfileResponse.model_validate(await accounts.get_profile(user.id))


@user_router.put("/update", response_model=MessageResponse)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    changed = await accounts.update_profile(
        user.id, body.full_name, body.password, body.confirm_password
    )
    if not changed:
        return MessageResponse(message="Nothing to update")
    return MessageResponse(message="Profile updated successfully")
