# src/services/marketplace_api/routes/auth.py
"""
Аутентификация и профиль.

Endpoints:
- POST /auth/login - вход по email и паролю
- POST /auth/register - регистрация, отправка OTP
- POST /auth/verify-otp - подтверждение регистрации
- POST /auth/resend-otp - повторная отправка OTP
- POST /auth/forgot-password - ссылка для сброса пароля
- POST /auth/reset-password - сброс пароля по токену
- PUT /auth/update-password - смена пароля
- GET/PUT /profile - профиль текущего пользователя
"""

from __future__ import annotations

from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.core.users import AuthService, ProfileUpdateDTO
from src.services.marketplace_api.dependencies import CurrentUser, get_auth_service

router = APIRouter(tags=["Auth"])

Auth = Annotated[AuthService, Depends(get_auth_service)]


# === REQUEST MODELS ===

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None


class EmailRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: Optional[str] = None
    password: Optional[str] = None


class UpdatePasswordRequest(BaseModel):
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")

    model_config = {"populate_by_name": True}


# === AUTH ===

@router.post("/auth/login")
async def login(request: LoginRequest, service: Auth) -> dict[str, Any]:
    token, user = await service.login(request.email, request.password)
    return {"message": "Login successful", "token": token, "user": user.model_dump(mode="json")}


@router.post("/auth/register")
async def register(request: RegisterRequest, service: Auth) -> dict[str, Any]:
    """Данные регистрации хранятся вместе с OTP до подтверждения."""
    message = await service.register(
        request.username,
        request.email,
        request.password,
        request.role,
    )
    return {"message": message, "email": request.email}


@router.post("/auth/verify-otp")
async def verify_otp(request: VerifyOtpRequest, service: Auth) -> dict[str, Any]:
    token, user = await service.verify_registration(request.email, request.otp)
    return {"message": "User registered successfully", "token": token, "user": user.model_dump(mode="json")}


@router.post("/auth/resend-otp")
async def resend_otp(request: EmailRequest, service: Auth) -> dict[str, Any]:
    message = await service.resend_registration_otp(request.email)
    return {"message": message, "email": request.email}


@router.post("/auth/forgot-password")
async def forgot_password(request: EmailRequest, service: Auth) -> dict[str, Any]:
    return {"message": await service.forgot_password(request.email)}


@router.post("/auth/reset-password")
async def reset_password(request: ResetPasswordRequest, service: Auth) -> dict[str, Any]:
    await service.reset_password(request.token, request.password)
    return {"message": "Password reset successfully"}


@router.put("/auth/update-password")
async def update_password(
    request: UpdatePasswordRequest,
    actor: CurrentUser,
    service: Auth,
) -> dict[str, Any]:
    await service.update_password(actor.user_id, actor.role, request.current_password, request.new_password)
    return {"message": "Password updated successfully"}


# === PROFILE ===

@router.get("/profile", tags=["Profile"])
async def get_profile(actor: CurrentUser, service: Auth) -> dict[str, Any]:
    user = await service.get_profile(actor.user_id)
    return {"user": user.model_dump(mode="json")}


@router.put("/profile", tags=["Profile"])
async def update_profile(
    request: ProfileUpdateDTO,
    actor: CurrentUser,
    service: Auth,
) -> dict[str, Any]:
    user = await service.update_profile(actor.user_id, request)
    return {"message": "Profile updated successfully", "user": user.model_dump(mode="json")}
