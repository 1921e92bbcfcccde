# src/services/marketplace_api/routes/users.py
"""
Управление пользователями (только суперадмин).
"""

from __future__ import annotations

from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.core.users import UserAdminService
from src.services.marketplace_api.dependencies import SuperAdminUser, get_user_admin_service

router = APIRouter(prefix="/superadmin/users", tags=["Superadmin"])

Users = Annotated[UserAdminService, Depends(get_user_admin_service)]


class CreateUserRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class UpdateRoleRequest(BaseModel):
    role: Optional[str] = None


@router.get("")
async def list_users(actor: SuperAdminUser, service: Users) -> dict[str, Any]:
    users = await service.list_users()
    return {"users": [user.model_dump(mode="json") for user in users]}


@router.post("", status_code=201)
async def create_user(request: CreateUserRequest, actor: SuperAdminUser, service: Users) -> dict[str, Any]:
    user = await service.create_user(request.username, request.email, request.password, request.role)
    return {"message": "User created successfully", "user": user.model_dump(mode="json")}


@router.get("/{user_id}")
async def get_user(user_id: UUID, actor: SuperAdminUser, service: Users) -> dict[str, Any]:
    user = await service.get_user(str(user_id))
    return {"user": user.model_dump(mode="json")}


@router.put("/{user_id}")
async def update_user_role(
    user_id: UUID,
    request: UpdateRoleRequest,
    actor: SuperAdminUser,
    service: Users,
) -> dict[str, Any]:
    user = await service.update_role(actor.user_id, str(user_id), request.role)
    return {"message": "User role updated successfully", "user": user.model_dump(mode="json")}


@router.delete("/{user_id}")
async def delete_user(user_id: UUID, actor: SuperAdminUser, service: Users) -> dict[str, Any]:
    await service.delete_user(actor.user_id, str(user_id))
    return {"message": "User deleted successfully"}
