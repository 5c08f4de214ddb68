from __future__ import annotations

from fastapi import APIRouter, Depends

from photogram.auth.deps import Identity, get_identity
from photogram.core.envelope import respond
from photogram.dependencies import get_user_service
from photogram.models import UserUpdateReq
from photogram.services.users import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me")
async def get_current_user(
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    return respond("User retrieved successfully", await users.get_me(identity.uid))


@router.put("/me")
async def update_current_user(
    body: UserUpdateReq,
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    updates = body.model_dump(exclude_unset=True)
    user = await users.update_me(identity.uid, updates)
    return respond("User updated successfully", user)
