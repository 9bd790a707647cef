"""Access code administration routes."""

from typing import List

from fastapi import APIRouter, Depends, status

from api.routes.auth import require_admin
from core.dependencies import AccessCodeManagerDep
from schemas.access_code import (
    AccessCodeInfo,
    Actor,
    CreateAccessCodeRequest,
    DirectoryStats,
    UpdateAccessCodeRequest,
)

router = APIRouter(prefix="/api/access-codes", tags=["Access Codes"])


@router.get("", response_model=List[AccessCodeInfo], summary="List access codes")
def list_access_codes(
    access_code_manager: AccessCodeManagerDep,
    admin: Actor = Depends(require_admin),
) -> List[AccessCodeInfo]:
    return access_code_manager.list_codes()


@router.post(
    "",
    response_model=AccessCodeInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create an access code",
)
def create_access_code(
    req: CreateAccessCodeRequest,
    access_code_manager: AccessCodeManagerDep,
    admin: Actor = Depends(require_admin),
) -> AccessCodeInfo:
    return access_code_manager.create_code(
        code=req.code,
        profile=req.profile,
        display_name=req.display_name,
        class_name=req.class_name,
    )


@router.get("/stats", response_model=DirectoryStats, summary="Dashboard statistics")
def get_stats(
    access_code_manager: AccessCodeManagerDep,
    admin: Actor = Depends(require_admin),
) -> DirectoryStats:
    return access_code_manager.get_stats()


@router.patch("/{code_id}", response_model=AccessCodeInfo, summary="Activate or deactivate a code")
def update_access_code(
    code_id: str,
    req: UpdateAccessCodeRequest,
    access_code_manager: AccessCodeManagerDep,
    admin: Actor = Depends(require_admin),
) -> AccessCodeInfo:
    return access_code_manager.set_active(code_id, req.is_active)


@router.delete("/{code_id}", summary="Delete an access code")
def delete_access_code(
    code_id: str,
    access_code_manager: AccessCodeManagerDep,
    admin: Actor = Depends(require_admin),
) -> dict:
    """Delete an access code.

    The admin code cannot be deleted. Bookings held by a deleted parent code
    are released.
    """
    access_code_manager.delete_code(code_id)
    return {"message": "Access code deleted"}
