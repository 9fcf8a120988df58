"""
Profile feature: API routes for questionnaire profiles.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from counselor.core.dependencies import get_profile_store
from counselor.core.exceptions import ProfileNotFoundError, app_error_to_http
from counselor.features.profile.schemas import (
    DraftSaveRequest,
    ProfileSaveRequest,
    ProfileStatus,
)
from counselor.features.profile.service import ProfileStore, to_context

router = APIRouter()


def _dump(profile) -> dict:
    return profile.model_dump(by_alias=True)


@router.get("")
async def get_profiles(
    id: str | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    counselor_id: str | None = Query(default=None, alias="counselorId"),
    profile_status: ProfileStatus | None = Query(default=None, alias="status"),
    store: ProfileStore = Depends(get_profile_store),
):
    """Get one profile by `id`/`userId`, or list profiles with optional filters."""
    if id or user_id:
        profile = store.get(profile_id=id, user_id=user_id)
        if profile is None:
            raise app_error_to_http(ProfileNotFoundError(), status.HTTP_404_NOT_FOUND)
        return _dump(profile)

    return [_dump(p) for p in store.list(counselor_id=counselor_id, status=profile_status)]


@router.get("/context")
async def get_profile_context(
    id: str | None = None,
    user_id: str | None = Query(default=None, alias="userId"),
    store: ProfileStore = Depends(get_profile_store),
):
    """The profile rendered as the `profileContext` string accepted by /api/chat."""
    try:
        profile = store.get(profile_id=id, user_id=user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if profile is None:
        raise app_error_to_http(ProfileNotFoundError(), status.HTTP_404_NOT_FOUND)
    return {"profileContext": to_context(profile)}


@router.post("")
async def save_profile(
    data: ProfileSaveRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """Create or update a profile."""
    if data.profile is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Profile data is required")

    saved = store.save(
        data.profile,
        user_id=data.user_id,
        counselor_id=data.counselor_id,
        status=data.status,
        current_step=data.current_step,
    )
    return _dump(saved)


@router.put("")
async def save_draft(
    data: DraftSaveRequest,
    store: ProfileStore = Depends(get_profile_store),
):
    """Save a partially completed questionnaire as a draft."""
    if not data.partial_profile or data.current_step is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Partial profile and current step are required",
        )

    draft = store.save_draft(data.partial_profile, data.current_step, user_id=data.user_id)
    return _dump(draft)


@router.delete("")
async def archive_profile(
    id: str | None = None,
    store: ProfileStore = Depends(get_profile_store),
):
    """Archive (soft delete) a profile."""
    if not id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Profile ID is required")

    archived = store.archive(id)
    if archived is None:
        raise app_error_to_http(ProfileNotFoundError(), status.HTTP_404_NOT_FOUND)
    return {"success": True, "profile": _dump(archived)}
