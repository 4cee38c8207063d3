from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_current_user, get_entity_store
from app.exceptions import ConferenceCentralError
from app.schemas.profile import Profile, ProfileForm
from app.schemas.user import AuthenticatedUser
from app.services.profile_service import ProfileService

router = APIRouter(tags=["profiles"])


def get_profile_service():
    """Dependency to get ProfileService instance"""
    return ProfileService(get_entity_store())


@router.get("/profile", response_model=Optional[Profile])
async def get_profile(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Return the caller's profile, or null if it was never saved"""
    try:
        return profile_service.get_profile(user)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/profile", response_model=Profile)
async def save_profile(
    profile_form: ProfileForm,
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Create or update the caller's profile"""
    try:
        return profile_service.save_profile(user, profile_form)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
