from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_current_user, get_entity_store
from app.exceptions import ConferenceCentralError
from app.schemas.conference import Conference
from app.schemas.registration import RegistrationResult
from app.schemas.user import AuthenticatedUser
from app.services.registration_service import RegistrationService

router = APIRouter(tags=["registrations"])


def get_registration_service():
    """Dependency to get RegistrationService instance"""
    return RegistrationService(get_entity_store())


@router.post(
    "/conference/{websafeConferenceKey}/registration",
    response_model=RegistrationResult,
)
async def register_for_conference(
    websafeConferenceKey: str,
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Book a seat at the conference for the caller"""
    return registration_service.register_for_conference(user, websafeConferenceKey)


@router.delete(
    "/conference/{websafeConferenceKey}/registration",
    response_model=RegistrationResult,
)
async def unregister_from_conference(
    websafeConferenceKey: str,
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Give the caller's seat back"""
    return registration_service.unregister_from_conference(user, websafeConferenceKey)


@router.get("/getConferencesToAttend", response_model=List[Conference])
async def get_conferences_to_attend(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    registration_service: RegistrationService = Depends(get_registration_service),
):
    """Conferences the caller is registered for"""
    try:
        return registration_service.get_conferences_to_attend(user)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
