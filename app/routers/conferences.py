from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_current_user, get_entity_store
from app.exceptions import ConferenceCentralError
from app.schemas.conference import Conference, ConferenceForm, ConferenceQueryForm
from app.schemas.user import AuthenticatedUser
from app.services.conference_service import ConferenceService
from app.services.query_service import ConferenceQueryService

router = APIRouter(tags=["conferences"])


def get_conference_service():
    """Dependency to get ConferenceService instance"""
    return ConferenceService(get_entity_store())


def get_query_service():
    """Dependency to get ConferenceQueryService instance"""
    return ConferenceQueryService(get_entity_store())


@router.get("/conference/{websafeConferenceKey}", response_model=Conference)
async def get_conference(
    websafeConferenceKey: str,
    conference_service: ConferenceService = Depends(get_conference_service),
):
    """Return the conference with the given websafe key"""
    try:
        return conference_service.get_conference(websafeConferenceKey)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/conference", response_model=Conference)
async def create_conference(
    conference_form: ConferenceForm,
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    conference_service: ConferenceService = Depends(get_conference_service),
):
    """Create a conference organized by the caller"""
    try:
        return conference_service.create_conference(user, conference_form)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/getConferencesCreated", response_model=List[Conference])
async def get_conferences_created(
    user: Optional[AuthenticatedUser] = Depends(get_current_user),
    conference_service: ConferenceService = Depends(get_conference_service),
):
    """Conferences organized by the caller"""
    try:
        return conference_service.get_conferences_created(user)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/queryConferences", response_model=List[Conference])
async def query_conferences(
    query_form: ConferenceQueryForm,
    query_service: ConferenceQueryService = Depends(get_query_service),
):
    """Filter and sort conferences"""
    try:
        return query_service.query_conferences(query_form)
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/getConferencesFiltered", response_model=List[Conference])
async def get_conferences_filtered(
    query_service: ConferenceQueryService = Depends(get_query_service),
):
    """Large London web-technology conferences in January"""
    try:
        return query_service.get_conferences_filtered()
    except ConferenceCentralError:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
