from datetime import date
from typing import Any, Dict, Iterable, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.database.dynamodb import EntityStore, is_transaction_cancelled
from app.database.keys import (
    ConferenceKey,
    decode_conference_key,
    profile_pk,
)
from app.exceptions import NotFoundError
from app.schemas.conference import Conference, ConferenceForm
from app.schemas.user import AuthenticatedUser
from app.services.profile_service import (
    PROFILE_SK,
    ProfileService,
    default_profile,
    profile_from_item,
    profile_item,
    require_user,
    version_guard,
)

CONFERENCE_SK_PREFIX = "CONFERENCE#"
CONFERENCE_COUNTER = "CONFERENCE"

logger = structlog.get_logger()


def conference_item(conference: Conference, version: int) -> Dict[str, Any]:
    key = ConferenceKey(conference.organizerUserId, conference.id)
    name_sort_key = f"NAME#{conference.name}#ID#{conference.id:010d}"

    item = {
        "PK": key.pk,
        "SK": key.sk,
        "id": conference.id,
        "organizerUserId": conference.organizerUserId,
        "name": conference.name,
        "description": conference.description,
        "topics": list(conference.topics),
        "city": conference.city,
        "month": conference.month,
        "maxAttendees": conference.maxAttendees,
        "seatsAvailable": conference.seatsAvailable,
        "version": version,
    }

    # Add optional fields
    if conference.startDate:
        item["startDate"] = conference.startDate.isoformat()
    if conference.endDate:
        item["endDate"] = conference.endDate.isoformat()

    # Add GSI attributes for listing queries
    item["GSI_Conferences_PK"] = "CONFERENCE"
    item["GSI_Conferences_SK"] = name_sort_key
    item["GSI_ByCity_PK"] = f"CITY#{conference.city}"
    item["GSI_ByCity_SK"] = name_sort_key

    return item


def conference_from_item(item: Dict[str, Any]) -> Conference:
    conference_id = int(item["id"])
    key = ConferenceKey(item["organizerUserId"], conference_id)
    return Conference(
        id=conference_id,
        websafeKey=key.to_websafe(),
        organizerUserId=item["organizerUserId"],
        name=item["name"],
        description=item.get("description", ""),
        topics=list(item.get("topics", [])),
        city=item.get("city", ""),
        startDate=item.get("startDate"),
        endDate=item.get("endDate"),
        month=int(item.get("month", 0)),
        maxAttendees=int(item.get("maxAttendees", 0)),
        seatsAvailable=int(item.get("seatsAvailable", 0)),
    )


def conference_version(item: Dict[str, Any]) -> int:
    return int(item.get("version", 0))


def month_of(start_date: Optional[date]) -> int:
    return start_date.month if start_date else 0


class ConferenceService:
    def __init__(self, store: EntityStore):
        self.store = store
        self.profile_service = ProfileService(store)

    def load_conference(self, key: ConferenceKey) -> Optional[Conference]:
        item = self.store.get((key.pk, key.sk))
        return conference_from_item(item) if item else None

    def get_conference(self, websafe_key: str) -> Conference:
        key = decode_conference_key(websafe_key)
        conference = self.load_conference(key)
        if conference is None:
            raise NotFoundError(f"No Conference found with key: {websafe_key}")
        return conference

    def create_conference(
        self, user: Optional[AuthenticatedUser], form: ConferenceForm
    ) -> Conference:
        """Create a conference owned by the caller's profile"""
        user = require_user(user)

        profile, profile_version = self.profile_service.load_profile(user.userId)
        conference_id = self.store.allocate_id(CONFERENCE_COUNTER)
        key = ConferenceKey(user.userId, conference_id)

        conference = Conference(
            id=conference_id,
            websafeKey=key.to_websafe(),
            organizerUserId=user.userId,
            organizerDisplayName=profile.displayName if profile else None,
            name=form.name,
            description=form.description,
            topics=list(form.topics),
            city=form.city,
            startDate=form.startDate,
            endDate=form.endDate,
            month=month_of(form.startDate),
            maxAttendees=form.maxAttendees,
            seatsAvailable=form.maxAttendees,
        )

        conference_put = {
            "Item": conference_item(conference, 1),
            "ConditionExpression": "attribute_not_exists(PK)",
        }

        if profile is not None:
            self.store.transact_put([conference_put])
        else:
            profile = default_profile(user)
            conference.organizerDisplayName = profile.displayName
            profile_put = {
                "Item": profile_item(profile, 1),
                **version_guard(profile_version),
            }
            try:
                self.store.transact_put([profile_put, conference_put])
            except ClientError as e:
                if not is_transaction_cancelled(e):
                    raise
                # Profile was created concurrently; the conference still needs writing
                if self.store.get((profile_pk(user.userId), PROFILE_SK)) is None:
                    raise
                self.store.transact_put([conference_put])

        logger.info(
            "conference_created",
            user_id=user.userId,
            conference_id=conference_id,
            max_attendees=conference.maxAttendees,
        )
        return conference

    def get_conferences_created(
        self, user: Optional[AuthenticatedUser]
    ) -> List[Conference]:
        """Conferences in the caller's profile partition, ordered by name"""
        user = require_user(user)

        items = self.store.query(
            "PK",
            profile_pk(user.userId),
            sort_attr="SK",
            sort_prefix=CONFERENCE_SK_PREFIX,
        )
        conferences = [conference_from_item(item) for item in items]
        conferences.sort(key=lambda c: (c.name, c.id))
        self.attach_organizer_names(conferences)
        return conferences

    def attach_organizer_names(self, conferences: Iterable[Conference]) -> None:
        """Pre-fetch organizer profiles in one batch to fill organizerDisplayName"""
        conferences = list(conferences)
        organizer_keys = [
            (profile_pk(c.organizerUserId), PROFILE_SK) for c in conferences
        ]
        if not organizer_keys:
            return

        profiles = self.store.get_many(organizer_keys)
        for conference in conferences:
            item = profiles.get((profile_pk(conference.organizerUserId), PROFILE_SK))
            if item is not None:
                profile, _ = profile_from_item(item)
                conference.organizerDisplayName = profile.displayName
