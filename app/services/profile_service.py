from typing import Any, Dict, Optional, Tuple

import structlog
from botocore.exceptions import ClientError

from app.database.dynamodb import EntityStore
from app.database.keys import profile_pk
from app.exceptions import ConflictError, UnauthorizedError
from app.schemas.profile import Profile, ProfileForm, TeeShirtSize
from app.schemas.user import AuthenticatedUser

PROFILE_SK = "PROFILE"

logger = structlog.get_logger()


def require_user(user: Optional[AuthenticatedUser]) -> AuthenticatedUser:
    if user is None:
        raise UnauthorizedError("Authorization required")
    return user


def extract_default_display_name_from_email(email: Optional[str]) -> Optional[str]:
    """lemoncake@example.com becomes lemoncake"""
    if email is None:
        return None
    return email.split("@", 1)[0]


def default_profile(user: AuthenticatedUser) -> Profile:
    return Profile(
        userId=user.userId,
        displayName=extract_default_display_name_from_email(user.email),
        mainEmail=user.email,
        teeShirtSize=TeeShirtSize.NOT_SPECIFIED,
    )


def profile_item(profile: Profile, version: int) -> Dict[str, Any]:
    item = {
        "PK": profile_pk(profile.userId),
        "SK": PROFILE_SK,
        "userId": profile.userId,
        "teeShirtSize": profile.teeShirtSize.value,
        "conferenceKeysToAttend": list(profile.conferenceKeysToAttend),
        "version": version,
    }

    # Add optional fields
    if profile.displayName is not None:
        item["displayName"] = profile.displayName
    if profile.mainEmail is not None:
        item["mainEmail"] = profile.mainEmail

    return item


def profile_from_item(item: Dict[str, Any]) -> Tuple[Profile, int]:
    """Build a Profile from a stored item; returns it with the item version"""
    profile = Profile(
        userId=item["userId"],
        displayName=item.get("displayName"),
        mainEmail=item.get("mainEmail"),
        teeShirtSize=item.get("teeShirtSize", TeeShirtSize.NOT_SPECIFIED.value),
        conferenceKeysToAttend=list(item.get("conferenceKeysToAttend", [])),
    )
    return profile, int(item.get("version", 0))


def version_guard(version: int) -> Dict[str, Any]:
    """Condition for writing an item read at `version` (0 means not stored yet)"""
    if version == 0:
        return {"ConditionExpression": "attribute_not_exists(PK)"}
    return {
        "ConditionExpression": "#version = :version",
        "ExpressionAttributeNames": {"#version": "version"},
        "ExpressionAttributeValues": {":version": version},
    }


class ProfileService:
    def __init__(self, store: EntityStore):
        self.store = store

    def load_profile(self, user_id: str) -> Tuple[Optional[Profile], int]:
        item = self.store.get((profile_pk(user_id), PROFILE_SK))
        if item is None:
            return None, 0
        return profile_from_item(item)

    def get_profile(self, user: Optional[AuthenticatedUser]) -> Optional[Profile]:
        """Return the caller's stored profile, or None if it was never saved"""
        user = require_user(user)
        profile, _ = self.load_profile(user.userId)
        return profile

    def get_or_create_profile(self, user: AuthenticatedUser) -> Profile:
        """Stored profile or an unsaved default one"""
        profile, _ = self.load_profile(user.userId)
        if profile is None:
            profile = default_profile(user)
        return profile

    def save_profile(
        self, user: Optional[AuthenticatedUser], form: ProfileForm
    ) -> Profile:
        """Create the caller's profile or update its editable fields"""
        user = require_user(user)

        profile, version = self.load_profile(user.userId)
        if profile is None:
            profile = default_profile(user)
        profile.update(form.displayName, form.teeShirtSize)

        item = profile_item(profile, version + 1)
        try:
            self.store.put(item, **version_guard(version))
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise ConflictError("Profile was modified concurrently, try again")
            raise

        logger.info("profile_saved", user_id=user.userId, created=version == 0)
        return profile
