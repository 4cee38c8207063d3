from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.database.dynamodb import EntityStore, is_transaction_cancelled
from app.database.keys import ConferenceKey, decode_conference_key, profile_pk
from app.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidKeyError,
    NotFoundError,
)
from app.schemas.conference import Conference
from app.schemas.profile import Profile
from app.schemas.registration import RegistrationResult
from app.schemas.user import AuthenticatedUser
from app.services.conference_service import (
    conference_from_item,
    conference_item,
    conference_version,
)
from app.services.profile_service import (
    PROFILE_SK,
    ProfileService,
    default_profile,
    profile_from_item,
    profile_item,
    require_user,
    version_guard,
)

logger = structlog.get_logger()


class OutcomeKind(str, Enum):
    SUCCESS = "SUCCESS"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    NO_SEATS = "NO_SEATS"
    NOT_REGISTERED = "NOT_REGISTERED"
    DENIED = "DENIED"


@dataclass(frozen=True)
class TransactionResult:
    kind: OutcomeKind
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


@dataclass
class RegistrationSnapshot:
    """Profile and Conference as read by one transactional get"""

    profile: Profile
    profile_version: int
    conference: Optional[Conference]
    conference_version: int


Work = Callable[[RegistrationSnapshot, str], TransactionResult]

DENIED = TransactionResult(OutcomeKind.DENIED, "Unknown exception")


def register_work(snapshot: RegistrationSnapshot, websafe_key: str) -> TransactionResult:
    """Decide a seat booking on a snapshot, mutating it on success"""
    conference = snapshot.conference
    if conference is None:
        return TransactionResult(
            OutcomeKind.NOT_FOUND, f"No Conference found with key: {websafe_key}"
        )

    profile = snapshot.profile
    if websafe_key in profile.conferenceKeysToAttend:
        return TransactionResult(OutcomeKind.ALREADY_REGISTERED, "Already registered")
    if conference.seatsAvailable <= 0:
        return TransactionResult(OutcomeKind.NO_SEATS, "No seats available")

    profile.add_to_conference_keys_to_attend(websafe_key)
    conference.book_seats(1)
    return TransactionResult(OutcomeKind.SUCCESS, "Registration successful")


def unregister_work(
    snapshot: RegistrationSnapshot, websafe_key: str
) -> TransactionResult:
    """Decide a seat release on a snapshot, mutating it on success"""
    conference = snapshot.conference
    if conference is None:
        return TransactionResult(
            OutcomeKind.NOT_FOUND, f"No Conference found with key: {websafe_key}"
        )

    profile = snapshot.profile
    if websafe_key not in profile.conferenceKeysToAttend:
        return TransactionResult(
            OutcomeKind.NOT_REGISTERED, "You are not registered for this conference"
        )

    profile.unregister_from_conference(websafe_key)
    conference.give_back_seats(1)
    return TransactionResult(OutcomeKind.SUCCESS)


class RegistrationService:
    def __init__(self, store: EntityStore):
        self.store = store
        self.profile_service = ProfileService(store)

    def register_for_conference(
        self, user: Optional[AuthenticatedUser], websafe_key: str
    ) -> RegistrationResult:
        """Book one seat for the caller"""
        user = require_user(user)
        key = decode_conference_key(websafe_key)
        websafe_key = key.to_websafe()

        result = self.transact(register_work, user, key, websafe_key)
        if not result.succeeded:
            raise self._registration_error(result)

        logger.info(
            "conference_registered", user_id=user.userId, conference_key=websafe_key
        )
        return RegistrationResult(result=True, reason=result.reason)

    def unregister_from_conference(
        self, user: Optional[AuthenticatedUser], websafe_key: str
    ) -> RegistrationResult:
        """Release the caller's seat"""
        user = require_user(user)
        key = decode_conference_key(websafe_key)
        websafe_key = key.to_websafe()

        result = self.transact(unregister_work, user, key, websafe_key)
        if not result.succeeded:
            raise self._unregistration_error(result)

        logger.info(
            "conference_unregistered", user_id=user.userId, conference_key=websafe_key
        )
        return RegistrationResult(result=True)

    def get_conferences_to_attend(
        self, user: Optional[AuthenticatedUser]
    ) -> List[Conference]:
        """Conferences on the caller's attend-list, in attend-list order"""
        user = require_user(user)

        profile, _ = self.profile_service.load_profile(user.userId)
        if profile is None:
            raise NotFoundError("Profile doesn't exist.")

        keys = []
        for websafe_key in profile.conferenceKeysToAttend:
            try:
                keys.append((websafe_key, decode_conference_key(websafe_key)))
            except InvalidKeyError:
                logger.warning(
                    "conference_key_unresolved",
                    user_id=user.userId,
                    conference_key=websafe_key,
                    cause="malformed",
                )

        items = self.store.get_many([(key.pk, key.sk) for _, key in keys])

        conferences = []
        for websafe_key, key in keys:
            item = items.get((key.pk, key.sk))
            if item is None:
                logger.warning(
                    "conference_key_unresolved",
                    user_id=user.userId,
                    conference_key=websafe_key,
                    cause="missing",
                )
                continue
            conferences.append(conference_from_item(item))

        return conferences

    def transact(
        self,
        work: Work,
        user: AuthenticatedUser,
        key: ConferenceKey,
        websafe_key: str,
    ) -> TransactionResult:
        """
        Read both records, let `work` decide and mutate them, then write both
        guarded by the versions that were read. Unexpected failures become DENIED.
        """
        try:
            snapshot = self._load_snapshot(user, key)
            result = work(snapshot, websafe_key)
            if result.succeeded:
                self._commit(snapshot)
            return result
        except ClientError as e:
            if is_transaction_cancelled(e):
                logger.info(
                    "registration_contention",
                    user_id=user.userId,
                    conference_key=websafe_key,
                )
                return self._reevaluate(work, user, key, websafe_key)
            logger.error(
                "registration_denied",
                user_id=user.userId,
                conference_key=websafe_key,
                error=str(e),
            )
            return DENIED
        except Exception:
            logger.exception(
                "registration_denied", user_id=user.userId, conference_key=websafe_key
            )
            return DENIED

    def _reevaluate(
        self,
        work: Work,
        user: AuthenticatedUser,
        key: ConferenceKey,
        websafe_key: str,
    ) -> TransactionResult:
        """
        After losing a write race, decide again on fresh data without writing.
        A business failure seen now is reported; anything else stays DENIED.
        """
        try:
            result = work(self._load_snapshot(user, key), websafe_key)
        except Exception:
            logger.exception(
                "registration_denied", user_id=user.userId, conference_key=websafe_key
            )
            return DENIED

        if result.succeeded:
            return DENIED
        return result

    def _load_snapshot(
        self, user: AuthenticatedUser, key: ConferenceKey
    ) -> RegistrationSnapshot:
        conference_data, profile_data = self.store.transact_get(
            [(key.pk, key.sk), (profile_pk(user.userId), PROFILE_SK)]
        )

        if profile_data is None:
            profile, profile_version = default_profile(user), 0
        else:
            profile, profile_version = profile_from_item(profile_data)

        if conference_data is None:
            conference, version = None, 0
        else:
            conference = conference_from_item(conference_data)
            version = conference_version(conference_data)

        return RegistrationSnapshot(profile, profile_version, conference, version)

    def _commit(self, snapshot: RegistrationSnapshot) -> None:
        self.store.transact_put(
            [
                {
                    "Item": profile_item(
                        snapshot.profile, snapshot.profile_version + 1
                    ),
                    **version_guard(snapshot.profile_version),
                },
                {
                    "Item": conference_item(
                        snapshot.conference, snapshot.conference_version + 1
                    ),
                    **version_guard(snapshot.conference_version),
                },
            ]
        )

    def _registration_error(self, result: TransactionResult) -> Exception:
        if result.kind is OutcomeKind.NOT_FOUND:
            return NotFoundError(result.reason)
        if result.kind is OutcomeKind.ALREADY_REGISTERED:
            return ConflictError("You have already registered")
        if result.kind is OutcomeKind.NO_SEATS:
            return ConflictError("There are no seats available")
        return ForbiddenError("Unknown exception")

    def _unregistration_error(self, result: TransactionResult) -> Exception:
        if result.kind is OutcomeKind.NOT_FOUND:
            return NotFoundError(result.reason)
        if result.kind is OutcomeKind.NOT_REGISTERED:
            return ForbiddenError(result.reason)
        return ForbiddenError("Unknown exception")
