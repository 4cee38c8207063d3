import json
import base64
from dataclasses import dataclass

from app.exceptions import InvalidKeyError

PROFILE_KIND = "Profile"
CONFERENCE_KIND = "Conference"


@dataclass(frozen=True)
class ConferenceKey:
    """Conference id scoped under its organizer's profile"""

    organizer_user_id: str
    conference_id: int

    @property
    def pk(self) -> str:
        return profile_pk(self.organizer_user_id)

    @property
    def sk(self) -> str:
        return conference_sk(self.conference_id)

    def to_websafe(self) -> str:
        return encode_conference_key(self)


def profile_pk(user_id: str) -> str:
    return f"PROFILE#{user_id}"


def conference_sk(conference_id: int) -> str:
    return f"CONFERENCE#{conference_id:010d}"


def encode_conference_key(key: ConferenceKey) -> str:
    """Encode a conference key as an opaque url-safe string"""
    path = [PROFILE_KIND, key.organizer_user_id, CONFERENCE_KIND, key.conference_id]
    raw = json.dumps(path, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_conference_key(websafe_key: str) -> ConferenceKey:
    """
    Decode a string produced by encode_conference_key.
    Raises InvalidKeyError for anything that is not a well-formed conference key.
    """
    if not websafe_key:
        raise InvalidKeyError(websafe_key)

    padded = websafe_key + "=" * (-len(websafe_key) % 4)
    try:
        path = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
    except (ValueError, TypeError):
        raise InvalidKeyError(websafe_key)

    if (
        not isinstance(path, list)
        or len(path) != 4
        or path[0] != PROFILE_KIND
        or path[2] != CONFERENCE_KIND
        or not isinstance(path[1], str)
        or not path[1]
        or isinstance(path[3], bool)
        or not isinstance(path[3], int)
        or path[3] <= 0
    ):
        raise InvalidKeyError(websafe_key)

    return ConferenceKey(organizer_user_id=path[1], conference_id=path[3])
