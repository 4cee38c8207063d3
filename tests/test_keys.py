import base64
import json

import pytest

from app.database.keys import (
    ConferenceKey,
    decode_conference_key,
    encode_conference_key,
)
from app.exceptions import BadRequestError, InvalidKeyError


def _websafe(path):
    raw = json.dumps(path).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def test_encoded_key_decodes_to_same_key():
    key = ConferenceKey("user@with#odd/chars", 42)

    websafe = encode_conference_key(key)

    assert "=" not in websafe
    assert decode_conference_key(websafe) == key
    assert key.to_websafe() == websafe


def test_key_is_scoped_under_profile_partition():
    key = ConferenceKey("alice-id", 7)

    assert key.pk == "PROFILE#alice-id"
    assert key.sk == "CONFERENCE#0000000007"


@pytest.mark.parametrize(
    "websafe",
    [
        "",
        "not-a-key",
        "!!!!",
        _websafe({"kind": "Conference"}),
        _websafe(["Profile", "alice-id", "Session", 1]),
        _websafe(["Profile", "alice-id", "Conference", "1"]),
        _websafe(["Profile", "alice-id", "Conference", 0]),
        _websafe(["Profile", "", "Conference", 3]),
        _websafe(["Profile", "alice-id", "Conference", True]),
    ],
)
def test_malformed_keys_raise_invalid_key_error(websafe):
    with pytest.raises(InvalidKeyError) as exc_info:
        decode_conference_key(websafe)

    assert isinstance(exc_info.value, BadRequestError)
    assert exc_info.value.status_code == 400
