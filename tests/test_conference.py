import pytest

from app.database.keys import ConferenceKey, decode_conference_key
from app.exceptions import InvalidKeyError, NotFoundError, UnauthorizedError
from app.schemas.conference import Conference, ConferenceForm
from app.schemas.profile import ProfileForm


def test_create_conference_initializes_seats(conference_service, alice):
    conference = conference_service.create_conference(
        alice,
        ConferenceForm(name="DjangoCon", city="Berlin", startDate="2027-06-02", maxAttendees=150),
    )

    assert isinstance(conference, Conference)
    assert conference.seatsAvailable == conference.maxAttendees == 150
    assert conference.organizerUserId == alice.userId
    assert conference.month == 6
    assert conference.id > 0

    key = decode_conference_key(conference.websafeKey)
    assert key == ConferenceKey(alice.userId, conference.id)


def test_create_conference_applies_form_defaults(conference_service, alice):
    conference = conference_service.create_conference(alice, ConferenceForm(name="Bare"))

    assert conference.city == "Default City"
    assert conference.topics == ["Default", "Topic"]
    assert conference.maxAttendees == 0
    assert conference.seatsAvailable == 0
    assert conference.month == 0
    assert conference.startDate is None


def test_create_conference_creates_default_profile(
    conference_service, profile_service, alice
):
    assert profile_service.get_profile(alice) is None

    conference = conference_service.create_conference(alice, ConferenceForm(name="First"))

    profile = profile_service.get_profile(alice)
    assert profile is not None
    assert profile.displayName == "alice"
    assert conference.organizerDisplayName == "alice"


def test_create_conference_keeps_existing_profile(
    conference_service, profile_service, alice
):
    profile_service.save_profile(alice, ProfileForm(displayName="Alice L."))

    conference = conference_service.create_conference(alice, ConferenceForm(name="Second"))

    assert conference.organizerDisplayName == "Alice L."
    assert profile_service.get_profile(alice).displayName == "Alice L."


def test_conference_ids_are_unique(conference_service, alice, bob):
    first = conference_service.create_conference(alice, ConferenceForm(name="A"))
    second = conference_service.create_conference(bob, ConferenceForm(name="B"))
    third = conference_service.create_conference(alice, ConferenceForm(name="C"))

    assert len({first.id, second.id, third.id}) == 3
    assert len({first.websafeKey, second.websafeKey, third.websafeKey}) == 3


def test_create_conference_requires_user(conference_service):
    with pytest.raises(UnauthorizedError):
        conference_service.create_conference(None, ConferenceForm(name="Nope"))


def test_create_conference_rejects_negative_capacity():
    with pytest.raises(ValueError):
        ConferenceForm(name="Broken", maxAttendees=-1)


def test_get_conference(conference_service, small_conference):
    conference = conference_service.get_conference(small_conference.websafeKey)

    assert conference.name == "PyCon Mini"
    assert conference.topics == ["Python", "Web Technologies"]
    assert str(conference.startDate) == "2027-01-10"
    assert conference.seatsAvailable == 2


def test_get_conference_not_found(conference_service):
    missing = ConferenceKey("ghost-id", 999).to_websafe()

    with pytest.raises(NotFoundError) as exc_info:
        conference_service.get_conference(missing)

    assert missing in str(exc_info.value)


def test_get_conference_invalid_key(conference_service):
    with pytest.raises(InvalidKeyError):
        conference_service.get_conference("garbage")


def test_get_conferences_created_lists_only_mine_by_name(
    conference_service, alice, bob
):
    conference_service.create_conference(alice, ConferenceForm(name="Zeta"))
    conference_service.create_conference(bob, ConferenceForm(name="Bob's"))
    conference_service.create_conference(alice, ConferenceForm(name="Alpha"))

    created = conference_service.get_conferences_created(alice)

    assert [c.name for c in created] == ["Alpha", "Zeta"]
    assert all(c.organizerUserId == alice.userId for c in created)
    assert all(c.organizerDisplayName == "alice" for c in created)


def test_get_conferences_created_requires_user(conference_service):
    with pytest.raises(UnauthorizedError):
        conference_service.get_conferences_created(None)


def test_book_and_give_back_seats_stay_in_bounds():
    conference = Conference(
        id=1, websafeKey="k", organizerUserId="u", name="N", maxAttendees=1, seatsAvailable=1
    )

    conference.book_seats(1)
    assert conference.seatsAvailable == 0

    with pytest.raises(ValueError):
        conference.book_seats(1)
    assert conference.seatsAvailable == 0

    conference.give_back_seats(1)
    conference.give_back_seats(1)
    assert conference.seatsAvailable == 1


def test_create_conference_when_profile_appears_concurrently(
    conference_service, profile_service, store, alice
):
    original_transact_put = store.transact_put
    raced = []

    def racing_transact_put(puts):
        # alice saves her profile between the lookup and the combined write
        if not raced:
            raced.append(True)
            profile_service.save_profile(alice, ProfileForm(displayName="Alice L."))
        original_transact_put(puts)

    store.transact_put = racing_transact_put

    conference = conference_service.create_conference(
        alice, ConferenceForm(name="Raced", maxAttendees=4)
    )

    stored = conference_service.get_conference(conference.websafeKey)
    assert stored.seatsAvailable == 4
    assert profile_service.get_profile(alice).displayName == "Alice L."
    assert [c.name for c in conference_service.get_conferences_created(alice)] == ["Raced"]
