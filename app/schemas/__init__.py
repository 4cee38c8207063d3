from .user import AuthenticatedUser
from .profile import Profile, ProfileForm, TeeShirtSize
from .conference import (
    Conference,
    ConferenceForm,
    ConferenceQueryFilter,
    ConferenceQueryForm,
)
from .registration import RegistrationResult

__all__ = [
    "AuthenticatedUser",
    "Profile",
    "ProfileForm",
    "TeeShirtSize",
    "Conference",
    "ConferenceForm",
    "ConferenceQueryFilter",
    "ConferenceQueryForm",
    "RegistrationResult",
]
