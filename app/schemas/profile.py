from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TeeShirtSize(str, Enum):
    NOT_SPECIFIED = "NOT_SPECIFIED"
    XS_M = "XS_M"
    XS_W = "XS_W"
    S_M = "S_M"
    S_W = "S_W"
    M_M = "M_M"
    M_W = "M_W"
    L_M = "L_M"
    L_W = "L_W"
    XL_M = "XL_M"
    XL_W = "XL_W"
    XXL_M = "XXL_M"
    XXL_W = "XXL_W"
    XXXL_M = "XXXL_M"
    XXXL_W = "XXXL_W"


class ProfileForm(BaseModel):
    """Fields a user may edit on their own profile"""

    displayName: Optional[str] = None
    teeShirtSize: Optional[TeeShirtSize] = None


class Profile(BaseModel):
    userId: str
    displayName: Optional[str] = None
    mainEmail: Optional[str] = None
    teeShirtSize: TeeShirtSize = TeeShirtSize.NOT_SPECIFIED
    conferenceKeysToAttend: List[str] = Field(default_factory=list)

    def update(
        self,
        display_name: Optional[str] = None,
        tee_shirt_size: Optional[TeeShirtSize] = None,
    ) -> None:
        if display_name is not None:
            self.displayName = display_name
        if tee_shirt_size is not None:
            self.teeShirtSize = tee_shirt_size

    def add_to_conference_keys_to_attend(self, websafe_key: str) -> None:
        if websafe_key in self.conferenceKeysToAttend:
            raise ValueError(f"Already registered for {websafe_key}")
        self.conferenceKeysToAttend.append(websafe_key)

    def unregister_from_conference(self, websafe_key: str) -> None:
        if websafe_key not in self.conferenceKeysToAttend:
            raise ValueError(f"Not registered for {websafe_key}")
        self.conferenceKeysToAttend.remove(websafe_key)
