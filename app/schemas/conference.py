from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, Field

DEFAULT_CITY = "Default City"
DEFAULT_TOPICS = ["Default", "Topic"]

# Name and city end up in index keys; bounded so 4-byte UTF-8 text still fits
# the 1024-byte sort key and 2048-byte partition key limits
MAX_NAME_LENGTH = 250
MAX_CITY_LENGTH = 500


class ConferenceForm(BaseModel):
    """Fields supplied by the organizer when creating a conference"""

    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH)
    description: str = ""
    topics: List[str] = Field(default_factory=lambda: list(DEFAULT_TOPICS))
    city: str = Field(default=DEFAULT_CITY, max_length=MAX_CITY_LENGTH)
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    maxAttendees: int = Field(default=0, ge=0)


class Conference(BaseModel):
    id: int
    websafeKey: str
    organizerUserId: str
    organizerDisplayName: Optional[str] = None
    name: str
    description: str = ""
    topics: List[str] = Field(default_factory=list)
    city: str = DEFAULT_CITY
    startDate: Optional[date] = None
    endDate: Optional[date] = None
    month: int = 0
    maxAttendees: int = 0
    seatsAvailable: int = 0

    def book_seats(self, number: int) -> None:
        """Take seats out of the available pool; never goes below zero"""
        if number <= 0:
            raise ValueError("Number of seats to book must be positive")
        if self.seatsAvailable < number:
            raise ValueError("There are no seats available")
        self.seatsAvailable -= number

    def give_back_seats(self, number: int) -> None:
        """Return seats to the pool, capped at maxAttendees"""
        if number <= 0:
            raise ValueError("Number of seats to give back must be positive")
        self.seatsAvailable = min(self.seatsAvailable + number, self.maxAttendees)


class ConferenceQueryFilter(BaseModel):
    field: str
    operator: str
    value: Union[int, str]


class ConferenceQueryForm(BaseModel):
    filters: List[ConferenceQueryFilter] = Field(default_factory=list)
