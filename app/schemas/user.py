from typing import Optional

from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    """Caller identity asserted by the upstream authentication proxy"""

    userId: str
    email: Optional[str] = None
