from functools import lru_cache
from typing import Optional

from fastapi import Header

from app.config import TABLE_NAME
from app.database.dynamodb import EntityStore, get_db_connection
from app.schemas.user import AuthenticatedUser


@lru_cache
def get_entity_store() -> EntityStore:
    """Process-wide store handle injected into every service"""
    return EntityStore(get_db_connection(), TABLE_NAME)


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
) -> Optional[AuthenticatedUser]:
    """Identity asserted by the authenticating proxy; None when signed out"""
    if not x_user_id:
        return None
    return AuthenticatedUser(userId=x_user_id, email=x_user_email)
