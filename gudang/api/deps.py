"""
API Dependencies
Common dependencies for API endpoints
"""

from typing import Optional

from fastapi import Header

from gudang.core.config import settings
from gudang.core.database import get_db  # noqa: F401


def get_acting_user(
    x_acting_user: Optional[str] = Header(None, description="Principal recorded in the activity log"),
) -> str:
    """
    Acting principal for audit entries.

    Read from the X-Acting-User header, falling back to the default actor.
    """
    actor = (x_acting_user or "").strip()
    return actor or settings.DEFAULT_ACTOR


def get_pagination_params(
    skip: int = 0,
    limit: int = 100
) -> dict:
    """
    Common pagination parameters.
    """
    return {"skip": skip, "limit": min(max(limit, 1), 500)}
