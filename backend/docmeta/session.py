"""
DocMeta Backend — Session Identity
====================================

What:  Reads the logged-in user id from the signed session cookie.
How:   Starlette's SessionMiddleware (registered in main.py) decodes the cookie
       into `request.session`; whatever logs users in stores their id under
       SESSION_USER_ID_KEY. Logging in is handled outside this service.
Who:   Injected into route handlers via Depends(get_session_user_id); tests
       override it to impersonate users.
"""

import logging
from typing import Optional

from starlette.requests import Request

logger = logging.getLogger(__name__)

SESSION_USER_ID_KEY = "id"


def get_session_user_id(request: Request) -> Optional[int]:
    """Returns the session user's id, or None for anonymous requests."""
    if "session" not in request.scope:
        return None
    raw = request.session.get(SESSION_USER_ID_KEY)
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed session user id: %r", raw)
        return None
