"""
Identity resolver.

Finds the session token on the request (session cookie first, then an
``Authorization: Bearer`` header) and resolves it through the session store.
An anonymous request resolves to None; only a failing store is an error.
"""

import logging
from typing import Optional

from fastapi import Depends, Request

from ...config import Settings
from ...errors import IdentityLookupError
from ...stores.base import Session, SessionStore
from .services import get_session_store, get_settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def session_token(request: Request, cookie_name: str) -> Optional[str]:
    token = request.cookies.get(cookie_name)
    if token:
        return token

    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith(BEARER_PREFIX):
        return authorization[len(BEARER_PREFIX):].strip() or None
    return None


def resolve_session(
    request: Request,
    store: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_settings),
) -> Optional[Session]:
    token = session_token(request, settings.session_cookie)
    if token is None:
        return None

    try:
        return store.find_session(token)
    except Exception as e:
        logger.exception("Session lookup failed")
        raise IdentityLookupError() from e
