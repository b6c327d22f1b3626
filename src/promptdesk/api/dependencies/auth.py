"""Authorization gate: turns a resolved session into a TenantContext."""

from typing import Optional

from fastapi import Depends

from ...config import Settings
from ...context import TenantContext
from ...errors import Unauthenticated, Unauthorized
from ...stores.base import Session
from .identity import resolve_session
from .services import get_settings


def authorize(session: Optional[Session], sentinel_tenant_id: int = -1) -> TenantContext:
    """
    Admit a session only when it belongs to a real tenant.

    Accounts that were never attached to a tenant carry the sentinel id;
    they, and any other non-positive id, are refused.
    """
    if session is None:
        raise Unauthenticated()
    if session.tenant_id == sentinel_tenant_id or session.tenant_id <= 0:
        raise Unauthorized()
    return TenantContext(tenant_id=session.tenant_id, user_id=session.user_id)


def require_tenant(
    session: Optional[Session] = Depends(resolve_session),
    settings: Settings = Depends(get_settings),
) -> TenantContext:
    return authorize(session, settings.sentinel_tenant_id)
