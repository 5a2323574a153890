"""
Leakwatch - Authentication Router
Lets the embedded dashboard confirm who it is talking to
"""

from fastapi import APIRouter, Depends

from app.services.shopify_auth_service import AdminSession
from auth_middleware import get_admin_session


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/session")
async def current_session(session: AdminSession = Depends(get_admin_session)):
    """Authenticated shop and when its Admin API credential expires"""
    return {
        "shop": session.shop,
        "scope": session.scope,
        "expires_at": session.expires_at.isoformat() if session.expires_at else None,
    }
