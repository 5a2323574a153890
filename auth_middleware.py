"""
Leakwatch - Authentication Dependencies
Turns an incoming request into an explicit AdminSession capability
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from app.services.shopify_auth_service import AdminSession, ShopifyAuthService, TokenExchangeError
from app.services.shopify_graphql import ShopifyGraphQLClient
from session_token_service import session_token_service


logger = logging.getLogger(__name__)


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):]
    return None


async def get_admin_session(request: Request) -> AdminSession:
    """
    Dependency that authenticates the request and returns an AdminSession.

    Checks in order:
    1. Authorization header (App Bridge session token), exchanged for an online token
    2. `shop` query parameter with the configured development token, debug mode only

    Raises:
        HTTPException: 401 if neither yields a session
    """
    auth_service = ShopifyAuthService()

    token = _bearer_token(request)
    if token:
        shop = session_token_service.get_shop_from_token(token)
        if not shop:
            raise HTTPException(
                status_code=401,
                detail="Invalid or expired session token. Please refresh the page.",
            )
        try:
            return await auth_service.exchange_session_token(shop, token)
        except TokenExchangeError as e:
            logger.warning(f"⚠️ [Auth] {e}")
            raise HTTPException(status_code=401, detail="Could not authenticate with Shopify")

    shop = request.query_params.get("shop")
    if shop:
        session = auth_service.development_session(shop)
        if session:
            logger.warning(f"⚠️ [Auth] Using development token (standalone mode): {session.shop}")
            return session

    raise HTTPException(
        status_code=401,
        detail="Authentication required. Please open the app from your Shopify admin.",
    )


async def get_graphql_client(session: AdminSession = Depends(get_admin_session)) -> ShopifyGraphQLClient:
    return ShopifyGraphQLClient(session)
