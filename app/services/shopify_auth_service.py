"""
Leakwatch - Shopify Authentication Service
Exchanges App Bridge session tokens for short-lived Admin API credentials
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from app.core.config import settings


logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_GRANT = "urn:ietf:params:oauth:grant-type:token-exchange"
ID_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:id_token"
ONLINE_ACCESS_TOKEN_TYPE = "urn:shopify:params:oauth:token-type:online-access-token"

SHOP_DOMAIN_RE = re.compile(r"[a-z0-9][a-z0-9-]*\.myshopify\.com")


class TokenExchangeError(Exception):
    """Raised when Shopify refuses to exchange a session token"""


class InvalidShopDomain(ValueError):
    """Raised when a shop value cannot be a *.myshopify.com host"""


@dataclass(frozen=True)
class AdminSession:
    """
    Opaque, time-bounded capability for calling the Admin API on behalf of one shop.

    expires_at is None for offline/development tokens.
    """

    shop: str
    access_token: str
    scope: str = ""
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now(timezone.utc)) >= self.expires_at


def normalize_shop_domain(shop: str) -> str:
    """
    Normalize shop domain to consistent format
    Handles: my-store, my-store.myshopify.com, https://my-store.myshopify.com

    Raises:
        InvalidShopDomain: if the result is not a bare <name>.myshopify.com host
    """
    shop = shop.strip().replace("https://", "").replace("http://", "")
    shop = shop.rstrip("/")

    if not shop.endswith(".myshopify.com"):
        shop = f"{shop}.myshopify.com"

    shop = shop.lower()
    if not SHOP_DOMAIN_RE.fullmatch(shop):
        raise InvalidShopDomain(f"Not a Shopify shop domain: {shop!r}")
    return shop


class ShopifyAuthService:
    """Service for turning an embedded-app session token into an AdminSession"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def exchange_session_token(self, shop: str, session_token: str) -> AdminSession:
        """
        Exchange a verified session token for an online access token

        Args:
            shop: The shop domain the token was issued for
            session_token: The raw App Bridge JWT

        Returns:
            AdminSession bound to the shop, expiring with the online token
        """
        try:
            shop = normalize_shop_domain(shop)
        except InvalidShopDomain as e:
            raise TokenExchangeError(str(e)) from e

        payload = {
            "client_id": settings.shopify_api_key,
            "client_secret": settings.shopify_api_secret,
            "grant_type": TOKEN_EXCHANGE_GRANT,
            "subject_token": session_token,
            "subject_token_type": ID_TOKEN_TYPE,
            "requested_token_type": ONLINE_ACCESS_TOKEN_TYPE,
        }

        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.post(
                f"https://{shop}/admin/oauth/access_token",
                json=payload,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=settings.graphql_timeout,
            )

        if response.status_code != 200:
            logger.warning(f"❌ [Auth] Token exchange failed for {shop}: {response.status_code}")
            raise TokenExchangeError(f"Failed to exchange session token: {response.status_code}")

        data = response.json()
        access_token = data.get("access_token")
        if not access_token:
            raise TokenExchangeError("Token exchange response had no access_token")

        expires_at = None
        if data.get("expires_in"):
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(data["expires_in"]))

        logger.info(f"🔑 [Auth] Exchanged session token for {shop}")

        return AdminSession(
            shop=shop,
            access_token=access_token,
            scope=data.get("scope", ""),
            expires_at=expires_at,
        )

    def development_session(self, shop: str) -> Optional[AdminSession]:
        """Non-expiring session from the configured dev token, debug mode only"""
        if not settings.debug or not settings.shopify_dev_access_token:
            return None
        try:
            shop = normalize_shop_domain(shop)
        except InvalidShopDomain as e:
            logger.warning(f"⚠️ [Auth] Refusing development session: {e}")
            return None
        return AdminSession(
            shop=shop,
            access_token=settings.shopify_dev_access_token,
            scope=settings.shopify_scopes,
        )
