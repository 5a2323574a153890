"""
Leakwatch - Session Token Service
Verifies Shopify App Bridge session tokens
"""

import logging
from typing import Dict, Optional

import jwt

from app.core.config import settings
from app.services.shopify_auth_service import SHOP_DOMAIN_RE


logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["exp", "nbf", "iss", "dest", "aud"]


class SessionTokenService:
    """
    Verifies App Bridge session tokens.

    Session tokens are HS256 JWTs signed with the app's API secret:
    - iss: The shop's admin URL (https://shop.myshopify.com/admin)
    - dest: The shop's URL (https://shop.myshopify.com)
    - aud: The app's API key
    - exp / nbf: Validity window, about one minute
    """

    def __init__(self, api_key: Optional[str] = None, api_secret: Optional[str] = None, leeway: int = 10):
        self.api_key = api_key if api_key is not None else settings.shopify_api_key
        self.api_secret = api_secret if api_secret is not None else settings.shopify_api_secret
        self.leeway = leeway

    def verify_session_token(self, token: str) -> Optional[Dict]:
        """Decoded payload with an added `shop` key, or None if the token is invalid"""
        if not token or not self.api_secret:
            return None

        try:
            decoded = jwt.decode(
                token,
                self.api_secret,
                algorithms=["HS256"],
                audience=self.api_key,
                leeway=self.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("⚠️ [SessionToken] Token has expired")
            return None
        except jwt.InvalidAudienceError:
            logger.warning("⚠️ [SessionToken] Invalid audience (API key mismatch)")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"⚠️ [SessionToken] Invalid token: {e}")
            return None

        shop = shop_from_claims(decoded)
        if not shop:
            logger.warning("⚠️ [SessionToken] Token carries no shop domain")
            return None

        decoded["shop"] = shop
        return decoded

    def get_shop_from_token(self, token: str) -> Optional[str]:
        decoded = self.verify_session_token(token)
        return decoded.get("shop") if decoded else None


def shop_from_claims(decoded: Dict) -> Optional[str]:
    """Shop domain from `dest`, falling back to `iss`"""
    for claim in ("dest", "iss"):
        value = decoded.get(claim) or ""
        domain = value.replace("https://", "").replace("http://", "").split("/")[0].lower()
        if SHOP_DOMAIN_RE.fullmatch(domain):
            return domain
    return None


# Global instance
session_token_service = SessionTokenService()
