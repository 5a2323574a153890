"""
Leakwatch - Recovery Service
Merchant-triggered follow-ups for abandoned carts: reminder e-mails and discount codes
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from app.core.config import settings
from app.schemas.recovery import DiscountResult, ReminderResult
from app.services.shopify_graphql import ShopifyAPIError, ShopifyGraphQLClient


logger = logging.getLogger(__name__)

DISCOUNT_CREATE_MUTATION = """
mutation RecoveryDiscountCreate($basicCodeDiscount: DiscountCodeBasicInput!) {
  discountCodeBasicCreate(basicCodeDiscount: $basicCodeDiscount) {
    codeDiscountNode {
      id
    }
    userErrors {
      field
      message
    }
  }
}
"""


def reminder_body(name: str, total: float) -> str:
    return (
        f"Hi {name},\n\n"
        f"You left ${total:,.2f} worth of items in your cart. "
        f"They're still waiting for you - complete your order whenever you're ready.\n"
    )


def new_discount_code(percent: int) -> str:
    return f"COMEBACK{percent}-{secrets.token_hex(3).upper()}"


class RecoveryService:
    """Reminder e-mails go through an HTTP relay; discount codes through the Admin API"""

    def __init__(
        self,
        client: Optional[ShopifyGraphQLClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = client
        self.transport = transport

    async def send_reminder(self, cart_id: str, email: Optional[str], name: str, total: float) -> ReminderResult:
        if not email:
            return ReminderResult(
                success=False,
                message="No email address on file for this cart",
                sent_to="",
                cart_id=cart_id,
            )

        if not settings.reminder_relay_url:
            logger.warning("⚠️ [Recovery] Email relay not configured")
            return ReminderResult(
                success=False,
                message="Email delivery is not configured",
                sent_to=email,
                cart_id=cart_id,
            )

        payload = {
            "to_email": email,
            "subject": "You left something in your cart",
            "body": reminder_body(name or "Customer", total),
            "from_address": settings.reminder_from_address,
        }
        headers = {
            "X-API-Key": settings.reminder_relay_api_key,
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(transport=self.transport) as client:
                response = await client.post(
                    settings.reminder_relay_url,
                    json=payload,
                    headers=headers,
                    timeout=settings.graphql_timeout,
                )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"❌ [Recovery] Reminder for cart {cart_id} failed: {e}")
            return ReminderResult(
                success=False,
                message="Failed to send reminder email",
                sent_to=email,
                cart_id=cart_id,
            )

        logger.info(f"📧 [Recovery] Reminder sent for cart {cart_id}")
        return ReminderResult(
            success=True,
            message=f"Reminder sent to {email}",
            sent_to=email,
            cart_id=cart_id,
        )

    async def generate_discount(
        self,
        cart_id: str,
        discount_percent: int,
        now: Optional[datetime] = None,
    ) -> DiscountResult:
        """Single-use percentage code, valid for settings.discount_valid_days"""
        if not 1 <= discount_percent <= 100:
            raise ValueError("discount_percent must be between 1 and 100")
        if self.client is None:
            raise RuntimeError("generate_discount needs an Admin API client")

        now = now or datetime.now(timezone.utc)
        expires_at = now + timedelta(days=settings.discount_valid_days)
        code = new_discount_code(discount_percent)

        variables = {
            "basicCodeDiscount": {
                "title": f"Cart recovery {code}",
                "code": code,
                "startsAt": now.isoformat(),
                "endsAt": expires_at.isoformat(),
                "usageLimit": 1,
                "appliesOncePerCustomer": True,
                "customerSelection": {"all": True},
                "customerGets": {
                    "value": {"percentage": discount_percent / 100},
                    "items": {"all": True},
                },
            }
        }

        try:
            data = await self.client.execute_mutation(DISCOUNT_CREATE_MUTATION, variables)
        except ShopifyAPIError as e:
            logger.error(f"❌ [Recovery] Discount for cart {cart_id} failed: {e}")
            return DiscountResult(success=False, message="Failed to create discount code")

        user_errors = (data.get("discountCodeBasicCreate") or {}).get("userErrors") or []
        if user_errors:
            message = "; ".join(err.get("message", "") for err in user_errors)
            logger.warning(f"⚠️ [Recovery] Discount rejected for cart {cart_id}: {message}")
            return DiscountResult(success=False, message=message)

        logger.info(f"🏷️ [Recovery] Created discount {code} for cart {cart_id}")
        return DiscountResult(
            success=True,
            discount_code=code,
            discount_value=f"{discount_percent}% off",
            expires_at=expires_at.isoformat(),
        )
