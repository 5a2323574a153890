"""
Leakwatch - Recovery Router
Reminder e-mails and discount codes for abandoned carts
"""

from fastapi import APIRouter, Depends, HTTPException

from app.schemas.recovery import DiscountRequest, DiscountResult, ReminderRequest, ReminderResult
from app.services.recovery_service import RecoveryService
from app.services.shopify_graphql import ShopifyGraphQLClient
from auth_middleware import get_graphql_client

router = APIRouter(prefix="/recovery", tags=["Recovery"])


def get_recovery_service(client: ShopifyGraphQLClient = Depends(get_graphql_client)) -> RecoveryService:
    return RecoveryService(client=client)


@router.post("/reminder", response_model=ReminderResult)
async def send_reminder(
    request: ReminderRequest,
    service: RecoveryService = Depends(get_recovery_service),
):
    """Send an abandoned-cart reminder e-mail"""
    return await service.send_reminder(
        cart_id=request.cart_id,
        email=request.email,
        name=request.name,
        total=request.total,
    )


@router.post("/discount", response_model=DiscountResult)
async def generate_discount(
    request: DiscountRequest,
    service: RecoveryService = Depends(get_recovery_service),
):
    """Create a single-use discount code for an abandoned cart"""
    try:
        return await service.generate_discount(request.cart_id, request.discount_percent)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
