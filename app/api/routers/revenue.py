"""
Leakwatch - Revenue Router
Quick paid-orders summary for the dashboard header
"""

from fastapi import APIRouter, Depends, HTTPException

from app.core.rounding import format_fixed
from app.services import queries
from app.services.shopify_graphql import QueryExecutor, ShopifyAPIError
from auth_middleware import get_graphql_client

router = APIRouter(prefix="/revenue", tags=["Revenue"])


@router.get("/summary")
async def revenue_summary(executor: QueryExecutor = Depends(get_graphql_client)):
    """Count and total of the latest paid orders (capped at 100)"""
    try:
        data = await executor.execute(queries.PAID_ORDERS_QUERY)
    except ShopifyAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))

    orders = queries.edges(data, "orders")
    total = sum(queries.shop_money(order, "totalPriceSet") for order in orders)

    return {
        "totalOrders": len(orders),
        "totalRevenue": format_fixed(total, 2),
    }
