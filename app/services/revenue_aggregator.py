"""
Leakwatch - Revenue & Funnel Aggregator
Turns raw orders and abandoned checkouts into revenue, funnel and cart analytics

The checkout funnel is modelled: the Admin API does not expose step-level
checkout data, so step counts are fixed fractions of the observed checkout starts.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from app.core.rounding import format_fixed, format_percent, round_cents, round_half_up
from app.schemas.scan import (
    AbandonedCart,
    AbandonedCartItem,
    AbandonedProduct,
    CartAbandonmentData,
    CheckoutAbandonmentIssue,
    CheckoutFunnelData,
    CheckoutStep,
)
from app.services.queries import shop_money


RECENT_WINDOW_DAYS = 30
REMINDER_RECOVERY_RATE = 0.18  # industry average, not measured
RECOVERABLE_SHARE = 0.2
ABANDONMENT_ISSUE_THRESHOLD = 30
TOP_ABANDONED_PRODUCTS = 5
RECENT_ABANDONED_CARTS = 10

# (step name, share of checkout starts that completes the step, published drop-off)
FUNNEL_MODEL: List[Tuple[str, float, Optional[str]]] = [
    ("View Cart", 0.9, "10%"),
    ("Information", 0.75, "16.7%"),
    ("Shipping", 0.7, "6.7%"),
    ("Payment", 0.65, "7.1%"),
    ("Complete", 1.0, None),
]


@dataclass(frozen=True)
class OrderSummary:
    total_orders: int = 0
    total_revenue: int = 0
    average_order_value: float = 0.0
    product_purchases: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckoutAnalysis:
    total_abandoned: int
    cart_analytics: CartAbandonmentData
    checkout_funnel: CheckoutFunnelData
    issues: List[CheckoutAbandonmentIssue]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 timestamp from the Admin API as an aware UTC datetime"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _quantity(item: dict) -> int:
    return item.get("quantity") or 1


# ==================== Orders ====================

def summarize_orders(orders: List[dict], now: datetime) -> OrderSummary:
    """
    Revenue is the last 30 days only; average order value uses every fetched order.
    total_orders is bounded by the query cap and filter, not an all-time count.
    """
    cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)

    monthly_revenue = 0.0
    all_totals = 0.0
    purchases: Dict[str, int] = {}

    for order in orders:
        total = shop_money(order, "totalPriceSet")
        all_totals += total

        processed_at = parse_timestamp(order.get("processedAt"))
        if processed_at is not None and processed_at > cutoff:
            monthly_revenue += total

        for item in (order.get("lineItems") or {}).get("edges") or []:
            node = item.get("node") or {}
            product_id = (node.get("product") or {}).get("id")
            if product_id:
                purchases[product_id] = purchases.get(product_id, 0) + _quantity(node)

    average = all_totals / len(orders) if orders else 0.0

    return OrderSummary(
        total_orders=len(orders),
        total_revenue=round_half_up(monthly_revenue),
        average_order_value=round_cents(average),
        product_purchases=purchases,
    )


# ==================== Abandoned checkouts ====================

def filter_abandoned_checkouts(checkouts: List[dict], now: datetime) -> List[dict]:
    """Keep checkouts never completed and abandoned inside the last 30 days"""
    cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
    recent = []
    for checkout in checkouts:
        if checkout.get("completedAt"):
            continue
        abandoned_at = parse_timestamp(checkout.get("abandonedAt"))
        if abandoned_at is not None and abandoned_at > cutoff:
            recent.append(checkout)
    return recent


def build_checkout_steps(total_starts: int, completed: int) -> List[CheckoutStep]:
    """Five modelled steps; each step enters what the previous one completed"""
    steps = []
    previous_share = 1.0
    for name, share, dropoff_rate in FUNNEL_MODEL:
        entered = round_half_up(total_starts * previous_share)
        if dropoff_rate is None:
            step_completed = completed
            dropoff_rate = format_percent((1 - completed / (total_starts * previous_share)) * 100)
        else:
            step_completed = round_half_up(total_starts * share)
            previous_share = share
        steps.append(CheckoutStep(
            step=name,
            entered=entered,
            completed=step_completed,
            dropoff_rate=dropoff_rate,
        ))
    return steps


def _line_items(checkout: dict) -> List[dict]:
    return [edge.get("node") or {} for edge in (checkout.get("lineItems") or {}).get("edges") or []]


def aggregate_abandoned_products(checkouts: List[dict]) -> List[AbandonedProduct]:
    """Group abandoned line items per product, top 5 by abandoned value"""
    grouped: Dict[str, dict] = {}

    for checkout in checkouts:
        for item in _line_items(checkout):
            product = item.get("product") or {}
            product_id = product.get("id") or f"custom-{item.get('title')}"
            line_total = shop_money(item, "originalTotalSet")
            quantity = _quantity(item)

            if product_id not in grouped:
                grouped[product_id] = {
                    "product_id": product_id,
                    "product_name": product.get("title") or item.get("title") or "",
                    "quantity": 0,
                    "price": line_total / quantity,
                    "total_value": 0.0,
                    "abandon_count": 0,
                }

            entry = grouped[product_id]
            entry["quantity"] += quantity
            entry["total_value"] += line_total
            entry["abandon_count"] += 1

    # sorted() is stable, so equal values keep first-seen order
    ranked = sorted(grouped.values(), key=lambda e: e["total_value"], reverse=True)
    return [AbandonedProduct(**entry) for entry in ranked[:TOP_ABANDONED_PRODUCTS]]


def project_abandoned_cart(checkout: dict) -> AbandonedCart:
    customer = checkout.get("customer") or {}

    customer_name = None
    if customer.get("firstName"):
        customer_name = f"{customer['firstName']} {customer.get('lastName') or ''}".strip()

    items = []
    for item in _line_items(checkout):
        product = item.get("product") or {}
        quantity = _quantity(item)
        items.append(AbandonedCartItem(
            product_id=product.get("id"),
            product_name=product.get("title") or item.get("title") or "",
            quantity=quantity,
            price=shop_money(item, "originalTotalSet") / quantity,
        ))

    return AbandonedCart(
        cart_id=checkout.get("id") or "",
        customer_email=checkout.get("email") or customer.get("email") or None,
        customer_name=customer_name,
        is_logged_in=bool(customer.get("id")),
        abandoned_at=checkout.get("abandonedAt"),
        total_price=shop_money(checkout, "totalPriceSet"),
        item_count=len(items),
        items=items,
    )


def default_checkout_funnel(average_order_value: float = 0.0) -> CheckoutFunnelData:
    return CheckoutFunnelData(average_order_value=average_order_value)


def analyze_abandoned_checkouts(
    checkouts: List[dict],
    orders: OrderSummary,
    now: datetime,
) -> CheckoutAnalysis:
    """
    Abandonment, funnel and cart analytics from the fetched checkouts.

    Completed checkouts are approximated by the fetched order count. With no
    checkout starts at all, the seeded defaults are returned unchanged.
    """
    recent = filter_abandoned_checkouts(checkouts, now)
    abandoned = len(recent)
    completed = orders.total_orders
    total_starts = completed + abandoned

    if total_starts == 0:
        return CheckoutAnalysis(
            total_abandoned=abandoned,
            cart_analytics=CartAbandonmentData(),
            checkout_funnel=default_checkout_funnel(orders.average_order_value),
            issues=[],
        )

    abandonment_rate = format_fixed(abandoned / total_starts * 100)
    completion_rate = format_percent(100 - float(abandonment_rate))

    funnel = CheckoutFunnelData(
        total_checkout_starts=total_starts,
        checkouts_completed=completed,
        checkouts_abandoned=abandoned,
        completion_rate=completion_rate,
        abandonment_rate=f"{abandonment_rate}%",
        purchases_after_checkout=completed,
        purchases_after_reminder=round_half_up(abandoned * REMINDER_RECOVERY_RATE),
        conversion_rate=completion_rate,
        average_order_value=orders.average_order_value,
        checkout_steps=build_checkout_steps(total_starts, completed),
        daily_funnel=[],
    )

    potential_revenue = sum(shop_money(c, "totalPriceSet") for c in recent)

    cart_analytics = CartAbandonmentData(
        total_carts=total_starts,
        carts_with_checkout=completed,
        carts_without_checkout=abandoned,
        abandoned_carts=abandoned,
        recovery_rate=format_percent(completed / total_starts * 100),
        abandonment_rate=f"{abandonment_rate}%",
        potential_revenue=round_half_up(potential_revenue),
        recoverable_revenue=round_half_up(potential_revenue * RECOVERABLE_SHARE),
        top_abandoned_products=aggregate_abandoned_products(recent),
        recent_abandoned_carts=[project_abandoned_cart(c) for c in recent[:RECENT_ABANDONED_CARTS]],
    )

    issues = []
    if float(abandonment_rate) > ABANDONMENT_ISSUE_THRESHOLD:
        issues.append(CheckoutAbandonmentIssue(
            starts=total_starts,
            completed=completed,
            abandonment_rate=f"{abandonment_rate}%",
            insight=(
                f"{abandoned} customers abandoned checkout - "
                f"${round_half_up(potential_revenue):,} in lost revenue"
            ),
        ))

    return CheckoutAnalysis(
        total_abandoned=abandoned,
        cart_analytics=cart_analytics,
        checkout_funnel=funnel,
        issues=issues,
    )
