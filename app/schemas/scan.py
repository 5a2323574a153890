"""
Leakwatch - Scan Schemas
Immutable records produced by one revenue leak scan
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


Severity = Literal["high", "medium", "low"]


class ReportModel(BaseModel):
    """Frozen, camelCase-serialised base for every report record"""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ==================== Issue Records ====================

class TrafficConversionIssue(ReportModel):
    product: str
    product_id: str
    product_url: str
    views: Optional[int] = None
    atc: Optional[int] = None
    purchases: int = 0
    conversion_rate: str = "0.0"
    insight: str


class CheckoutAbandonmentIssue(ReportModel):
    starts: int
    completed: int
    abandonment_rate: str
    insight: str


class TrustGapIssue(ReportModel):
    issue: str
    severity: Severity
    found: bool
    details: str


class TrackingHealthIssue(ReportModel):
    issue: str
    severity: Severity
    found: bool
    details: str


class UxSpeedSignals(ReportModel):
    theme: str = "Unknown"
    theme_role: str = "unknown"
    apps_detected: int = 0
    app_names: List[str] = []
    image_heavy_pages: int = 0
    insight: str = "Theme details unavailable."


# ==================== Cart Analytics ====================

class AbandonedProduct(ReportModel):
    product_id: str
    product_name: str
    quantity: int
    price: float
    total_value: float
    abandon_count: int


class AbandonedCartItem(ReportModel):
    product_id: Optional[str] = None
    product_name: str
    quantity: int
    price: float


class AbandonedCart(ReportModel):
    cart_id: str
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    is_logged_in: bool = False
    abandoned_at: Optional[str] = None
    total_price: float
    item_count: int
    items: List[AbandonedCartItem] = []


class CartAbandonmentData(ReportModel):
    total_carts: int = 0
    carts_with_checkout: int = 0
    carts_without_checkout: int = 0
    abandoned_carts: int = 0
    recovery_rate: str = "0%"
    abandonment_rate: str = "0%"
    potential_revenue: int = 0
    recoverable_revenue: int = 0
    top_abandoned_products: List[AbandonedProduct] = []
    recent_abandoned_carts: List[AbandonedCart] = []


class CheckoutStep(ReportModel):
    step: str
    entered: int
    completed: int
    dropoff_rate: str


class DailyFunnelEntry(ReportModel):
    date: str
    started: int
    completed: int
    abandoned: int


class CheckoutFunnelData(ReportModel):
    total_checkout_starts: int = 0
    checkouts_completed: int = 0
    checkouts_abandoned: int = 0
    completion_rate: str = "0%"
    abandonment_rate: str = "0%"
    purchases_after_checkout: int = 0
    purchases_after_reminder: int = 0
    conversion_rate: str = "0%"
    average_order_value: float = 0
    checkout_steps: List[CheckoutStep] = []
    daily_funnel: List[DailyFunnelEntry] = []


# ==================== Report ====================

class ScanMetrics(ReportModel):
    shop_name: str = ""
    plan: str = "Unknown"
    total_products: int = 0
    total_products_with_images: int = 0
    total_products_without_images: int = 0
    total_products_with_description: int = 0
    total_products_without_description: int = 0
    total_orders: int = 0
    total_revenue: int = 0
    total_abandoned_checkouts: int = 0
    score: int = 0
    grade: str = "C"
    estimated_monthly_loss: int = 0
    scan_date: str = ""
    cart_analytics: CartAbandonmentData = CartAbandonmentData()
    checkout_funnel: CheckoutFunnelData = CheckoutFunnelData()


class ScanResult(ReportModel):
    scanned: bool = True
    error: Optional[str] = None
    metrics: ScanMetrics = ScanMetrics()
    traffic_conversion_issues: List[TrafficConversionIssue] = []
    checkout_abandonment_issues: List[CheckoutAbandonmentIssue] = []
    ux_speed_signals: UxSpeedSignals = UxSpeedSignals()
    trust_gap_issues: List[TrustGapIssue] = []
    tracking_health_issues: List[TrackingHealthIssue] = []
    top_issues: List[str] = []

    @classmethod
    def failed(cls, error: str, scan_date: Optional[datetime] = None) -> "ScanResult":
        """A structural failure: defaults only, partial results are discarded"""
        scan_date = scan_date or datetime.now(timezone.utc)
        return cls(
            scanned=False,
            error=error,
            metrics=ScanMetrics(scan_date=scan_date.isoformat()),
        )

    def to_response(self) -> dict:
        """camelCase payload; `error` only appears on a failed scan"""
        exclude = None if not self.scanned else {"error"}
        return self.model_dump(by_alias=True, exclude=exclude)
