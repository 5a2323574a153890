"""
Leakwatch - Leak Scan Service
Orchestrates one revenue leak scan against the Admin API

Shop, products and orders are load-bearing: any fault there fails the whole
scan. Checkouts, themes, apps, pages and tracking files are optional: a fault
is logged and that section keeps its default.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional

from app.core.config import settings
from app.core.rounding import parse_percent
from app.schemas.scan import (
    CartAbandonmentData,
    ScanMetrics,
    ScanResult,
    TrackingHealthIssue,
    TrustGapIssue,
    UxSpeedSignals,
)
from app.services import queries
from app.services.issue_ranker import rank_top_issues
from app.services.product_classifier import classify_products, find_unsold_products
from app.services.revenue_aggregator import (
    CheckoutAnalysis,
    OrderSummary,
    analyze_abandoned_checkouts,
    default_checkout_funnel,
    summarize_orders,
)
from app.services.scoring_service import ScoreInputs, score_store
from app.services.shopify_graphql import QueryExecutor
from app.services.store_signals import analyze_themes, app_names, detect_tracking, detect_trust_signals


logger = logging.getLogger(__name__)

SCAN_FAILED_MESSAGE = "Failed to scan store. Please try again."


@dataclass(frozen=True)
class ShopIdentity:
    name: str = ""
    plan: str = "Unknown"
    domain: Optional[str] = None


@dataclass(frozen=True)
class OptionalSections:
    checkouts: CheckoutAnalysis
    theme: UxSpeedSignals
    apps: List[str]
    trust: List[TrustGapIssue]
    tracking: List[TrackingHealthIssue]


class LeakScanService:
    """Runs the scan pipeline for whatever executor it is handed"""

    def __init__(
        self,
        executor: QueryExecutor,
        shop_domain: Optional[str] = None,
        concurrent: Optional[bool] = None,
        orders_lookback_days: Optional[int] = None,
    ):
        self.executor = executor
        self.shop_domain = shop_domain
        self.concurrent = settings.concurrent_optional_sections if concurrent is None else concurrent
        self.orders_lookback_days = orders_lookback_days or settings.orders_lookback_days

    async def run_scan(self, now: Optional[datetime] = None) -> ScanResult:
        now = now or datetime.now(timezone.utc)
        logger.info(f"🔍 [LeakScan] Starting revenue leak scan for {self.shop_domain or 'shop'}")

        try:
            shop = await self.fetch_shop()
            products = await self.fetch_products()
            orders = await self.fetch_orders(now)

            product_summary = classify_products(products)
            order_summary = summarize_orders(orders, now)
            unsold = find_unsold_products(products, order_summary.product_purchases, shop.domain)

            sections = await self.collect_optional_sections(order_summary, now)

            cart_analytics = sections.checkouts.cart_analytics
            ux_signals = sections.theme.model_copy(update={
                "apps_detected": len(sections.apps),
                "app_names": sections.apps,
            })

            card = score_store(
                ScoreInputs(
                    products_without_images=product_summary.without_images,
                    products_without_description=product_summary.without_description,
                    trust_gap_issues=sections.trust,
                    abandonment_rate=parse_percent(cart_analytics.abandonment_rate),
                    tracking_health_issues=sections.tracking,
                    theme_name=ux_signals.theme,
                ),
                total_revenue=order_summary.total_revenue,
            )

            top_issues = rank_top_issues(
                cart_analytics,
                product_summary.without_images,
                product_summary.without_description,
                sections.trust,
            )

            result = ScanResult(
                scanned=True,
                metrics=ScanMetrics(
                    shop_name=shop.name,
                    plan=shop.plan,
                    total_products=product_summary.total,
                    total_products_with_images=product_summary.with_images,
                    total_products_without_images=product_summary.without_images,
                    total_products_with_description=product_summary.with_description,
                    total_products_without_description=product_summary.without_description,
                    total_orders=order_summary.total_orders,
                    total_revenue=order_summary.total_revenue,
                    total_abandoned_checkouts=sections.checkouts.total_abandoned,
                    score=card.score,
                    grade=card.grade,
                    estimated_monthly_loss=card.estimated_monthly_loss,
                    scan_date=now.isoformat(),
                    cart_analytics=cart_analytics,
                    checkout_funnel=sections.checkouts.checkout_funnel,
                ),
                traffic_conversion_issues=unsold,
                checkout_abandonment_issues=sections.checkouts.issues,
                ux_speed_signals=ux_signals,
                trust_gap_issues=sections.trust,
                tracking_health_issues=sections.tracking,
                top_issues=top_issues,
            )
        except Exception as e:
            logger.exception(f"❌ [LeakScan] Scan error: {e}")
            return ScanResult.failed(SCAN_FAILED_MESSAGE, now)

        logger.info(f"✅ [LeakScan] Scan completed - Score: {card.score}/100, Grade: {card.grade}")
        logger.info(f"🛒 [LeakScan] Abandoned checkouts: {cart_analytics.abandoned_carts}, "
                    f"potential revenue: ${cart_analytics.potential_revenue:,}")
        return result

    # ==================== Load-bearing queries ====================

    async def fetch_shop(self) -> ShopIdentity:
        logger.info("🏪 [LeakScan] Fetching shop info...")
        data = await self.executor.execute(queries.SHOP_QUERY)
        shop = data.get("shop")
        if not shop:
            return ShopIdentity(domain=self.shop_domain)
        return ShopIdentity(
            name=shop.get("name") or "",
            plan=(shop.get("plan") or {}).get("displayName") or "Basic Shopify",
            domain=shop.get("myshopifyDomain") or self.shop_domain,
        )

    async def fetch_products(self) -> List[dict]:
        logger.info("📦 [LeakScan] Scanning products...")
        data = await self.executor.execute(queries.PRODUCTS_QUERY)
        return queries.edges(data, "products")

    async def fetch_orders(self, now: datetime) -> List[dict]:
        logger.info("💰 [LeakScan] Fetching orders...")
        search = queries.orders_search(now, self.orders_lookback_days)
        data = await self.executor.execute(queries.ORDERS_QUERY, {"query": search})
        return queries.edges(data, "orders")

    # ==================== Optional sections ====================

    async def collect_optional_sections(self, orders: OrderSummary, now: datetime) -> OptionalSections:
        no_checkouts = CheckoutAnalysis(
            total_abandoned=0,
            cart_analytics=CartAbandonmentData(),
            checkout_funnel=default_checkout_funnel(orders.average_order_value),
            issues=[],
        )

        async def checkouts():
            logger.info("🛒 [LeakScan] Analyzing abandoned checkouts...")
            data = await self.executor.execute(queries.ABANDONED_CHECKOUTS_QUERY)
            return analyze_abandoned_checkouts(queries.edges(data, "abandonedCheckouts"), orders, now)

        async def themes():
            logger.info("🎨 [LeakScan] Analyzing theme...")
            data = await self.executor.execute(queries.THEMES_QUERY)
            return analyze_themes(queries.edges(data, "themes"))

        async def apps():
            logger.info("📱 [LeakScan] Detecting installed apps...")
            data = await self.executor.execute(queries.INSTALLED_APPS_QUERY)
            return app_names(queries.edges(data, "appInstallations"))

        async def pages():
            logger.info("🛡️ [LeakScan] Checking trust signals...")
            data = await self.executor.execute(queries.PAGES_QUERY)
            return detect_trust_signals(queries.edges(data, "pages"))

        async def tracking_files():
            logger.info("📊 [LeakScan] Auditing tracking setup...")
            data = await self.executor.execute(queries.TRACKING_FILES_QUERY)
            main_themes = queries.edges(data, "themes")
            if not main_themes:
                return []
            return queries.edges(main_themes[0], "files")

        jobs = [
            ("Abandoned checkouts", checkouts, no_checkouts),
            ("Theme", themes, UxSpeedSignals()),
            ("Installed apps", apps, []),
            ("Pages", pages, []),
            ("Tracking files", tracking_files, None),
        ]

        if self.concurrent:
            results = await asyncio.gather(*(self._optional(name, fetch, default) for name, fetch, default in jobs))
        else:
            results = [await self._optional(name, fetch, default) for name, fetch, default in jobs]

        checkout_analysis, theme, installed, trust, files = results

        return OptionalSections(
            checkouts=checkout_analysis,
            theme=theme,
            apps=installed,
            trust=trust,
            tracking=detect_tracking(files),
        )

    async def _optional(self, section: str, fetch: Callable[[], Awaitable[Any]], default: Any) -> Any:
        try:
            return await fetch()
        except Exception as e:
            logger.warning(f"⚠️ [LeakScan] {section} not available: {e}")
            return default
