"""
Leakwatch - Issue Ranker
Builds the top-issues headline list in a fixed priority order
"""

from typing import List

from app.core.rounding import parse_percent
from app.schemas.scan import CartAbandonmentData, TrustGapIssue
from app.services.scoring_service import missing_high_severity


MAX_TOP_ISSUES = 5
MAX_POLICIES_NAMED = 2


def rank_top_issues(
    cart_analytics: CartAbandonmentData,
    products_without_images: int,
    products_without_description: int,
    trust_gap_issues: List[TrustGapIssue],
) -> List[str]:
    issues = []

    if parse_percent(cart_analytics.abandonment_rate) > 30:
        issues.append(
            f"Checkout abandonment: {cart_analytics.abandonment_rate} "
            f"(${cart_analytics.potential_revenue:,} lost)"
        )

    logged_in = sum(1 for cart in cart_analytics.recent_abandoned_carts if cart.is_logged_in)
    if logged_in > 0:
        issues.append(f"{logged_in} logged-in customers abandoned cart - Ready to email")

    if products_without_images > 0:
        issues.append(f"{products_without_images} product(s) missing images")

    if products_without_description > 0:
        issues.append(f"{products_without_description} product(s) missing descriptions")

    missing_policies = [
        issue.issue.replace(" policy", "")
        for issue in missing_high_severity(trust_gap_issues)
    ][:MAX_POLICIES_NAMED]
    if missing_policies:
        issues.append(f"Missing {' & '.join(missing_policies)} policies")

    return issues[:MAX_TOP_ISSUES]
