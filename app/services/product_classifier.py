"""
Leakwatch - Product Classifier
Partitions the catalogue by image and description quality and finds unsold products
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from app.schemas.scan import TrafficConversionIssue


MIN_DESCRIPTION_LENGTH = 20
MAX_UNSOLD_PRODUCTS = 3
UNSOLD_INSIGHT = "This product has been added to your store but hasn't sold yet"


@dataclass(frozen=True)
class ProductSummary:
    total: int
    with_images: int
    without_images: int
    with_description: int
    without_description: int


def has_image(product: dict) -> bool:
    """Featured image, or at least one entry in the image collection"""
    if (product.get("featuredImage") or {}).get("url"):
        return True
    images = (product.get("images") or {}).get("edges") or []
    return len(images) > 0


def has_description(product: dict) -> bool:
    description = product.get("description") or ""
    return len(description.strip()) >= MIN_DESCRIPTION_LENGTH


def classify_products(products: List[dict]) -> ProductSummary:
    without_images = sum(1 for p in products if not has_image(p))
    without_description = sum(1 for p in products if not has_description(p))
    total = len(products)

    return ProductSummary(
        total=total,
        with_images=total - without_images,
        without_images=without_images,
        with_description=total - without_description,
        without_description=without_description,
    )


def product_url(product: dict, shop_domain: Optional[str]) -> str:
    """Explicit online-store URL, otherwise synthesised from domain + handle"""
    if product.get("onlineStoreUrl"):
        return product["onlineStoreUrl"]
    return f"https://{shop_domain}/products/{product.get('handle', '')}"


def find_unsold_products(
    products: List[dict],
    purchases: Dict[str, int],
    shop_domain: Optional[str],
    limit: int = MAX_UNSOLD_PRODUCTS,
) -> List[TrafficConversionIssue]:
    """First `limit` products (catalogue order) with no recorded purchases"""
    issues = []
    for product in products:
        if purchases.get(product.get("id")):
            continue
        issues.append(TrafficConversionIssue(
            product=product.get("title") or "",
            product_id=product.get("id") or "",
            product_url=product_url(product, shop_domain),
            views=None,
            atc=None,
            purchases=0,
            conversion_rate="0.0",
            insight=UNSOLD_INSIGHT,
        ))
        if len(issues) >= limit:
            break
    return issues
