"""
Builders for Admin API GraphQL nodes and a fake query executor.
"""
import re
from datetime import datetime, timedelta, timezone

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def days_ago(days: float) -> str:
    return iso(NOW - timedelta(days=days))


def money(amount) -> dict:
    return {"shopMoney": {"amount": str(amount)}}


def connection(nodes) -> dict:
    return {"edges": [{"node": n} for n in nodes]}


def product(pid, title=None, image=True, description="A sturdy, well described product for everyday use",
            handle=None, online_url=None, gallery=False):
    return {
        "id": pid,
        "title": title or f"Product {pid}",
        "handle": handle or f"product-{pid}",
        "description": description,
        "featuredImage": {"url": f"https://cdn.example.com/{pid}.jpg"} if image else None,
        "images": connection([{"url": f"https://cdn.example.com/{pid}-g.jpg"}] if gallery else []),
        "onlineStoreUrl": online_url,
        "priceRange": {"minVariantPrice": {"amount": "10.0"}},
    }


def line_item(product_id=None, quantity=1, total=10.0, title="Item", product_title=None):
    node = {
        "title": title,
        "quantity": quantity,
        "originalTotalSet": money(total),
        "product": None,
    }
    if product_id:
        node["product"] = {"id": product_id, "title": product_title or title}
    return node


def order(oid, total, processed_days_ago=1, items=()):
    return {
        "id": oid,
        "totalPriceSet": money(total),
        "processedAt": days_ago(processed_days_ago),
        "lineItems": connection(list(items)),
    }


def checkout(cid, total, abandoned_days_ago=1, completed=False, email=None, customer=None, items=()):
    return {
        "id": cid,
        "abandonedAt": days_ago(abandoned_days_ago),
        "email": email,
        "customer": customer,
        "totalPriceSet": money(total),
        "lineItems": connection(list(items)),
        "checkoutUrl": f"https://shop.example.com/checkouts/{cid}",
        "completedAt": days_ago(0.5) if completed else None,
    }


def page(title):
    return {"id": f"gid://shopify/Page/{title}", "title": title, "handle": title.lower()}


def theme(name, role="MAIN"):
    return {"id": f"gid://shopify/OnlineStoreTheme/{name}", "name": name, "role": role}


def theme_file(filename, content):
    return {"filename": filename, "body": {"content": content}}


ALL_TRUST_PAGES = ["Shipping Policy", "Refund Policy", "Privacy Policy", "About Us", "FAQ"]


def store_data(
    products=(),
    orders=(),
    checkouts=(),
    themes=(theme("Dawn"),),
    apps=("Klaviyo",),
    pages=ALL_TRUST_PAGES,
    files=(theme_file("layout/theme.liquid", "fbq('track', 'Purchase');"),),
    shop_name="Acme Outfitters",
):
    """Responses keyed by GraphQL operation name"""
    return {
        "LeakScanShop": {"shop": {
            "name": shop_name,
            "myshopifyDomain": "acme.myshopify.com",
            "plan": {"displayName": "Shopify"},
        }},
        "LeakScanProducts": {"products": connection(list(products))},
        "LeakScanOrders": {"orders": connection(list(orders))},
        "LeakScanAbandonedCheckouts": {"abandonedCheckouts": connection(list(checkouts))},
        "LeakScanThemes": {"themes": connection(list(themes))},
        "LeakScanInstalledApps": {"appInstallations": connection(
            [{"id": f"gid://shopify/AppInstallation/{i}", "app": {"title": name}} for i, name in enumerate(apps)]
        )},
        "LeakScanPages": {"pages": connection([page(t) for t in pages])},
        "LeakScanTrackingFiles": {"themes": connection([
            {"id": "gid://shopify/OnlineStoreTheme/1", "name": "Dawn", "files": connection(list(files))}
        ])},
    }


_OPERATION_NAME = re.compile(r"\b(?:query|mutation)\s+(\w+)")


class FakeExecutor:
    """
    Stand-in for the Admin API. Each operation maps to a `data` dict, or to an
    exception instance that is raised when the operation runs.
    """

    def __init__(self, responses):
        self.responses = dict(responses)
        self.calls = []

    async def execute(self, query, variables=None):
        name = _OPERATION_NAME.search(query).group(1)
        self.calls.append((name, variables))
        response = self.responses.get(name, {})
        if isinstance(response, Exception):
            raise response
        return response
