"""
Leakwatch - Admin API query documents
Every document here is read-only; the recovery mutation lives in recovery_service
"""

from datetime import datetime, timedelta


SHOP_QUERY = """
query LeakScanShop {
  shop {
    name
    myshopifyDomain
    plan {
      displayName
    }
  }
}
"""

PRODUCTS_QUERY = """
query LeakScanProducts {
  products(first: 250) {
    edges {
      node {
        id
        title
        handle
        description
        featuredImage {
          url
        }
        images(first: 1) {
          edges {
            node {
              url
            }
          }
        }
        onlineStoreUrl
        priceRange {
          minVariantPrice {
            amount
          }
        }
      }
    }
  }
}
"""

ORDERS_QUERY = """
query LeakScanOrders($query: String!) {
  orders(first: 100, reverse: true, query: $query) {
    edges {
      node {
        id
        totalPriceSet {
          shopMoney {
            amount
          }
        }
        processedAt
        lineItems(first: 50) {
          edges {
            node {
              product {
                id
                title
              }
              quantity
              originalTotalSet {
                shopMoney {
                  amount
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

ABANDONED_CHECKOUTS_QUERY = """
query LeakScanAbandonedCheckouts {
  abandonedCheckouts(first: 100, reverse: true) {
    edges {
      node {
        id
        abandonedAt
        email
        customer {
          id
          email
          firstName
          lastName
        }
        totalPriceSet {
          shopMoney {
            amount
          }
        }
        lineItems(first: 50) {
          edges {
            node {
              title
              quantity
              originalTotalSet {
                shopMoney {
                  amount
                }
              }
              product {
                id
                title
              }
            }
          }
        }
        checkoutUrl
        completedAt
      }
    }
  }
}
"""

THEMES_QUERY = """
query LeakScanThemes {
  themes(first: 10) {
    edges {
      node {
        id
        name
        role
      }
    }
  }
}
"""

INSTALLED_APPS_QUERY = """
query LeakScanInstalledApps {
  appInstallations(first: 50) {
    edges {
      node {
        id
        app {
          title
        }
      }
    }
  }
}
"""

PAGES_QUERY = """
query LeakScanPages {
  pages(first: 50) {
    edges {
      node {
        id
        title
        handle
      }
    }
  }
}
"""

TRACKING_FILES_QUERY = """
query LeakScanTrackingFiles {
  themes(first: 1, roles: [MAIN]) {
    edges {
      node {
        id
        name
        files(filenames: ["layout/theme.liquid", "snippets/*.liquid"], first: 250) {
          edges {
            node {
              filename
              body {
                ... on OnlineStoreThemeFileBodyText {
                  content
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

PAID_ORDERS_QUERY = """
query RevenueSummary {
  orders(first: 100, query: "financial_status:paid") {
    edges {
      node {
        totalPriceSet {
          shopMoney {
            amount
          }
        }
      }
    }
  }
}
"""


def orders_search(now: datetime, lookback_days: int) -> str:
    """Server-side filter for the orders query: paid, processed inside the window"""
    since = (now - timedelta(days=lookback_days)).strftime("%Y-%m-%d")
    return f"financial_status:paid processed_at:>={since}"


def edges(data: dict, *path: str) -> list:
    """Walk `data` along path and return the `node` of each edge, [] when absent"""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return []
        current = current.get(key)
    if not isinstance(current, dict):
        return []
    return [edge.get("node") or {} for edge in current.get("edges") or []]


def shop_money(node: dict, field: str) -> float:
    """`node[field].shopMoney.amount` as a float, 0.0 when missing"""
    money = (node.get(field) or {}).get("shopMoney") or {}
    try:
        return float(money.get("amount") or 0)
    except (TypeError, ValueError):
        return 0.0
