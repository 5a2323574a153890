"""
Leakwatch - Services
"""

from app.services.leak_scan_service import LeakScanService
from app.services.recovery_service import RecoveryService
from app.services.shopify_auth_service import AdminSession, ShopifyAuthService
from app.services.shopify_graphql import ShopifyGraphQLClient

__all__ = [
    "LeakScanService",
    "RecoveryService",
    "AdminSession",
    "ShopifyAuthService",
    "ShopifyGraphQLClient",
]
