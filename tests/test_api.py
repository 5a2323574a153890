"""
HTTP surface: dashboard, scan, PDF report, revenue summary, recovery and auth.
"""
import time

import httpx
import jwt
import pytest

from app.api.routers.recovery import get_recovery_service
from app.core.config import settings
from app.services.recovery_service import RecoveryService
from app.services.shopify_auth_service import AdminSession, ShopifyAuthService, TokenExchangeError
from app.services.shopify_graphql import ShopifyAPIError
from tests.factories import checkout, connection, money, store_data


# ────────────────────────────────────────────
# CORE ENDPOINTS
# ────────────────────────────────────────────


class TestCoreEndpoints:

    def test_health(self, anonymous_client):
        response = anonymous_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_root_for_api_clients(self, anonymous_client):
        response = anonymous_client.get("/", headers={"Accept": "application/json"})
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["dashboard"] == "/dashboard"

    def test_root_for_browsers_serves_dashboard(self, anonymous_client):
        response = anonymous_client.get("/", headers={"Accept": "text/html"})
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]

    def test_dashboard_injects_api_key(self, anonymous_client):
        response = anonymous_client.get("/dashboard")
        assert response.status_code == 200
        assert "{{ api_key }}" not in response.text
        assert f'content="{settings.shopify_api_key}"' in response.text


# ────────────────────────────────────────────
# SCAN
# ────────────────────────────────────────────


class TestScan:

    def test_scan_returns_camel_case_report(self, client):
        response = client.post("/api/v1/scan")

        assert response.status_code == 200
        body = response.json()
        assert body["scanned"] is True
        assert "error" not in body
        assert body["metrics"]["shopName"] == "Acme Outfitters"
        assert body["metrics"]["score"] == 100
        assert body["metrics"]["grade"] == "A"
        assert len(body["trustGapIssues"]) == 5
        assert body["uxSpeedSignals"]["theme"] == "Dawn"

    def test_structural_failure_is_still_200(self, client, executor):
        executor.responses["LeakScanProducts"] = ShopifyAPIError("boom", status_code=500)

        response = client.post("/api/v1/scan")

        assert response.status_code == 200
        body = response.json()
        assert body["scanned"] is False
        assert body["error"] == "Failed to scan store. Please try again."

    def test_abandoned_carts_in_payload(self, client, executor):
        executor.responses.update(store_data(checkouts=[checkout("c1", 80, email="x@example.com")]))

        cart = client.post("/api/v1/scan").json()["metrics"]["cartAnalytics"]["recentAbandonedCarts"][0]

        assert cart["cartId"] == "c1"
        assert cart["customerEmail"] == "x@example.com"
        assert cart["totalPrice"] == 80.0

    def test_requires_auth(self, anonymous_client):
        response = anonymous_client.post("/api/v1/scan")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required. Please open the app from your Shopify admin."


class TestPdfReport:

    def test_pdf_download(self, client):
        response = client.get("/api/v1/scan", params={"mode": "pdf"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            'inline; filename="Acme Outfitters-revenue-leak-report.pdf"'
        )
        assert response.content.startswith(b"%PDF")

    def test_nameless_shop(self, client, executor):
        executor.responses["LeakScanShop"] = {"shop": {"name": None}}
        response = client.get("/api/v1/scan", params={"mode": "pdf"})
        assert 'filename="Your Store-revenue-leak-report.pdf"' in response.headers["content-disposition"]

    def test_shop_query_failure(self, client, executor):
        executor.responses["LeakScanShop"] = ShopifyAPIError("down")
        response = client.get("/api/v1/scan", params={"mode": "pdf"})
        assert response.status_code == 500
        assert response.text == "Failed to generate PDF"

    def test_unsupported_mode(self, client):
        assert client.get("/api/v1/scan", params={"mode": "csv"}).status_code == 400

    def test_mode_is_required(self, client):
        assert client.get("/api/v1/scan").status_code == 422


# ────────────────────────────────────────────
# REVENUE SUMMARY
# ────────────────────────────────────────────


class TestRevenueSummary:

    def test_totals(self, client, executor):
        executor.responses["RevenueSummary"] = {"orders": connection([
            {"totalPriceSet": money("10.10")},
            {"totalPriceSet": money("5.25")},
        ])}

        response = client.get("/api/v1/revenue/summary")

        assert response.status_code == 200
        assert response.json() == {"totalOrders": 2, "totalRevenue": "15.35"}

    def test_no_orders(self, client):
        assert client.get("/api/v1/revenue/summary").json() == {"totalOrders": 0, "totalRevenue": "0.00"}

    def test_api_failure(self, client, executor):
        executor.responses["RevenueSummary"] = ShopifyAPIError("GraphQL request failed: 500", status_code=500)
        assert client.get("/api/v1/revenue/summary").status_code == 502


# ────────────────────────────────────────────
# RECOVERY
# ────────────────────────────────────────────


class MutationClient:

    def __init__(self, response):
        self.response = response

    async def execute_mutation(self, mutation, variables=None):
        return self.response


@pytest.fixture
def recovery(test_app, client, monkeypatch):
    monkeypatch.setattr(settings, "reminder_relay_url", "https://mail.example.com/send")
    service = RecoveryService(
        client=MutationClient({"discountCodeBasicCreate": {"userErrors": []}}),
        transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
    )
    test_app.dependency_overrides[get_recovery_service] = lambda: service
    return client


class TestRecovery:

    def test_reminder(self, recovery):
        response = recovery.post("/api/v1/recovery/reminder", json={
            "cartId": "c1", "email": "ada@example.com", "name": "Ada", "total": 42.0,
        })

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Reminder sent to ada@example.com",
            "sentTo": "ada@example.com",
            "cartId": "c1",
        }

    def test_reminder_without_email(self, recovery):
        body = recovery.post("/api/v1/recovery/reminder", json={"cartId": "c2"}).json()
        assert body["success"] is False

    def test_discount(self, recovery):
        response = recovery.post("/api/v1/recovery/discount", json={"cartId": "c1", "discountPercent": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["discountCode"].startswith("COMEBACK10-")
        assert body["discountValue"] == "10% off"
        assert body["expiresAt"]

    def test_discount_defaults_to_fifteen_percent(self, recovery):
        body = recovery.post("/api/v1/recovery/discount", json={"cartId": "c1"}).json()
        assert body["discountValue"] == "15% off"

    def test_discount_percent_validated(self, recovery):
        response = recovery.post("/api/v1/recovery/discount", json={"cartId": "c1", "discountPercent": 150})
        assert response.status_code == 422

    def test_requires_auth(self, anonymous_client):
        response = anonymous_client.post("/api/v1/recovery/discount", json={"cartId": "c1"})
        assert response.status_code == 401


# ────────────────────────────────────────────
# AUTH
# ────────────────────────────────────────────


def session_token(shop="acme.myshopify.com"):
    now = int(time.time())
    return jwt.encode(
        {
            "iss": f"https://{shop}/admin",
            "dest": f"https://{shop}",
            "aud": settings.shopify_api_key,
            "sub": "1",
            "exp": now + 60,
            "nbf": now - 5,
            "iat": now - 5,
        },
        settings.shopify_api_secret,
        algorithm="HS256",
    )


class TestAuth:

    def test_session_token_is_exchanged(self, anonymous_client, monkeypatch):
        async def fake_exchange(self, shop, token):
            return AdminSession(shop=shop, access_token="shpua_x", scope="read_products")

        monkeypatch.setattr(ShopifyAuthService, "exchange_session_token", fake_exchange)

        response = anonymous_client.get(
            "/api/v1/auth/session",
            headers={"Authorization": f"Bearer {session_token()}"},
        )

        assert response.status_code == 200
        assert response.json() == {"shop": "acme.myshopify.com", "scope": "read_products", "expires_at": None}

    def test_invalid_session_token(self, anonymous_client):
        response = anonymous_client.get("/api/v1/auth/session", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired session token. Please refresh the page."

    def test_exchange_refused(self, anonymous_client, monkeypatch):
        async def refuse(self, shop, token):
            raise TokenExchangeError("400")

        monkeypatch.setattr(ShopifyAuthService, "exchange_session_token", refuse)

        response = anonymous_client.get(
            "/api/v1/auth/session",
            headers={"Authorization": f"Bearer {session_token()}"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Could not authenticate with Shopify"

    def test_development_token(self, anonymous_client, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        monkeypatch.setattr(settings, "shopify_dev_access_token", "shpat_dev")

        response = anonymous_client.get("/api/v1/auth/session", params={"shop": "acme"})

        assert response.status_code == 200
        assert response.json()["shop"] == "acme.myshopify.com"

    def test_shop_param_alone_is_not_enough(self, anonymous_client, monkeypatch):
        monkeypatch.setattr(settings, "shopify_dev_access_token", None)
        response = anonymous_client.get("/api/v1/auth/session", params={"shop": "acme"})
        assert response.status_code == 401

    def test_development_token_refused_for_foreign_host(self, anonymous_client, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        monkeypatch.setattr(settings, "shopify_dev_access_token", "shpat_dev")

        response = anonymous_client.get("/api/v1/auth/session", params={"shop": "evil.example/x.myshopify.com"})

        assert response.status_code == 401
