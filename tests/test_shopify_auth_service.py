"""
Session token exchange and the development session.
"""
import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from app.core.config import settings
from app.services.shopify_auth_service import (
    InvalidShopDomain,
    ShopifyAuthService,
    TokenExchangeError,
    normalize_shop_domain,
)


@pytest.mark.parametrize("raw,expected", [
    ("my-store", "my-store.myshopify.com"),
    ("my-store.myshopify.com", "my-store.myshopify.com"),
    ("https://My-Store.myshopify.com/", "my-store.myshopify.com"),
    ("  http://my-store.myshopify.com  ", "my-store.myshopify.com"),
])
def test_normalize_shop_domain(raw, expected):
    assert normalize_shop_domain(raw) == expected


@pytest.mark.parametrize("raw", [
    "evil.example/x.myshopify.com",
    "https://evil.example/x.myshopify.com",
    "evil.example?x=.myshopify.com",
    "a.b.myshopify.com",
    "user@evil.example#.myshopify.com",
    "-store.myshopify.com",
    "",
])
def test_normalize_rejects_foreign_hosts(raw):
    with pytest.raises(InvalidShopDomain):
        normalize_shop_domain(raw)


class TestExchangeSessionToken:

    def test_success(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "access_token": "shpua_online",
                "scope": "read_products,read_orders",
                "expires_in": 86399,
            })

        service = ShopifyAuthService(transport=httpx.MockTransport(handler))
        before = datetime.now(timezone.utc)
        session = asyncio.run(service.exchange_session_token("acme", "session.jwt"))

        assert session.shop == "acme.myshopify.com"
        assert session.access_token == "shpua_online"
        assert session.scope == "read_products,read_orders"
        assert session.expires_at > before
        assert not session.is_expired()

        request = seen[0]
        assert str(request.url) == "https://acme.myshopify.com/admin/oauth/access_token"
        body = json.loads(request.content)
        assert body["grant_type"] == "urn:ietf:params:oauth:grant-type:token-exchange"
        assert body["subject_token"] == "session.jwt"
        assert body["requested_token_type"] == "urn:shopify:params:oauth:token-type:online-access-token"

    def test_rejected(self):
        service = ShopifyAuthService(transport=httpx.MockTransport(lambda r: httpx.Response(400, json={})))
        with pytest.raises(TokenExchangeError):
            asyncio.run(service.exchange_session_token("acme.myshopify.com", "bad.jwt"))

    def test_no_token_in_response(self):
        service = ShopifyAuthService(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"scope": ""})))
        with pytest.raises(TokenExchangeError):
            asyncio.run(service.exchange_session_token("acme.myshopify.com", "odd.jwt"))

    def test_offline_token_never_expires(self):
        service = ShopifyAuthService(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"access_token": "shpat_offline"}))
        )
        session = asyncio.run(service.exchange_session_token("acme.myshopify.com", "a.jwt"))
        assert session.expires_at is None

    def test_foreign_shop_is_refused_before_any_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"access_token": "shpua_x"})

        service = ShopifyAuthService(transport=httpx.MockTransport(handler))
        with pytest.raises(TokenExchangeError):
            asyncio.run(service.exchange_session_token("evil.example/x.myshopify.com", "a.jwt"))
        assert seen == []


class TestDevelopmentSession:

    def test_needs_debug_and_token(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        monkeypatch.setattr(settings, "shopify_dev_access_token", "shpat_dev")

        session = ShopifyAuthService().development_session("acme")

        assert session.shop == "acme.myshopify.com"
        assert session.access_token == "shpat_dev"
        assert session.expires_at is None

    def test_disabled_outside_debug(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", False)
        monkeypatch.setattr(settings, "shopify_dev_access_token", "shpat_dev")
        assert ShopifyAuthService().development_session("acme") is None

    def test_disabled_without_token(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        monkeypatch.setattr(settings, "shopify_dev_access_token", None)
        assert ShopifyAuthService().development_session("acme") is None

    def test_foreign_shop_never_gets_the_dev_token(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)
        monkeypatch.setattr(settings, "shopify_dev_access_token", "shpat_dev")
        assert ShopifyAuthService().development_session("evil.example/x.myshopify.com") is None
