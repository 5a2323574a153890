"""
Leakwatch - Shopify GraphQL Client
Executes Admin API GraphQL documents for one AdminSession
"""

import logging
import re
from typing import Any, Dict, List, Optional, Protocol

import httpx

from app.core.config import settings
from app.services.shopify_auth_service import AdminSession


logger = logging.getLogger(__name__)

# String literals and comments, blanked before scanning
_IGNORED_RE = re.compile(r'"""[\s\S]*?"""|"(?:\\.|[^"\\\n])*"|#[^\n]*')
_TOKEN_RE = re.compile(r"[{}()]|\b(?:query|mutation|subscription|fragment)\b")


class ShopifyAPIError(Exception):
    """Raised on a failed Admin API call"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ReadOnlyViolation(ShopifyAPIError):
    """A mutation was sent down the read-only path"""


class SessionExpiredError(ShopifyAPIError):
    """The AdminSession is past its expiry"""


class QueryExecutor(Protocol):
    """Anything that runs a read query and returns the `data` object"""

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...


def operation_types(document: str) -> List[str]:
    """
    Keyword of every top-level operation in a GraphQL document.

    Bare `{ ... }` selections count as queries; fragment definitions are skipped.
    Keywords inside selection sets, arguments and strings are ignored.
    """
    text = _IGNORED_RE.sub(" ", document)
    operations = []
    depth = parens = 0
    in_header = False

    for match in _TOKEN_RE.finditer(text):
        token = match.group(0)
        if token == "(":
            parens += 1
        elif token == ")":
            parens = max(parens - 1, 0)
        elif parens:
            continue
        elif token == "{":
            if depth == 0:
                if not in_header:
                    operations.append("query")
                in_header = False
            depth += 1
        elif token == "}":
            depth = max(depth - 1, 0)
        elif depth == 0:
            if token != "fragment":
                operations.append(token)
            in_header = True

    return operations


def operation_type(document: str) -> str:
    """`mutation` or `subscription` if the document holds any, otherwise `query`"""
    found = operation_types(document)
    for kind in ("mutation", "subscription"):
        if kind in found:
            return kind
    return "query"


class ShopifyGraphQLClient:
    """GraphQL client bound to one shop's Admin API"""

    def __init__(
        self,
        session: AdminSession,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self.api_version = api_version or settings.shopify_api_version
        self.timeout = timeout or settings.graphql_timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"https://{self.session.shop}/admin/api/{self.api_version}/graphql.json"

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a read-only query. Mutations are refused before any network call."""
        if operation_type(query) != "query":
            raise ReadOnlyViolation("Only read queries may be executed on the scan path")
        return await self._request(query, variables)

    async def execute_mutation(self, mutation: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Write path, reserved for merchant-triggered recovery actions"""
        if operation_type(mutation) != "mutation":
            raise ShopifyAPIError("execute_mutation expects a mutation document")
        return await self._request(mutation, variables)

    async def _request(self, document: str, variables: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if self.session.is_expired():
            raise SessionExpiredError("Admin session has expired", status_code=401)

        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.session.access_token,
        }
        payload = {"query": document, "variables": variables or {}}

        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.post(
                self.endpoint,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )

        if response.status_code != 200:
            logger.warning(f"❌ [GraphQL] Request failed for {self.session.shop}: {response.status_code}")
            raise ShopifyAPIError(
                f"GraphQL request failed: {response.status_code}",
                status_code=response.status_code,
            )

        body = response.json()
        errors = body.get("errors")
        if errors:
            if isinstance(errors, list):
                message = "; ".join(str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors)
            else:
                message = str(errors)
            raise ShopifyAPIError(f"GraphQL errors: {message}", status_code=response.status_code)

        return body.get("data") or {}
