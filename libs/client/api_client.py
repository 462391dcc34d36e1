"""Async client for the studio API.

The base URL is discovered once per client instance: each configured
candidate is probed with ``GET /health`` in order and the first healthy one
is used for every later call. When none answers, the first candidate is
used anyway so calls fail visibly instead of never being sent.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional, Sequence

import httpx
from libs.client.errors import ApiError, ApiErrorType
from libs.common.config import get_settings, split_csv
from libs.common.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8189"
_DEFAULT_TIMEOUT = 10.0
_BODY_PREVIEW_CHARS = 500


def _is_valid_base_url(candidate: str) -> bool:
    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL:
        return False
    return url.scheme in ("http", "https") and bool(url.host)


def normalize_base_urls(candidates: Sequence[str] | str | None) -> list[str]:
    """Parse and clean candidate base URLs, falling back to the local default."""
    if isinstance(candidates, str):
        candidates = split_csv(candidates)
    cleaned = []
    for candidate in candidates or []:
        candidate = candidate.strip().rstrip("/")
        if not candidate:
            continue
        if not _is_valid_base_url(candidate):
            logger.warning("Ignoring invalid API base URL: %s", candidate)
            continue
        cleaned.append(candidate)
    return cleaned or [DEFAULT_BASE_URL]


class ApiClient:
    def __init__(
        self,
        base_urls: Sequence[str] | str | None = None,
        *,
        token: Optional[str] = None,
        probe_timeout: Optional[float] = None,
        timeout: float = _DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        if base_urls is None:
            base_urls = settings.api_base_urls
        self.base_urls = normalize_base_urls(base_urls)
        self.probe_timeout = (
            probe_timeout if probe_timeout is not None else settings.API_PROBE_TIMEOUT
        )
        self.timeout = timeout
        self.token = token
        self._transport = transport
        self._base_url_task: Optional[asyncio.Task[str]] = None

    # ------------------------------------------------------------------
    # Base URL discovery
    # ------------------------------------------------------------------

    async def _probe(self, base_url: str) -> bool:
        try:
            async with httpx.AsyncClient(
                timeout=self.probe_timeout, transport=self._transport
            ) as client:
                response = await client.get(f"{base_url}/health")
        except httpx.HTTPError as exc:
            logger.warning("API connection attempt failed for %s: %s", base_url, exc)
            return False
        return response.is_success

    async def _discover_base_url(self) -> str:
        for base_url in self.base_urls:
            if await self._probe(base_url):
                logger.info("API connection successful. Using base URL: %s", base_url)
                return base_url

        logger.error(
            "No available API server found. Falling back to %s", self.base_urls[0]
        )
        return self.base_urls[0]

    async def get_base_url(self) -> str:
        """
        Resolve the base URL once; concurrent callers share the same probe.

        Callers await a shielded view of the task, so a caller that gives up
        does not cancel discovery for everyone else.
        """
        if self._base_url_task is None or self._base_url_task.cancelled():
            self._base_url_task = asyncio.ensure_future(self._discover_base_url())
        return await asyncio.shield(self._base_url_task)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def request(self, method: str, path: str, *, json_body: Any = None) -> Any:
        base_url = await self.get_base_url()
        endpoint = f"{base_url}/{path.lstrip('/')}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method,
                    endpoint,
                    headers=self._headers(),
                    json=json_body,
                )
        except httpx.HTTPError as exc:
            raise ApiError(
                f"Unable to reach {endpoint}: {exc}",
                type=ApiErrorType.NETWORK,
                endpoint=endpoint,
            ) from exc

        content_type = response.headers.get("content-type", "")
        is_json = "application/json" in content_type

        if not response.is_success:
            raise self._http_error(endpoint, response, is_json)

        if not is_json:
            text = response.text
            raise ApiError(
                f"Request to {endpoint} succeeded but the response is not JSON "
                f"(content-type: {content_type or 'unknown'})",
                type=ApiErrorType.INVALID_RESPONSE,
                endpoint=endpoint,
                status=response.status_code,
                server_body=text[:_BODY_PREVIEW_CHARS],
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"Request to {endpoint} returned malformed JSON",
                type=ApiErrorType.INVALID_RESPONSE,
                endpoint=endpoint,
                status=response.status_code,
                server_body=response.text[:_BODY_PREVIEW_CHARS],
            ) from exc

    @staticmethod
    def _http_error(endpoint: str, response: httpx.Response, is_json: bool) -> ApiError:
        payload = None
        server_message = None
        code = None
        if is_json:
            try:
                payload = response.json()
            except ValueError:
                payload = None
        if isinstance(payload, dict):
            server_message = payload.get("message")
            code = payload.get("code")
            server_body = json.dumps(payload)
        else:
            server_body = response.text[:_BODY_PREVIEW_CHARS]

        status_info = f"{response.status_code} {response.reason_phrase}".strip()
        detail = f" Server said: {server_message or server_body}" if (server_message or server_body) else ""
        return ApiError(
            f"Request to {endpoint} failed ({status_info}).{detail}",
            type=ApiErrorType.HTTP,
            endpoint=endpoint,
            status=response.status_code,
            status_text=response.reason_phrase,
            server_body=server_body,
            server_message=server_message,
            code=code,
            payload=payload,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def health_check(self) -> dict:
        return await self.request("GET", "/health")

    async def test_connection(self) -> dict:
        """Report whether the resolved base URL answers, without raising."""
        base_url = await self.get_base_url()
        try:
            data = await self.health_check()
        except ApiError as exc:
            return {"success": False, "error": exc.message, "url": base_url}
        return {"success": True, "data": data, "url": base_url}

    async def register(self, username: str, email: str, password: str) -> dict:
        data = await self.request(
            "POST",
            "/api/register",
            json_body={"username": username, "email": email, "password": password},
        )
        self.token = data.get("token") or self.token
        return data

    async def login(self, email: str, password: str) -> dict:
        data = await self.request(
            "POST", "/api/login", json_body={"email": email, "password": password}
        )
        self.token = data.get("token") or self.token
        return data

    def logout(self) -> None:
        self.token = None

    async def get_profile(self) -> dict:
        return await self.request("GET", "/api/profile")

    async def update_profile(
        self, username: str, email: Optional[str] = None
    ) -> dict:
        body = {"username": username}
        if email:
            body["email"] = email
        return await self.request("PUT", "/api/profile", json_body=body)

    async def create_order(
        self,
        total: float,
        items: list,
        *,
        selections: Any = None,
        design: Any = None,
        shipping_info: Any = None,
    ) -> dict:
        body = {"total": total, "items": items}
        for key, value in (
            ("selections", selections),
            ("design", design),
            ("shipping_info", shipping_info),
        ):
            if value is not None:
                body[key] = value
        return await self.request("POST", "/api/orders", json_body=body)

    async def get_orders(self) -> dict:
        return await self.request("GET", "/api/orders")

    async def list_membership_plans(self) -> dict:
        return await self.request("GET", "/api/memberships/plans")

    async def activate_membership(
        self,
        plan_id: str,
        *,
        payment_reference: Optional[str] = None,
        provider: Optional[str] = None,
        raw_payload: Any = None,
    ) -> dict:
        body: dict[str, Any] = {"planId": plan_id}
        if payment_reference is not None:
            body["paymentReference"] = payment_reference
        if provider is not None:
            body["provider"] = provider
        if raw_payload is not None:
            body["rawPayload"] = raw_payload
        return await self.request("POST", "/api/memberships", json_body=body)

    async def get_membership(self) -> dict:
        return await self.request("GET", "/api/memberships/me")
