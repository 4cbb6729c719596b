"""HTTP client for the Resto Pulse API.

Every call carries the visitor's device id and returns a
:class:`ServiceResult`; network failures never raise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from resto_pulse.services.identity import IdentityProvider
from resto_pulse.services.results import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
DEVICE_HEADER = "X-Device-Id"
HTTP_INTERNAL_SERVER_ERROR = 500


class RestoPulseClient:
    """Async wrapper over the public API endpoints."""

    def __init__(
        self,
        base_url: str,
        identity: IdentityProvider,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.identity = identity
        self.timeout_seconds = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=httpx.Timeout(self.timeout_seconds),
                )
        return self._client

    @dataclass
    class RequestParams:
        """Parameters for HTTP requests."""
        method: str
        path: str
        json_data: Any | None = None
        params: Mapping[str, Any] | None = None

    async def _request(self, params: RequestParams) -> ServiceResult[dict[str, Any]]:
        client = await self._ensure_client()
        headers = {DEVICE_HEADER: self.identity.resolve_identity()}
        endpoint = f"{params.method} {params.path}"
        try:
            response = await client.request(
                params.method,
                f"{API_PREFIX}{params.path}",
                json=params.json_data,
                params=params.params,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s failed: %s", endpoint, exc)
            return ServiceResult.fail(ErrorKind.TRANSIENT, "Network error, please try again")

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success", True):
            return ServiceResult.ok(body)

        if response.status_code >= HTTP_INTERNAL_SERVER_ERROR:
            kind = ErrorKind.TRANSIENT
        else:
            try:
                kind = ErrorKind(body.get("kind", ErrorKind.VALIDATION.value))
            except ValueError:
                kind = ErrorKind.VALIDATION
        error = body.get("error") or body.get("detail") or f"HTTP {response.status_code}"
        logger.info("%s rejected (%s): %s", endpoint, kind.value, error)
        return ServiceResult.fail(kind, str(error))

    async def submit_rating(
        self, restaurant_id: int, rating: float
    ) -> ServiceResult[dict[str, Any]]:
        return await self._request(
            self.RequestParams(
                method="POST",
                path="/ratings",
                json_data={"restaurant_id": restaurant_id, "rating": rating},
            )
        )

    async def get_rating_summary(self, restaurant_id: int) -> ServiceResult[dict[str, Any]]:
        return await self._request(
            self.RequestParams(method="GET", path=f"/ratings/{restaurant_id}")
        )

    async def toggle_reaction(
        self, suggestion_id: str, reaction_type: str
    ) -> ServiceResult[dict[str, Any]]:
        return await self._request(
            self.RequestParams(
                method="POST",
                path="/reactions/toggle",
                json_data={"suggestion_id": suggestion_id, "reaction_type": reaction_type},
            )
        )

    async def add_review(
        self,
        restaurant_id: int,
        comment: str | None = None,
        images: list[str] | None = None,
        reviewer_name: str | None = None,
    ) -> ServiceResult[dict[str, Any]]:
        return await self._request(
            self.RequestParams(
                method="POST",
                path="/reviews",
                json_data={
                    "restaurant_id": restaurant_id,
                    "reviewer_name": reviewer_name,
                    "comment": comment,
                    "images": images or [],
                },
            )
        )

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None and self._owns_client:
                await self._client.aclose()
            self._client = None
