"""Shared async HTTP plumbing for talking to the remote HR backend."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from hrconsole.config import Settings


def build_http_client(
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the process-wide client. Closed by the app lifespan."""
    return httpx.AsyncClient(
        base_url=settings.HR_API_BASE_URL,
        timeout=settings.HR_API_TIMEOUT_SECONDS,
        headers={"Accept": "application/json"},
        transport=transport,
    )


def unwrap_record(payload: Any) -> Any:
    """Strip a ``{"data": {...}}`` envelope around a single record."""
    if (
        isinstance(payload, dict)
        and "id" not in payload
        and isinstance(payload.get("data"), dict)
    ):
        return payload["data"]
    return payload


class RemoteApi:
    """Base for backend clients. Every call forwards the actor's bearer token.

    Non-2xx responses raise ``httpx.HTTPStatusError`` and transport problems
    raise ``httpx.TransportError``; neither is translated here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: Optional[str] = None,
    ) -> None:
        self._client = client
        self._token = token

    def _headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if json is not None:
            kwargs["json"] = json
        if timeout is not None:
            kwargs["timeout"] = timeout
        return await self._client.request(
            method, path, headers=self._headers(), **kwargs,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send, raise on non-2xx, return the decoded JSON body (or ``None``)."""
        response = await self._send(
            method, path, params=params, json=json, timeout=timeout,
        )
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()
