"""
client/api.py
-------------
Thin async client for the read endpoints that live views refetch.

Responses are returned as the decoded JSON (camelCase keys), exactly as the
server sends them. Errors surface as httpx.HTTPStatusError.
"""

from typing import Any, Optional

import httpx


class StatusPageAPI:

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "StatusPageAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def health(self) -> dict:
        return await self._get("/api/health")

    # ── Public status page ───────────────────────────────────────────────────

    async def public_status(self, slug: str) -> dict:
        return await self._get(f"/api/public/{slug}/status")

    async def public_incidents(self, slug: str) -> dict:
        return await self._get(f"/api/public/{slug}/incidents")

    async def public_maintenance(self, slug: str) -> list:
        return await self._get(f"/api/public/{slug}/maintenance")

    # ── Dashboard (requires a token) ─────────────────────────────────────────

    async def me(self) -> dict:
        return await self._get("/api/auth/me")

    async def services(self) -> list:
        return await self._get("/api/services")

    async def incidents(self, status: Optional[str] = None) -> list:
        return await self._get("/api/incidents", params={"status": status} if status else None)

    async def incident(self, incident_id: str) -> dict:
        return await self._get(f"/api/incidents/{incident_id}")

    async def maintenance(self) -> list:
        return await self._get("/api/maintenance")
