"""HTTP opportunity resource: httpx adapter for the dashboard REST routes.

Routes::

    GET    /opportunities?status=in-progress&client=...&grades=SE,JT
    POST   /opportunities
    PATCH  /opportunities/{id}
    PATCH  /opportunities/{id}/move            {"toStatus": "On Hold"}
    DELETE /opportunities/{id}
    POST   /opportunities/{id}/roles
    PATCH  /opportunities/{id}/roles/{role_id} {"status": "Won"}

Non-2xx responses become ``RemoteFailure`` with ``http_status`` and ``url``
in the error context; transport failures become ``NetworkError``. Mutation
responses are validated with the typed parse functions, so a malformed
body surfaces as ``ApiValidationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python

from staffing.cache.descriptors import QueryDescriptor
from staffing.core.errors import NetworkError, RemoteFailure
from staffing.core.logging import get_logger
from staffing.core.settings import StaffingSettings, get_settings
from staffing.domain.models import (
    CreateOpportunityInput,
    CreateRoleInput,
    Opportunity,
    OpportunityStatus,
    RoleStatus,
)
from staffing.domain.parsing import parse_opportunity

logger = get_logger(__name__)


def _segment(value: str) -> str:
    return quote(str(value), safe="")


class HttpOpportunityResource:
    """``OpportunityResource`` over HTTP.

    Pass ``client`` to share a configured ``httpx.AsyncClient`` (or one with
    a ``MockTransport`` in tests); otherwise one is created from settings and
    closed by :meth:`aclose`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        settings: StaffingSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout or settings.api_timeout_seconds,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpOpportunityResource:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # ── OpportunityResource ──────────────────────────────────────────

    async def list_entities(self, descriptor: QueryDescriptor) -> Any:
        return await self._request("GET", "/opportunities", params=descriptor.to_query_params())

    async def create_entity(self, payload: CreateOpportunityInput) -> Opportunity:
        body = await self._request("POST", "/opportunities", json=payload.to_wire())
        return self._opportunity(body, "POST /opportunities")

    async def update_entity(self, entity_id: str, fields: Mapping[str, Any]) -> Opportunity:
        path = f"/opportunities/{_segment(entity_id)}"
        wire = {to_camel(k): v for k, v in fields.items()}
        body = await self._request("PATCH", path, json=to_jsonable_python(wire))
        return self._opportunity(body, f"PATCH {path}")

    async def move_entity(self, entity_id: str, status: OpportunityStatus) -> Opportunity:
        path = f"/opportunities/{_segment(entity_id)}/move"
        body = await self._request("PATCH", path, json={"toStatus": status.value})
        return self._opportunity(body, f"PATCH {path}")

    async def delete_entity(self, entity_id: str) -> None:
        await self._request("DELETE", f"/opportunities/{_segment(entity_id)}")

    async def add_role(self, opportunity_id: str, payload: CreateRoleInput) -> Opportunity:
        path = f"/opportunities/{_segment(opportunity_id)}/roles"
        body = await self._request("POST", path, json=payload.to_wire())
        return self._opportunity(body, f"POST {path}")

    async def update_role_status(
        self,
        opportunity_id: str,
        role_id: str,
        status: RoleStatus,
    ) -> Opportunity:
        path = f"/opportunities/{_segment(opportunity_id)}/roles/{_segment(role_id)}"
        body = await self._request("PATCH", path, json={"status": status.value})
        return self._opportunity(body, f"PATCH {path}")

    # ── Internals ────────────────────────────────────────────────────

    def _url(self, path: str) -> str:
        return str(self._client.base_url).rstrip("/") + path

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("remote_http_error", method=method, url=self._url(path), http_status=status)
            raise RemoteFailure(f"{method} {path} returned {status}", cause=e).with_context(
                url=self._url(path),
                http_status=status,
            ) from e
        except httpx.RequestError as e:
            logger.warning("remote_network_error", method=method, url=self._url(path), error=str(e))
            raise NetworkError(f"{method} {path} failed: {e}", cause=e).with_context(
                url=self._url(path),
            ) from e

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _opportunity(body: Any, endpoint: str) -> Opportunity:
        return parse_opportunity(body, endpoint=endpoint).unwrap()


__all__ = ["HttpOpportunityResource"]
