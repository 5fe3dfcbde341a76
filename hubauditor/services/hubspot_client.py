"""
HubSpot CRM Client

Fetches contacts, deals and companies from the HubSpot CRM v3 API for one
access token. The client borrows the application's shared httpx.AsyncClient
(created in the FastAPI lifespan) and adds the bearer token per request.

Behavior:
- Fixed-delay rate limiting: at least ``hubspot_rate_limit_delay_ms`` between
  consecutive requests from the same client (about 10 requests/second).
- Cursor pagination: follow ``paging.next.after`` with ``limit`` per page,
  stopping after ``hubspot_max_pages`` pages.
- Failures raise HubSpotError with a HubSpotErrorKind. No retries.

Usage:
    client = HubSpotClient(token, http_client, settings)
    if await client.test_connection():
        contacts = await client.fetch_contacts()
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from hubauditor.core.config import Settings
from hubauditor.models.enums import HubSpotErrorKind, RecordKind
from hubauditor.models.schemas import CrmRecord, parse_timestamp


logger = logging.getLogger(__name__)


# =============================================================================
# Default Properties
# =============================================================================

DEFAULT_CONTACT_PROPERTIES: List[str] = [
    "email",
    "phone",
    "firstname",
    "lastname",
    "lifecyclestage",
    "hs_email_bounce",
    "hubspot_owner_id",
    "lastmodifieddate",
    "createdate",
    "associatedcompanyid",
    "hs_lead_score",
    "hubspotscore",
]

DEFAULT_DEAL_PROPERTIES: List[str] = [
    "dealname",
    "amount",
    "closedate",
    "dealstage",
    "pipeline",
    "createdate",
    "hs_lastmodifieddate",
]

DEFAULT_COMPANY_PROPERTIES: List[str] = [
    "name",
    "domain",
    "industry",
    "annualrevenue",
    "numberofemployees",
]

SEARCH_CONTACT_PROPERTIES: List[str] = [
    "email",
    "phone",
    "firstname",
    "lastname",
    "lifecyclestage",
    "hs_email_bounce",
    "hubspot_owner_id",
]

OBJECT_PATHS: Dict[RecordKind, str] = {
    RecordKind.CONTACT: "/crm/v3/objects/contacts",
    RecordKind.DEAL: "/crm/v3/objects/deals",
    RecordKind.COMPANY: "/crm/v3/objects/companies",
}

ERROR_MESSAGES: Dict[HubSpotErrorKind, str] = {
    HubSpotErrorKind.INVALID_TOKEN: "Invalid HubSpot API token. Please check your credentials.",
    HubSpotErrorKind.FORBIDDEN: "Access forbidden. Please check your HubSpot API permissions.",
    HubSpotErrorKind.RATE_LIMITED: "Rate limit exceeded. Please try again later.",
    HubSpotErrorKind.NO_RESPONSE: "No response from HubSpot API. Please check your connection.",
    HubSpotErrorKind.API_ERROR: "HubSpot API error occurred.",
}


class HubSpotError(Exception):
    """A classified HubSpot API failure."""

    def __init__(
        self,
        kind: HubSpotErrorKind,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.kind = kind
        self.message = message or ERROR_MESSAGES[kind]
        self.status_code = status_code
        super().__init__(self.message)


def error_from_response(response: httpx.Response) -> HubSpotError:
    status = response.status_code
    if status == 401:
        return HubSpotError(HubSpotErrorKind.INVALID_TOKEN, status_code=status)
    if status == 403:
        return HubSpotError(HubSpotErrorKind.FORBIDDEN, status_code=status)
    if status == 429:
        return HubSpotError(HubSpotErrorKind.RATE_LIMITED, status_code=status)

    message = None
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message")
    return HubSpotError(HubSpotErrorKind.API_ERROR, message, status_code=status)


def to_record(item: Dict[str, Any], kind: RecordKind) -> CrmRecord:
    """Convert one HubSpot API result object into a CrmRecord."""
    properties = item.get("properties") or {}
    return CrmRecord(
        id=str(item["id"]),
        kind=kind,
        createdAt=parse_timestamp(item.get("createdAt")),
        updatedAt=parse_timestamp(item.get("updatedAt")),
        properties={
            key: (None if value is None else str(value))
            for key, value in properties.items()
        },
    )


class HubSpotClient:
    """Read-only HubSpot CRM client bound to one access token."""

    def __init__(
        self,
        access_token: str,
        http_client: httpx.AsyncClient,
        settings: Settings,
    ):
        self._http = http_client
        self._headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        self._base_url = settings.hubspot_api_base.rstrip("/")
        self._delay_seconds = settings.hubspot_rate_limit_delay_ms / 1000
        self._page_size = settings.hubspot_page_size
        self._max_pages = settings.hubspot_max_pages
        self._timeout = settings.hubspot_timeout_seconds
        self._last_request: Optional[float] = None

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _throttle(self) -> None:
        """Sleep until at least the configured delay has passed since the last request."""
        if self._last_request is not None:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self._delay_seconds:
                await asyncio.sleep(self._delay_seconds - elapsed)
        self._last_request = time.monotonic()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        await self._throttle()
        try:
            response = await self._http.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                headers=self._headers,
                timeout=self._timeout,
            )
        except httpx.RequestError as e:
            logger.error(f"HubSpot request {method} {path} got no response: {e}")
            raise HubSpotError(HubSpotErrorKind.NO_RESPONSE) from e

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.warning(f"HubSpot request {method} {path} failed with {response.status_code} ({error.kind.value})")
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise HubSpotError(
                HubSpotErrorKind.API_ERROR,
                "HubSpot API returned a non-JSON response.",
                status_code=response.status_code,
            ) from e

    async def _fetch_paginated(
        self,
        kind: RecordKind,
        properties: Sequence[str],
    ) -> List[CrmRecord]:
        path = OBJECT_PATHS[kind]
        records: List[CrmRecord] = []
        after: Optional[str] = None

        for _ in range(self._max_pages):
            params: Dict[str, Any] = {
                "limit": self._page_size,
                "properties": ",".join(properties),
            }
            if after:
                params["after"] = after

            data = await self._request("GET", path, params=params)
            records.extend(to_record(item, kind) for item in data.get("results") or [])

            after = ((data.get("paging") or {}).get("next") or {}).get("after")
            if not after:
                break
        else:
            logger.warning(
                f"Stopped fetching {kind.value} records after {self._max_pages} pages; "
                f"{len(records)} records fetched"
            )

        logger.info(f"Fetched {len(records)} {kind.value} records from HubSpot")
        return records

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def fetch_contacts(self, properties: Optional[Sequence[str]] = None) -> List[CrmRecord]:
        return await self._fetch_paginated(RecordKind.CONTACT, properties or DEFAULT_CONTACT_PROPERTIES)

    async def fetch_deals(self, properties: Optional[Sequence[str]] = None) -> List[CrmRecord]:
        return await self._fetch_paginated(RecordKind.DEAL, properties or DEFAULT_DEAL_PROPERTIES)

    async def fetch_companies(self, properties: Optional[Sequence[str]] = None) -> List[CrmRecord]:
        return await self._fetch_paginated(RecordKind.COMPANY, properties or DEFAULT_COMPANY_PROPERTIES)

    async def fetch_records(self, kind: RecordKind) -> List[CrmRecord]:
        """Fetch every record of a kind with its default properties."""
        if kind == RecordKind.CONTACT:
            return await self.fetch_contacts()
        if kind == RecordKind.DEAL:
            return await self.fetch_deals()
        return await self.fetch_companies()

    async def search_contacts(self, filter_groups: List[Dict[str, Any]]) -> List[CrmRecord]:
        """
        Run one page of the contacts search endpoint.

        Args:
            filter_groups: HubSpot filterGroups payload, e.g.
                ``[{"filters": [{"propertyName": "lifecyclestage", "operator": "EQ", "value": "lead"}]}]``.
        """
        data = await self._request(
            "POST",
            f"{OBJECT_PATHS[RecordKind.CONTACT]}/search",
            json={
                "filterGroups": filter_groups,
                "properties": SEARCH_CONTACT_PROPERTIES,
                "limit": self._page_size,
            },
        )
        return [to_record(item, RecordKind.CONTACT) for item in data.get("results") or []]

    async def get_contact_company_associations(self, contact_id: str) -> List[Dict[str, Any]]:
        """Company associations of a contact; an empty list if the lookup fails."""
        try:
            data = await self._request(
                "GET",
                f"/crm/v4/objects/contacts/{contact_id}/associations/companies",
            )
        except HubSpotError as e:
            logger.warning(f"Association lookup for contact {contact_id} failed: {e.message}")
            return []
        return data.get("results") or []

    async def test_connection(self) -> bool:
        """True when the token can read one contact."""
        try:
            await self._request("GET", OBJECT_PATHS[RecordKind.CONTACT], params={"limit": 1})
        except HubSpotError as e:
            logger.warning(f"HubSpot connection test failed: {e.kind.value}")
            return False
        return True
