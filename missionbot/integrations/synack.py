"""Synack platform API client.

Thin async wrapper over the four endpoints the pollers use. Responses are
classified into the exceptions in missionbot.errors; callers never look at
status codes directly.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from ..config.settings import MISSIONS_PER_PAGE, TARGETS_PER_PAGE, Settings
from ..errors import AlreadyClaimed, AuthExpired, Ineligible, PlatformError, RateLimited
from ..models import Mission, Target

logger = logging.getLogger(__name__)

# A 429 is retried this many times before RateLimited is raised
RATE_LIMIT_RETRIES = 1

TASKS_PATH = "/api/tasks/v2/tasks"
CLAIM_PATH = (
    "/api/tasks/v1/organizations/{organization_uid}/listings/{listing_uid}"
    "/campaigns/{campaign_uid}/tasks/{id}/transitions"
)
TARGETS_PATH = "/api/targets"
SIGNUP_PATH = "/api/targets/{slug}/signup"

MISSION_QUERY = {
    "perPage": MISSIONS_PER_PAGE,
    "viewed": "true",
    "page": 1,
    "status": "PUBLISHED",
    "sort": "CLAIMABLE",
    "sortDir": "DESC",
    "includeAssignedBySynackUser": "false",
}

TARGET_QUERY = {
    "filter[primary]": "unregistered",
    "filter[secondary]": "all",
    "filter[category]": "all",
    "filter[industry]": "all",
    "filter[payout_status]": "all",
    "sorting[field]": "onboardedAt",
    "sorting[direction]": "desc",
    "pagination[page]": 1,
    "pagination[per_page]": TARGETS_PER_PAGE,
}


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Seconds from a Retry-After header, or None if absent or not a number."""
    if not value:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return float(seconds) if seconds >= 0 else None


class SynackClient:
    """Async client for the Synack researcher API."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings
        self._sleep = sleep
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.base_url,
            timeout=settings.http_timeout,
            verify=settings.verify_tls,
            proxy=settings.proxy,
        )

    async def __aenter__(self) -> "SynackClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: str,
        action: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send one logical request, waiting out at most one 429.

        Raises AuthExpired on 401 and RateLimited if the retry is throttled
        too. Every other status is returned for the caller to classify.
        """
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        retry_after = None
        for attempt in range(RATE_LIMIT_RETRIES + 1):
            try:
                response = await self._client.request(
                    method, path, params=params, json=json, headers=headers
                )
            except httpx.HTTPError as e:
                raise PlatformError(f"{action} failed: {e}") from e

            if response.status_code != 429:
                break

            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            if attempt < RATE_LIMIT_RETRIES:
                wait = retry_after if retry_after is not None else self.settings.rate_limit_fallback
                logger.warning(f"Got 429 Too Many Requests on {action}, waiting {wait:g} seconds...")
                await self._sleep(wait)
        else:
            raise RateLimited(f"still rate limited on {action} after retry", retry_after=retry_after)

        if response.status_code == 401:
            raise AuthExpired()
        return response

    @staticmethod
    def _decode_list(response: httpx.Response, action: str) -> list[Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise PlatformError(f"{action} returned invalid JSON", status_code=response.status_code) from e
        if not isinstance(payload, list):
            raise PlatformError(
                f"{action} returned {type(payload).__name__}, expected a list",
                status_code=response.status_code,
            )
        return payload

    async def list_missions(self, token: str) -> list[Mission]:
        """Fetch published missions, most claimable first."""
        action = "mission listing"
        response = await self._request("GET", TASKS_PATH, token, action, params=MISSION_QUERY)
        if response.status_code != 200:
            raise PlatformError(
                f"failed to retrieve missions, status code: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return [Mission.model_validate(item) for item in self._decode_list(response, action)]
        except ValidationError as e:
            raise PlatformError(f"unexpected mission payload: {e}") from e

    async def claim_mission(self, token: str, mission: Mission) -> None:
        """Claim a mission. Returns on 201, raises otherwise.

        Raises:
            Ineligible: 403, the account may not take this mission
            AlreadyClaimed: 412, someone else got it or the window closed
            AuthExpired, RateLimited, PlatformError
        """
        path = CLAIM_PATH.format(
            organization_uid=mission.organization_uid,
            listing_uid=mission.listing_uid,
            campaign_uid=mission.campaign_uid,
            id=mission.id,
        )
        response = await self._request("POST", path, token, "mission claim", json={"type": "CLAIM"})

        if response.status_code == 201:
            return
        if response.status_code == 403:
            raise Ineligible()
        if response.status_code == 412:
            raise AlreadyClaimed()
        raise PlatformError(
            f"failed to claim mission {mission.id}, status code: {response.status_code}",
            status_code=response.status_code,
        )

    async def list_unregistered_targets(self, token: str) -> list[Target]:
        """Fetch targets the researcher has not signed up for yet."""
        action = "target listing"
        response = await self._request("GET", TARGETS_PATH, token, action, params=TARGET_QUERY)
        if response.status_code != 200:
            raise PlatformError(
                f"failed to retrieve unregistered targets, status code: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return [Target.model_validate(item) for item in self._decode_list(response, action)]
        except ValidationError as e:
            raise PlatformError(f"unexpected target payload: {e}") from e

    async def register_target(self, token: str, slug: str) -> None:
        """Accept the terms for a target and sign up."""
        response = await self._request(
            "POST",
            SIGNUP_PATH.format(slug=slug),
            token,
            "target signup",
            json={"ResearcherListing": {"terms": 1}},
        )
        if response.status_code != 200:
            raise PlatformError(
                f"failed to sign up for target {slug}, status code: {response.status_code}",
                status_code=response.status_code,
            )
