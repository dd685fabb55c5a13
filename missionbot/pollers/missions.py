"""Mission poller: fetch claimable missions and claim them."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from .. import notify
from ..config.settings import Settings
from ..credentials import CredentialCoordinator
from ..errors import AlreadyClaimed, AuthExpired, Ineligible, SynackError
from ..integrations.synack import SynackClient
from ..models import Mission
from .base import BasePoller

logger = logging.getLogger(__name__)


class MissionPoller(BasePoller):
    """Claims every published mission it is offered.

    Consecutive 403s on claim mean the account has run out of missions it
    may take; after forbidden_threshold of them with no success in between
    the poller stops for good.
    """

    name = "Mission poller"

    def __init__(
        self,
        client: SynackClient,
        credentials: CredentialCoordinator,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(client, credentials, settings.mission_interval, sleep)
        self.claim_pacing = settings.claim_pacing
        self.forbidden_threshold = settings.forbidden_threshold
        self.consecutive_forbidden = 0

    async def _cycle(self) -> bool:
        logger.debug("Checking for available missions...")

        try:
            missions = await self.client.list_missions(self.token)
        except AuthExpired:
            await self._refresh_token()
            return False
        except SynackError as e:
            logger.error(f"Could not fetch missions: {e}")
            return True

        if not missions:
            logger.debug("No claimable missions")
            return True

        logger.info(f"Found {len(missions)} claimable mission(s)")
        for mission in missions:
            if not await self._claim(mission):
                break
        return True

    async def _claim(self, mission: Mission) -> bool:
        """Attempt one claim. Returns False when the rest of the batch should be dropped."""
        try:
            await self.client.claim_mission(self.token, mission)
        except Ineligible:
            self.consecutive_forbidden += 1
            logger.warning(
                f"Got 403 claiming mission {mission.id}. "
                f"Consecutive 403 count = {self.consecutive_forbidden}"
            )
            if self.consecutive_forbidden >= self.forbidden_threshold:
                logger.warning(
                    f"Received 403 {self.consecutive_forbidden} times in a row. "
                    "Stopping the mission poller."
                )
                self.halt("ineligible")
                return False
            return True
        except AlreadyClaimed:
            logger.warning(f"Mission {mission.id} cannot be claimed anymore (412), skipping rest of batch")
            return False
        except AuthExpired:
            await self._refresh_token()
            return False
        except SynackError as e:
            logger.error(f"Could not claim mission {mission.id}: {e}")
            return True

        self.consecutive_forbidden = 0
        await notify.announce(f"Claimed mission {mission.describe()} successfully.")
        await self._sleep(self.claim_pacing)
        return True

    async def _refresh_token(self) -> None:
        # A rejected token says nothing about eligibility
        await self.subscription.refresh()
        self.consecutive_forbidden = 0
