"""Target poller: sign up for unregistered targets as they appear."""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from .. import notify
from ..config.settings import Settings
from ..credentials import CredentialCoordinator
from ..errors import AuthExpired, SynackError
from ..integrations.synack import SynackClient
from ..known_slugs import KnownSlugs
from ..models import Target
from .base import BasePoller

logger = logging.getLogger(__name__)


class TargetPoller(BasePoller):
    """Registers each newly seen target slug once. Never stops on its own."""

    name = "Target poller"

    def __init__(
        self,
        client: SynackClient,
        credentials: CredentialCoordinator,
        known_slugs: KnownSlugs,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(client, credentials, settings.target_interval, sleep)
        self.known_slugs = known_slugs

    async def _cycle(self) -> bool:
        logger.debug("Checking for unregistered targets...")

        try:
            targets = await self.client.list_unregistered_targets(self.token)
        except AuthExpired:
            await self.subscription.refresh()
            return False
        except SynackError as e:
            logger.error(f"Could not fetch unregistered targets: {e}")
            return True

        new_targets = [t for t in targets if self.known_slugs.add_if_new(t.slug)]
        if new_targets:
            logger.info(f"Found {len(new_targets)} new unregistered target(s)")

        for target in new_targets:
            await self._register(target)
        return True

    async def _register(self, target: Target) -> None:
        try:
            await self.client.register_target(self.token, target.slug)
        except AuthExpired:
            # Not registered, so let the next cycle pick it up again
            self.known_slugs.discard(target.slug)
            await self.subscription.refresh()
            return
        except SynackError as e:
            logger.error(f"Could not sign up for target {target.describe()}: {e}")
            return

        await notify.announce(f"Signed up for target {target.describe()} successfully.")
