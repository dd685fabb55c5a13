"""Shared loop scaffolding for the pollers."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..credentials import CredentialCoordinator, mask_token
from ..errors import CredentialPromptError
from ..integrations.synack import SynackClient

logger = logging.getLogger(__name__)


class BasePoller:
    """Runs one fetch/act cycle, sleeps, repeats until halted.

    Subclasses implement _cycle(), which returns whether the loop should
    sleep before the next iteration.
    """

    name = "Poller"

    def __init__(
        self,
        client: SynackClient,
        credentials: CredentialCoordinator,
        interval: float,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.subscription = credentials.subscribe()
        self.interval = interval
        self._sleep = sleep
        self.running = False
        self.stop_reason: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def token(self) -> str:
        return self.subscription.token

    def halt(self, reason: str) -> None:
        """Stop after the current step. The loop exits without sleeping."""
        self.running = False
        self.stop_reason = reason

    async def start(self) -> asyncio.Task:
        """Run the loop as a background task."""
        if self._task and not self._task.done():
            logger.warning(f"{self.name} already running")
            return self._task
        self.running = True
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        """Cancel a loop started with start()."""
        self.halt("stopped")
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def run(self) -> Optional[str]:
        """Loop until halted. Returns the reason the loop stopped."""
        self.running = True
        self.stop_reason = None
        logger.info(f"{self.name} started (interval: {self.interval:g}s)")

        while self.running:
            try:
                sleep_after = await self.run_once()
            except CredentialPromptError as e:
                logger.error(f"{self.name} cannot continue: {e}")
                self.halt("no-token")
                break
            except Exception as e:
                logger.error(f"{self.name} loop error: {e}", exc_info=True)
                sleep_after = True

            if not self.running:
                break
            if sleep_after:
                await self._sleep(self.interval)

        logger.info(f"{self.name} stopped ({self.stop_reason})")
        return self.stop_reason

    async def run_once(self) -> bool:
        """One iteration: adopt any newer token, then fetch and act."""
        if self.subscription.check_update():
            logger.debug(f"{self.name} picked up new token ({mask_token(self.token)})")
        return await self._cycle()

    async def _cycle(self) -> bool:
        raise NotImplementedError
