"""Shared session token for both pollers.

The coordinator owns the one live token. Each poller holds a
TokenSubscription and checks it at the top of every iteration; a token
published by the other poller is adopted then, never mid-iteration.

Two pollers can hit a 401 at nearly the same moment and both prompt. That
is tolerated: whichever token is entered last wins.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from .errors import CredentialPromptError

logger = logging.getLogger(__name__)

PROMPT_TEXT = "Token expired or invalid. Please enter a new token:\n> "


def mask_token(token: str) -> str:
    """Render a token safe for logs."""
    if not token:
        return "<empty>"
    return f"...{token[-4:]}" if len(token) > 4 else "****"


def prompt_for_token() -> str:
    """Block on stdin until a non-empty token is entered."""
    while True:
        try:
            token = input(PROMPT_TEXT).strip()
        except EOFError as e:
            raise CredentialPromptError("stdin closed while waiting for a new token") from e
        if token:
            return token
        print("Token cannot be empty.")


def _deliver(future: asyncio.Future, result: Optional[str], error: Optional[Exception]) -> None:
    if future.cancelled():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def ask_in_background(prompt: Callable[[], str]) -> asyncio.Future:
    """Run a blocking prompt on a daemon thread; return a future for the answer.

    The thread is never joined, so an interrupt while the prompt sits on
    stdin ends the process instead of waiting for a line of input.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def worker():
        result, error = None, None
        try:
            result = prompt()
        except Exception as e:
            error = e
        try:
            loop.call_soon_threadsafe(_deliver, future, result, error)
        except RuntimeError:
            # Loop already closed, nobody is waiting
            pass

    threading.Thread(target=worker, name="token-prompt", daemon=True).start()
    return future


class CredentialCoordinator:
    """Single-slot broadcast cell for the current bearer token."""

    def __init__(self, token: str, prompt: Optional[Callable[[], str]] = None):
        self._lock = threading.Lock()
        self._token = token
        self._version = 0
        self._prompt = prompt or prompt_for_token

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def current(self) -> str:
        """Return the most recently published token."""
        with self._lock:
            return self._token

    def snapshot(self) -> tuple[str, int]:
        with self._lock:
            return self._token, self._version

    def publish(self, token: str) -> int:
        """Replace the current token. Returns the new version."""
        with self._lock:
            self._token = token
            self._version += 1
            version = self._version
        logger.info(f"Session token updated ({mask_token(token)})")
        return version

    async def invalidate_and_refresh(self) -> str:
        """Prompt for a replacement token and broadcast it.

        The prompt runs on a daemon thread so only the awaiting poller is
        suspended; the other keeps polling with whatever token it holds.
        """
        logger.warning("Session token rejected, waiting for a new one")
        token = await ask_in_background(self._prompt)
        self.publish(token)
        return token

    def subscribe(self) -> "TokenSubscription":
        return TokenSubscription(self)


class TokenSubscription:
    """One poller's view of the shared token."""

    def __init__(self, coordinator: CredentialCoordinator):
        self._coordinator = coordinator
        self.token, self._seen_version = coordinator.snapshot()

    def check_update(self) -> bool:
        """Adopt a newer published token, if any. Never blocks on I/O."""
        token, version = self._coordinator.snapshot()
        if version == self._seen_version:
            return False
        self.token = token
        self._seen_version = version
        return True

    async def refresh(self) -> str:
        """Ask the coordinator for a new token and start using it."""
        await self._coordinator.invalidate_and_refresh()
        self.check_update()
        return self.token
