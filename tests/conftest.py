"""Pytest fixtures for missionbot tests."""

import asyncio
import os

import pytest

# Ensure no real notifications or stray tokens during tests
os.environ["TELEGRAM_BOT_TOKEN"] = ""
os.environ["TELEGRAM_CHAT_ID"] = ""
os.environ.pop("SYNACK_TOKEN", None)


@pytest.fixture
def settings():
    """Valid settings with millisecond delays; poller tests also fake sleep."""
    from missionbot.config.settings import Settings

    return Settings(
        base_url="https://platform.test",
        claim_pacing=0.001,
        mission_interval=0.002,
        target_interval=0.003,
        rate_limit_fallback=0,
    )


@pytest.fixture
def sleeps():
    """Record requested sleep durations while still yielding to the event loop."""
    calls = []

    async def fake_sleep(seconds):
        calls.append(seconds)
        await asyncio.sleep(0)

    fake_sleep.calls = calls
    return fake_sleep


@pytest.fixture
def make_mission():
    from missionbot.models import Mission

    def _make(mission_id="m1", **extra):
        return Mission(
            id=mission_id,
            organizationUid="org",
            listingUid="listing",
            campaignUid="campaign",
            **extra,
        )

    return _make
