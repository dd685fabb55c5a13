"""Tests for the command line entry point."""

import asyncio
import logging
import os
import signal
import subprocess
import sys
import time
from pathlib import Path

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from missionbot.integrations.synack import SynackClient
from missionbot.main import build_parser, main, run_agent


class TestMain:
    """Tests for argument handling."""

    def test_missing_token_prints_usage(self, capsys, monkeypatch):
        monkeypatch.delenv("SYNACK_TOKEN", raising=False)

        assert main([]) == 1

        err = capsys.readouterr().err
        assert "usage:" in err
        assert "--token" in err

    def test_runs_with_token(self):
        with patch("missionbot.main.run_agent", new=AsyncMock()) as run, \
                patch("missionbot.main.configure_logging") as configure:
            assert main(["-t", "tok", "-v"]) == 0

        configure.assert_called_once()
        assert configure.call_args.args[0] is True
        assert run.await_args.args[0] == "tok"
        assert run.await_args.kwargs["include_targets"] is True

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv("SYNACK_TOKEN", "env-tok")
        with patch("missionbot.main.run_agent", new=AsyncMock()) as run, \
                patch("missionbot.main.configure_logging"):
            assert main([]) == 0

        assert run.await_args.args[0] == "env-tok"

    def test_flags_reach_settings(self):
        with patch("missionbot.main.run_agent", new=AsyncMock()) as run, \
                patch("missionbot.main.configure_logging"):
            main(["-t", "tok", "--insecure", "--proxy", "http://proxy:3128", "--no-targets"])

        settings = run.await_args.args[1]
        assert settings.verify_tls is False
        assert settings.proxy == "http://proxy:3128"
        assert run.await_args.kwargs["include_targets"] is False

    def test_keyboard_interrupt(self):
        with patch("missionbot.main.run_agent", new=AsyncMock(side_effect=KeyboardInterrupt)), \
                patch("missionbot.main.configure_logging"):
            assert main(["-t", "tok"]) == 130

    def test_parser_verbose_default(self):
        args = build_parser().parse_args(["-t", "tok"])
        assert args.verbose is False


class TestRunAgent:
    """End-to-end loop over a fake platform."""

    @pytest.mark.asyncio
    async def test_mission_only_run_ends_on_forbidden(self, settings, caplog):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            if request.url.path == "/api/tasks/v2/tasks":
                return httpx.Response(200, json=[{
                    "id": "t-1",
                    "organizationUid": "o",
                    "listingUid": "l",
                    "campaignUid": "c",
                }])
            return httpx.Response(403)

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=settings.base_url)
        client = SynackClient(settings, client=http)

        with caplog.at_level(logging.WARNING):
            await asyncio.wait_for(
                run_agent("tok", settings, include_targets=False, client=client),
                timeout=5,
            )

        assert paths.count("/api/tasks/v2/tasks") == 5
        assert "Stopping the mission poller" in caplog.text
        await http.aclose()


INTERRUPT_SCRIPT = """
import httpx

from missionbot import main as entry
from missionbot.integrations.synack import SynackClient

real_run_agent = entry.run_agent


async def run_against_rejecting_platform(token, settings, include_targets=True):
    transport = httpx.MockTransport(lambda request: httpx.Response(401))
    http = httpx.AsyncClient(transport=transport, base_url=settings.base_url)
    client = SynackClient(settings, client=http)
    await real_run_agent(token, settings, include_targets=include_targets, client=client)


entry.run_agent = run_against_rejecting_platform
raise SystemExit(entry.main(["-t", "stale", "--no-targets"]))
"""


@pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")
class TestInterrupt:
    """Ctrl+C must end the process even while the token prompt waits."""

    def test_sigint_at_token_prompt_exits(self):
        env = dict(os.environ, PYTHONPATH=str(Path(__file__).resolve().parent.parent))
        proc = subprocess.Popen(
            [sys.executable, "-c", INTERRUPT_SCRIPT],
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            env=env,
            text=True,
        )
        try:
            for line in proc.stderr:
                if "waiting for a new one" in line:
                    break
            else:
                pytest.fail("process ended before prompting for a token")

            # Let the prompt thread reach input()
            time.sleep(0.5)
            proc.send_signal(signal.SIGINT)

            # stdin stays open: nothing is typed at the prompt
            assert proc.wait(timeout=10) == 130
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            proc.stdin.close()
            proc.stderr.close()


class TestConfigurationErrors:
    """Bad environment values are reported, not raised."""

    def test_malformed_interval_exits_2(self, monkeypatch, capsys):
        monkeypatch.setenv("MISSIONBOT_MISSION_INTERVAL", "30s")

        with patch("missionbot.main.run_agent", new=AsyncMock()) as run:
            assert main(["-t", "tok"]) == 2

        run.assert_not_awaited()
        assert "Invalid configuration" in capsys.readouterr().err
