"""missionbot - command line entry point."""

import argparse
import asyncio
import logging
import os
import sys
from typing import Callable, Optional

from .config.settings import Settings
from .credentials import CredentialCoordinator
from .integrations.synack import SynackClient
from .known_slugs import KnownSlugs
from .pollers import MissionPoller, TargetPoller

logger = logging.getLogger(__name__)

DESCRIPTION = """\
Periodically polls the Synack platform for two things:

  1. Available missions:
     - Any mission that can be claimed is claimed.
     - After 403 five times in a row while claiming, mission polling stops.
     - On 401 (unauthorized) you are prompted for a new token.
     - Waits between each claimed mission and between polling cycles.

  2. Unregistered targets:
     - Checked every few minutes. Newly listed targets are signed up for.
"""

EPILOG = 'example:\n  missionbot -t "YOUR_SESSION_TOKEN_HERE" -v'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="missionbot",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-t", "--token",
        help="Session token (JWT) for the Synack platform. Defaults to $SYNACK_TOKEN.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    parser.add_argument("--proxy", help="Route platform requests through this proxy URL.")
    parser.add_argument("--insecure", action="store_true", help="Skip TLS certificate verification.")
    parser.add_argument("--no-targets", action="store_true", help="Only poll missions.")
    return parser


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    # Request lines would otherwise show up at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def run_agent(
    token: str,
    settings: Settings,
    include_targets: bool = True,
    prompt: Optional[Callable[[], str]] = None,
    client: Optional[SynackClient] = None,
) -> None:
    """Run both pollers until the process is stopped.

    The mission poller may stop on its own; the target poller keeps going.
    """
    credentials = CredentialCoordinator(token, prompt=prompt)
    known_slugs = KnownSlugs()

    async with (client or SynackClient(settings)) as synack:
        pollers = [MissionPoller(synack, credentials, settings)]
        if include_targets:
            pollers.append(TargetPoller(synack, credentials, known_slugs, settings))

        logger.info(f"Polling {settings.base_url} with {len(pollers)} poller(s)")
        await asyncio.gather(*(poller.run() for poller in pollers))


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    token = args.token or os.environ.get("SYNACK_TOKEN", "")
    if not token:
        parser.print_help(sys.stderr)
        return 1

    try:
        settings = Settings.from_env(proxy=args.proxy, insecure=args.insecure)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(args.verbose, settings.log_file)

    try:
        asyncio.run(run_agent(token, settings, include_targets=not args.no_targets))
    except KeyboardInterrupt:
        logger.info("Stopping missionbot...")
        return 130
    return 0


def cli() -> None:
    sys.exit(main())
