"""CLI entry point and argument parsing"""

import argparse
import asyncio
import logging
import sys
import traceback
from typing import List, Optional

from rich.markup import escape

import settings
from accounts import AccountStore, ProfileLocator
from cli.commands import run_setup, run_status, run_switch
from oauth.browser_session import BrowserSessionDriver
from oauth.exceptions import RotationError
from oauth.flow import OAuthOrchestrator
from utils.debug_console import configure_logging
from utils.storage import CredentialStorage

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claude-rotate",
        description="Rotate claude.ai OAuth credentials across several accounts",
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--accounts-file",
        default=None,
        help=f"Account roster (default: {settings.ACCOUNTS_FILE})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup", help="Set up browser profiles")
    setup_parser.add_argument("--force", action="store_true", help="Re-create existing profiles")
    setup_parser.add_argument("--account", default=None, help="Only set up this account id")

    switch_parser = subparsers.add_parser("switch", help="Switch to the LRU or a named account")
    switch_parser.add_argument("--account", default=None, help="Switch to this account id")

    subparsers.add_parser("status", help="Show accounts and the active credentials")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI; exits with 0 on success and 1 on failure"""
    args = build_parser().parse_args(argv)
    console = configure_logging(args.debug, settings.DEBUG_LOG_FILE, settings.LOG_LEVEL)

    store = AccountStore(args.accounts_file)
    profiles = ProfileLocator()
    credentials = CredentialStorage()
    driver = BrowserSessionDriver()

    try:
        store.load()
        if args.command == "setup":
            ok = asyncio.run(run_setup(store, profiles, driver, console, args.force, args.account))
        elif args.command == "switch":
            orchestrator = OAuthOrchestrator(store, profiles, driver, credentials)
            ok = asyncio.run(run_switch(orchestrator, console, args.account))
        else:
            ok = run_status(store, profiles, credentials, console)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except RotationError as e:
        console.print(f"[red][ERROR][/red] {escape(str(e))}")
        if args.debug:
            traceback.print_exc()
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {escape(str(e))}")
        logger.exception("Unhandled error")
        sys.exit(1)

    if not ok:
        sys.exit(1)
    return 0


if __name__ == "__main__":
    main()
