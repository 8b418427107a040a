"""Command handlers for the rotator CLI"""

import logging
from typing import Optional

from rich.console import Console

from accounts import AccountStore, ProfileLocator, setup_profile
from oauth.browser_session import BrowserSessionDriver
from oauth.flow import OAuthOrchestrator
from utils.storage import CredentialStorage
from cli.status_display import describe_last_used, show_credential_status, show_roster

logger = logging.getLogger(__name__)


async def run_setup(
    store: AccountStore,
    profiles: ProfileLocator,
    driver: BrowserSessionDriver,
    console: Console,
    force: bool = False,
    account_id: Optional[str] = None,
) -> bool:
    """Establish browser profiles for every account, or just one"""
    accounts = [store.get(account_id)] if account_id else list(store.accounts)
    executable_path = None

    console.print("[bold]Setting up browser profiles...[/bold]\n")

    for account in accounts:
        exists = profiles.exists(account.id)
        if exists and not force:
            console.print(f"Profile already exists for {account.describe()}. Skipping.")
            console.print("[dim]  (Use --force to re-setup)[/dim]\n")
            continue

        if executable_path is None:
            executable_path = driver.resolve_executable()
        if exists:
            console.print(f"Removing existing profile for {account.describe()}...")
            profiles.remove(account.id)

        console.print(f"\n[bold]Setting up profile for {account.describe()}[/bold]")
        console.print("A browser window will open. Please:")
        console.print("  1. Sign in to your Google account")
        console.print("  2. Go to https://claude.ai and sign in with Google")
        console.print("  3. Close the browser window when done\n")

        await setup_profile(account, profiles, executable_path)
        console.print(f"[green][OK][/green] Profile saved for {account.describe()}")

    console.print("\n[green]Setup complete![/green]")
    return True


async def run_switch(
    orchestrator: OAuthOrchestrator,
    console: Console,
    account_id: Optional[str] = None,
) -> bool:
    """Rotate the active credentials to the LRU or a named account"""
    account = orchestrator.select_account(account_id)

    console.print(f"Selected account: [cyan]{account.describe()}[/cyan]")
    console.print(f"Last used: {describe_last_used(account)}")
    console.print("\nOpening browser for OAuth...")

    if not await orchestrator.rotate_account(account):
        console.print("\n[red][ERROR][/red] Failed to switch account. Please try again.")
        return False

    console.print(f"\n[green][OK][/green] Account {account.describe()} is now active.")
    console.print(f"[dim]Credentials written to {orchestrator.credentials.credentials_file}[/dim]")
    return True


def run_status(
    store: AccountStore,
    profiles: ProfileLocator,
    credentials: CredentialStorage,
    console: Console,
) -> bool:
    show_roster(store, profiles, console)
    show_credential_status(credentials, console)
    return True
