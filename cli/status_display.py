"""Status display functionality for CLI"""

from rich.table import Table

from accounts import Account, AccountStore, ProfileLocator
from utils.storage import CredentialStorage


def describe_last_used(account: Account) -> str:
    """Humanised last-use time in local time, or "never" """
    used_at = account.last_used_at
    if used_at is None:
        return "never"
    return used_at.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def show_roster(store: AccountStore, profiles: ProfileLocator, console):
    """
    Display the account roster

    Args:
        store: Loaded AccountStore
        profiles: ProfileLocator for profile presence
        console: Rich console for output
    """
    next_up = store.least_recently_used().id if store.accounts else None

    table = Table(title="Accounts")
    table.add_column("Id", style="cyan")
    table.add_column("Email")
    table.add_column("Last Used")
    table.add_column("Profile")
    table.add_column("Next", justify="center")

    for account in store.accounts:
        table.add_row(
            account.id,
            account.email or "-",
            describe_last_used(account),
            "[green]yes[/green]" if profiles.exists(account.id) else "[red]no[/red]",
            "*" if account.id == next_up else "",
        )

    console.print(table)


def show_credential_status(credentials: CredentialStorage, console):
    """
    Display the active credential file without token values

    Args:
        credentials: CredentialStorage instance
        console: Rich console for output
    """
    status = credentials.get_status()

    table = Table(title="Active Credentials")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Has Tokens", "Yes" if status["has_tokens"] else "No")
    if status["has_tokens"] and not status["expires_at"]:
        table.add_row("Is Expired", "Unknown")
    else:
        table.add_row("Is Expired", "Yes" if status["is_expired"] else "No")

    if status["expires_at"]:
        table.add_row("Expires At", status["expires_at"])
        table.add_row("Time Until Expiry", status["time_until_expiry"])
    if status["scopes"]:
        table.add_row("Scopes", " ".join(status["scopes"]))

    table.add_row("Credentials File", str(credentials.credentials_file))

    console.print(table)
