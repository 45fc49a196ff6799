"""Rich terminal rendering for the CLI."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modules.auth.models import AppAuthState, AuthStatus
from modules.groups.countdown import CountdownBoard, format_remaining
from modules.groups.models import Group, GroupStatus, LevelSchedule
from modules.session.models import CacheStatusSnapshot
from shared.exceptions import HadalHubError

console = Console()

STATUS_STYLES = {
    GroupStatus.WAITING: "yellow",
    GroupStatus.SCHEDULED: "cyan",
    GroupStatus.ACTIVE: "green",
}

AUTH_STYLES = {
    AuthStatus.AUTHENTICATED: "green",
    AuthStatus.UNAUTHENTICATED: "yellow",
    AuthStatus.ERROR: "red",
    AuthStatus.LOADING: "dim",
}


def format_age(seconds: float | None) -> str:
    """Format a cache age for display.

    Example: 75.2 -> "75s", None -> "never"
    """
    if seconds is None:
        return "never"
    return f"{int(seconds)}s"


def render_error(error: HadalHubError) -> Text:
    """One-line error with its code, followed by any details."""
    data = error.to_dict()
    text = Text.assemble(("Error: ", "red"), data["message"], (f" ({data['error']})", "dim"))
    for key, value in data["details"].items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        text.append(f"\n  {key}: {value}", style="dim")
    return text


def render_auth_state(state: AppAuthState) -> Panel:
    """Panel summarising who is signed in."""
    style = AUTH_STYLES.get(state.status, "white")
    lines = [f"[{style}]{state.status.value}[/{style}]"]
    if state.profile is not None:
        profile = state.profile
        lines.append(f"{profile.display_name} <{profile.email}>")
        lines.append(f"Level: {profile.english_level.value}")
        if profile.is_synthetic:
            lines.append("[dim]Profile not loaded yet[/dim]")
    if state.error:
        lines.append(f"[red]{state.error}[/red]")
    return Panel("\n".join(lines), title="Auth", border_style=style)


def render_cache_status(status: CacheStatusSnapshot) -> Panel:
    """Panel with the session cache diagnostics."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="dim")
    table.add_column()
    table.add_row("Session", "yes" if status.has_session else "no")
    table.add_row("User", "yes" if status.has_user else "no")
    table.add_row("Profile", "yes" if status.has_profile else "no")
    table.add_row("Last check", format_age(status.cache_age))
    table.add_row("Last activity", format_age(status.last_activity))
    table.add_row("Validating", "yes" if status.is_validating else "no")
    table.add_row("Background", "yes" if status.background_validating else "no")
    return Panel(table, title="Session cache", border_style="blue")


def render_groups(
    groups: list[Group],
    countdowns: CountdownBoard,
    schedule: LevelSchedule | None = None,
) -> Table:
    """Table of visible groups, with countdowns for scheduled ones."""
    title = "Debate groups"
    if schedule is not None:
        title += f" (scheduled {schedule.display()})"
    table = Table(title=title, expand=True)
    table.add_column("Name", style="bold")
    table.add_column("Level")
    table.add_column("Status")
    table.add_column("Members", justify="right")
    table.add_column("Starts in", justify="right")
    table.add_column("Topic", overflow="fold")

    for group in groups:
        style = STATUS_STYLES.get(group.status, "white")
        countdown = countdowns.get(group.id)
        starts_in = format_remaining(countdown.remaining) if countdown else ""
        table.add_row(
            group.name,
            group.level.value,
            f"[{style}]{group.status.value}[/{style}]",
            f"{group.participant_count}/{group.max_participants}",
            starts_in,
            group.topic_title or "",
        )

    if not groups:
        table.add_row("[dim]No groups right now[/dim]", "", "", "", "", "")
    return table
