"""
HadalHub - terminal client for the HadalHub English debate platform.

Signs learners in against the Supabase backend, shows the state of the
client-side session cache, and lists the debate groups visible at the
learner's level. With --watch the group list stays live: it is
refreshed by polling, per-group activation countdowns and realtime
change notifications.
"""

import argparse
import asyncio
import sys

from rich.live import Live
from rich.prompt import Confirm, Prompt

from app.container import ServiceContainer, get_container
from app.display import (
    console,
    render_auth_state,
    render_cache_status,
    render_error,
    render_groups,
)
from modules.auth.exceptions import AuthFormError
from modules.auth.models import AppAuthState, SignUpMetadata
from modules.groups.controller import GroupLifecycleController
from modules.groups.models import AdminGroupAction, LevelSchedule
from modules.session.models import EnglishLevel
from shared.config import get_settings
from shared.exceptions import ConfigurationError, HadalHubError
from shared.logging_config import configure_logging


async def confirm_prompt(message: str) -> bool:
    """Ask the user to confirm an action on the terminal."""
    return await asyncio.to_thread(Confirm.ask, message)


async def show_status(container: ServiceContainer) -> AppAuthState:
    """Resolve the auth state and print it alongside the cache diagnostics."""
    state = await container.reconciler.initialize()
    console.print(render_auth_state(state))
    console.print(render_cache_status(container.session_cache.get_cache_status()))
    return state


async def sign_in(container: ServiceContainer, email: str) -> None:
    """Prompt for a password and sign in.

    Args:
        container: Service container
        email: Account email
    """
    password = Prompt.ask("Password", password=True)
    try:
        session = await container.auth.sign_in(email, password)
    except AuthFormError as e:
        console.print(f"[red]Error:[/red] {e.user_message}")
        return

    if session.user is None:
        console.print("[yellow]Signed in, but no user was returned[/yellow]")
        return
    profile = await container.auth.ensure_user_profile(session.user)
    console.print(f"[bold green]Welcome, {profile.display_name}![/bold green]")


async def sign_up(
    container: ServiceContainer, email: str, display_name: str, level: EnglishLevel
) -> None:
    """Prompt for a password and register a new learner."""
    password = Prompt.ask("Password", password=True)
    metadata = SignUpMetadata(display_name=display_name, english_level=level)
    try:
        session = await container.auth.sign_up(email, password, metadata)
    except AuthFormError as e:
        console.print(f"[red]Error:[/red] {e.user_message}")
        return

    if session is None:
        console.print("[green]Check your email to confirm your account.[/green]")
    else:
        console.print("[bold green]Account created and signed in.[/bold green]")


async def sign_out(container: ServiceContainer) -> None:
    if await container.auth.sign_out():
        console.print("[green]Signed out[/green]")
    else:
        console.print("[yellow]Signed out locally; the server could not be reached[/yellow]")


async def list_groups(container: ServiceContainer, watch: bool) -> None:
    """Print the visible groups once, or keep a live view until Ctrl-C.

    Args:
        container: Service container
        watch: Keep polling and listening for realtime changes
    """
    state = await container.reconciler.initialize()
    if not state.is_authenticated or state.profile is None:
        console.print(render_auth_state(state))
        console.print("[red]Error:[/red] Sign in first to see debate groups.")
        return

    controller = await container.group_controller(state.profile)
    schedule = await controller.get_schedule()

    if not watch:
        await controller.poll_activation()
        controller.tick_countdowns()
        console.print(render_groups(controller.groups, controller.countdowns, schedule))
        if controller.last_error:
            console.print(f"[red]{controller.last_error}[/red]")
        return

    await watch_groups(container, controller, schedule)


async def watch_groups(
    container: ServiceContainer,
    controller: GroupLifecycleController,
    schedule: LevelSchedule,
) -> None:
    """Live-updating group table with countdowns."""
    settings = container.settings
    container.maintenance.start()
    await controller.start(container.group_subscription(controller))
    console.print("[dim]Watching groups, press Ctrl-C to stop[/dim]")
    try:
        with Live(console=console, refresh_per_second=4) as live:
            while True:
                live.update(render_groups(controller.groups, controller.countdowns, schedule))
                await asyncio.sleep(settings.countdown_tick_interval)
    finally:
        await controller.stop()


async def group_action(container: ServiceContainer, group_id: str, action: str) -> None:
    """Join a group, or close/delete/extend it as an admin."""
    state = await container.reconciler.initialize()
    if not state.is_authenticated or state.profile is None:
        console.print("[red]Error:[/red] Sign in first.")
        return

    controller = await container.group_controller(state.profile)
    await controller.refresh()
    if action == "join":
        outcome = await controller.join_group(group_id, confirm_prompt)
    else:
        outcome = await controller.manage_group(
            group_id, AdminGroupAction(action), confirm_prompt
        )

    if outcome.cancelled:
        console.print("[dim]Cancelled[/dim]")
    elif outcome.success:
        console.print(f"[green]{outcome.message}[/green]")
        if outcome.navigate_to:
            console.print(f"[dim]Open {outcome.navigate_to} to start chatting[/dim]")
    else:
        console.print(f"[red]Error:[/red] {outcome.message}")


async def run(args: argparse.Namespace) -> int:
    """Dispatch one CLI command. Returns the process exit code."""
    container = get_container()
    try:
        await container.start()
    except ConfigurationError as e:
        console.print(render_error(e))
        return 1

    try:
        if args.command == "status":
            await show_status(container)
        elif args.command == "sign-in":
            await sign_in(container, args.email)
        elif args.command == "sign-up":
            await sign_up(container, args.email, args.name, EnglishLevel(args.level))
        elif args.command == "sign-out":
            await sign_out(container)
        elif args.command == "groups":
            await list_groups(container, args.watch)
        elif args.command == "join":
            await group_action(container, args.group_id, "join")
        elif args.command == "manage":
            await group_action(container, args.group_id, args.action)
    except HadalHubError as e:
        console.print(render_error(e))
        return 1
    finally:
        await container.shutdown()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="HadalHub terminal client: sessions and live debate groups"
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: LOG_LEVEL setting)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show auth state and session cache status")

    sign_in_parser = subparsers.add_parser("sign-in", help="Sign in with email and password")
    sign_in_parser.add_argument("email", help="Account email")

    sign_up_parser = subparsers.add_parser("sign-up", help="Create a new account")
    sign_up_parser.add_argument("email", help="Account email")
    sign_up_parser.add_argument("--name", required=True, help="Display name")
    sign_up_parser.add_argument(
        "--level",
        choices=[level.value for level in EnglishLevel],
        default=EnglishLevel.BEGINNER.value,
        help="English level (default: beginner)",
    )

    subparsers.add_parser("sign-out", help="Sign out and clear the local session")

    groups_parser = subparsers.add_parser("groups", help="List debate groups at your level")
    groups_parser.add_argument(
        "--watch", "-w",
        action="store_true",
        help="Keep the list live until interrupted",
    )

    join_parser = subparsers.add_parser("join", help="Join a debate group")
    join_parser.add_argument("group_id", help="Group ID")

    manage_parser = subparsers.add_parser("manage", help="Close, delete or extend a group (admins)")
    manage_parser.add_argument("group_id", help="Group ID")
    manage_parser.add_argument(
        "action",
        choices=[action.value for action in AdminGroupAction],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")
        return 0


if __name__ == "__main__":
    sys.exit(main())
