"""Target and session commands: target, targets, login, logout, info, colors."""

import typer

from cloudctl.cli._shell import Gate, Shell
from cloudctl.client import is_v2
from cloudctl.orgspace import OrgSpaceResolver
from cloudctl.target import display_target, sane_target_url


def _shell(ctx: typer.Context) -> Shell:
    return ctx.obj


def _show_target(shell: Shell, target: str) -> None:
    if shell.quiet:
        shell.console.line(target)
    else:
        shell.console.line(f"Target: {shell.console.c(target, 'name')}")


def target(
    ctx: typer.Context,
    url: str = typer.Argument(None, help="Target URL to switch to"),
    organization: str = typer.Option(
        None, "--org", "--organization", "-o", help="Organization"
    ),
    space: str = typer.Option(None, "--space", "-s", help="Space"),
) -> None:
    """Set or display the current target cloud.

    For v2 targets, also selects the organization and space to work in.

    Examples:
        cloudctl target api.example.com
        cloudctl target --org my-org --space dev
    """
    shell = _shell(ctx)

    def run() -> None:
        factory = shell.factory
        console = shell.console

        if url is None and organization is None and space is None:
            client = factory.get_client()
            _show_target(shell, factory.current_target())
            if is_v2(client) and client.current_organization and client.current_space:
                org_name = console.c(client.current_organization.name, "name")
                space_name = console.c(client.current_space.name, "name")
                console.line(f"Organization: {org_name}")
                console.line(f"Space: {space_name}")
            return

        if url is not None:
            new_target = sane_target_url(url)
            factory.set_target(new_target)
            if not shell.quiet:
                name = console.c(display_target(new_target), "name")
                console.line(f"Setting target to {name}... {console.c('OK', 'good')}")
            if shell.force:
                return

        client = factory.get_client(resolve_context=False)
        try:
            if not is_v2(client):
                return

            if not client.logged_in:
                if shell.auth.login(organization=organization, space=space) is None:
                    raise typer.Exit(1)
                return

            current = factory.current_target()
            record = shell.store.get_session(current)
            resolver = OrgSpaceResolver(
                client, shell.prompter, interactive=not shell.force
            )
            resolver.select_org_and_space(record, organization, space)
            shell.store.save_session(current, record)
            factory.invalidate()
        finally:
            factory.release(client)

    shell.execute(run, gate=Gate.NONE)


def targets(ctx: typer.Context) -> None:
    """List known targets."""
    shell = _shell(ctx)

    def run() -> None:
        for known in shell.store.read_session_store():
            shell.console.line(known)

    shell.execute(run, gate=Gate.NONE)


def login(
    ctx: typer.Context,
    username: str = typer.Argument(None, help="Account email"),
    password: str = typer.Option(None, "--password", help="Account password"),
    organization: str = typer.Option(
        None, "--org", "--organization", "-o", help="Organization"
    ),
    space: str = typer.Option(None, "--space", "-s", help="Space"),
) -> None:
    """Authenticate with the target.

    Prompts for any credentials the target needs that were not given. For v2
    targets, then selects the organization and space to work in.
    """
    shell = _shell(ctx)

    def run() -> None:
        if not shell.quiet:
            _show_target(shell, shell.factory.current_target())
            shell.console.line()

        record = shell.auth.login(
            username=username,
            password=password,
            organization=organization,
            space=space,
        )
        if record is None:
            raise typer.Exit(1)

    shell.execute(run, gate=Gate.TARGET)


def logout(ctx: typer.Context) -> None:
    """Log out from the target."""
    shell = _shell(ctx)

    def run() -> None:
        shell.auth.logout()
        if not shell.quiet:
            shell.console.line(f"Logging out... {shell.console.c('OK', 'good')}")

    shell.execute(run, gate=Gate.TARGET)


def info(ctx: typer.Context) -> None:
    """Display information on the current target and user."""
    shell = _shell(ctx)

    def run() -> None:
        console = shell.console
        client = shell.factory.get_client()
        user = client.current_user()

        _show_target(shell, client.target)
        console.line(f"  version: {int(client.protocol_version)}")
        if user is not None:
            console.line(f"user: {console.c(user.email or user.id, 'name')}")
        if is_v2(client) and client.current_organization and client.current_space:
            console.line(f"organization: {client.current_organization.name}")
            console.line(f"space: {client.current_space.name}")

    shell.execute(run, gate=Gate.CONTEXT)


def colors(ctx: typer.Context) -> None:
    """Show color configuration."""
    shell = _shell(ctx)

    def run() -> None:
        console = shell.console
        for label, color in console.colors.items():
            console.line(f"{label}: {console.c(color, label)}")

    shell.execute(run, gate=Gate.NONE)


def register(app: typer.Typer) -> None:
    app.command()(target)
    app.command(hidden=True)(targets)
    app.command()(login)
    app.command()(logout)
    app.command()(info)
    app.command(hidden=True)(colors)
