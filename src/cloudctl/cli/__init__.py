"""cloudctl CLI - Command line interface for cloud platform targets.

Usage:
    cloudctl target [url] [--org org] [--space space]
    cloudctl targets
    cloudctl login [username] [--password pw] [--org org] [--space space]
    cloudctl logout
    cloudctl info
    cloudctl colors
    cloudctl version

Global options:
    --force/-f      Skip interaction when possible
    --quiet/-q      Simplify output format
    --script        Shortcut for --quiet and --force (default when not a TTY)
    --proxy/-u      Act as another user (admin only)
    --trace/-t      Show API requests and responses
    --verbose/-V    Print debug logging

Configuration:
    Set CLOUDCTL_CONFIG_DIR to use another config directory (default ~/.cloudctl).
"""

import logging
import sys

import typer

from cloudctl.cli import start
from cloudctl.cli._console import Console, TyperPrompter
from cloudctl.cli._shell import GlobalOptions, Shell
from cloudctl.client import ClientFactory, connect
from cloudctl.config import ConfigStore, get_settings

# Main CLI app
app = typer.Typer(
    name="cloudctl",
    help="cloudctl - command line client for cloud platform targets",
    no_args_is_help=True,
)

start.register(app)


@app.command()
def version() -> None:
    """Show the cloudctl version."""
    try:
        from importlib.metadata import version as get_version

        ver = get_version("cloudctl")
    except Exception:
        ver = "unknown"

    typer.echo(f"cloudctl {ver}")


def build_shell(options: GlobalOptions) -> Shell:
    """Wire up the config store, client factory and console for one process."""
    settings = get_settings()
    store = ConfigStore.from_settings(settings)
    factory = ClientFactory(
        store,
        builder=connect,
        proxy=options.proxy or settings.proxy,
        trace=options.trace or settings.trace,
    )
    console = Console(store.read_user_colors, color=options.color, quiet=options.quiet)
    return Shell(store, factory, console, TyperPrompter(console), options)


@app.callback()
def main(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Skip interaction when possible"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Simplify output format"),
    script: bool | None = typer.Option(
        None,
        "--script/--no-script",
        help="Shortcut for --quiet and --force (default when stdout is not a TTY)",
    ),
    color: bool | None = typer.Option(
        None, "--color/--no-color", help="Use colorful output"
    ),
    proxy: str = typer.Option(
        None, "--proxy", "-u", help="Act as another user (admin only)"
    ),
    trace: bool = typer.Option(
        False, "--trace", "-t", help="Show API requests and responses"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-V", help="Print debug logging"
    ),
) -> None:
    """cloudctl - command line client for cloud platform targets.

    Use 'cloudctl target <url>' to select a target, then 'cloudctl login'.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if script is None:
        script = not sys.stdout.isatty()
    force = force or script
    quiet = quiet or script
    color = (not quiet) if color is None else color

    options = GlobalOptions(
        force=force, quiet=quiet, color=color, proxy=proxy, trace=trace
    )
    ctx.obj = build_shell(options)


if __name__ == "__main__":
    app()
