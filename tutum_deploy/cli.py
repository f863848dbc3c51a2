"""Main CLI entry point for tutum-deploy."""

import os
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tutum_deploy.api import API_URL_ENV, DEFAULT_API_URL, ApiClient, Credentials
from tutum_deploy.config import DEFAULT_CONFIG_FILE, load_config
from tutum_deploy.context import DeployContext
from tutum_deploy.exceptions import BatchAbortedError, DeployError
from tutum_deploy.logging_config import get_logger, setup_logging

app = typer.Typer(
    name="tutum-deploy",
    help="Deploy container services to Tutum from a tutum.yaml file",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)

STATE_STYLES = {
    "Running": "green",
    "Deployed": "green",
    "Init": "yellow",
    "Starting": "yellow",
    "Deploying": "yellow",
    "Stopped": "red",
    "Terminating": "red",
    "Terminated": "red",
}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


def _context(
    config_path: str,
    api_url: str = DEFAULT_API_URL,
    timeout: float | None = None,
    credentials_required: bool = True,
    **options,
) -> DeployContext:
    """Load the configuration and wire up the API client for one run."""
    path = Path(config_path)
    config = load_config(path, os.environ)
    api = None
    if credentials_required:
        api = ApiClient(Credentials.from_env(os.environ), base_url=api_url, timeout=timeout)
    return DeployContext(api=api, config=config, cwd=path.absolute().parent, **options)


def _report_failure(title: str, error: Exception) -> None:
    if isinstance(error, DeployError):
        logger.error(f"{title}: {error.message}")
        console.print(f"[red]{title}:[/red] {escape(error.message)}")
        if error.details:
            console.print(f"\n{escape(error.details)}")
    else:
        logger.error(f"Unexpected error: {error}", exc_info=True)
        console.print(f"[red]Unexpected error:[/red] {escape(str(error))}")
        console.print("\nRun with --verbose --log-file debug.log for more details")


def _run(title: str, action):
    """Run ``action`` and turn failures into exit codes."""
    try:
        return action()
    except KeyboardInterrupt:
        console.print(f"\n[yellow]{title} interrupted by user[/yellow]")
        raise typer.Exit(code=130)
    except BatchAbortedError as e:
        _report_failure(f"{title} failed", e)
    except DeployError as e:
        _report_failure("Configuration Error", e)
    except Exception as e:
        _report_failure(title, e)
    raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Show version information."""
    from tutum_deploy import __version__

    typer.echo(f"tutum-deploy version {__version__}")


@app.command()
def up(
    config_path: str = typer.Option(
        DEFAULT_CONFIG_FILE, "--config", "-c", help="Path to the deployment configuration"
    ),
    build: bool = typer.Option(
        True, "--build/--no-build", help="Build and push images of services with a build path"
    ),
    redeploy: bool = typer.Option(
        False, "--redeploy", help="Redeploy running services even when no image was pushed"
    ),
    api_url: str = typer.Option(
        DEFAULT_API_URL, "--api-url", envvar=API_URL_ENV, help="Tutum API base URL"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds (default: none)"
    ),
) -> None:
    """
    Bring Tutum up to date with the configuration.

    Clusters are created and deployed, nodes are tagged, and services are
    built, created, started, tagged and redeployed, strictly one step at a
    time. The first failing step aborts the deployment.

    Examples:
        # Deploy tutum.yaml from the current directory
        tutum-deploy up

        # Skip docker build/push
        tutum-deploy up --no-build
    """
    from tutum_deploy import workflow

    def action():
        ctx = _context(
            config_path, api_url, timeout, build_images=build, force_redeploy=redeploy
        )
        steps = workflow.deploy(ctx)
        console.print(f"[green]✓[/green] Deployment successful ({steps} steps)")

    _run("Deployment", action)


@app.command()
def ps(
    config_path: str = typer.Option(
        DEFAULT_CONFIG_FILE, "--config", "-c", help="Path to the deployment configuration"
    ),
    api_url: str = typer.Option(
        DEFAULT_API_URL, "--api-url", envvar=API_URL_ENV, help="Tutum API base URL"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds (default: none)"
    ),
) -> None:
    """Show the remote state of every configured cluster, node and service."""
    from tutum_deploy import workflow

    def action():
        ctx = _context(config_path, api_url, timeout)
        return workflow.status(ctx)

    rows = _run("Status check", action)

    table = Table(title="Tutum Status")
    table.add_column("Kind", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("State")
    table.add_column("UUID", style="blue")

    for kind, name, state, uuid in rows:
        if state is None:
            state_str = "[dim]not created[/dim]"
        else:
            style = STATE_STYLES.get(state)
            state_str = f"[{style}]{state}[/{style}]" if style else state
        table.add_row(kind, name, state_str, uuid or "N/A")

    console.print(table)


@app.command()
def build(
    config_path: str = typer.Option(
        DEFAULT_CONFIG_FILE, "--config", "-c", help="Path to the deployment configuration"
    ),
) -> None:
    """Build and push the images of services with a build path."""
    from tutum_deploy import workflow

    def action():
        ctx = _context(config_path, credentials_required=False)
        steps = workflow.build(ctx)
        console.print(f"[green]✓[/green] Images built ({steps} steps)")

    _run("Image build", action)


if __name__ == "__main__":
    app()
