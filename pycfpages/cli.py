"""CLI interface for Cloudflare Pages direct uploads."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from . import __version__
from .api import PagesClient
from .config import ACCOUNT_ID_ENV, API_TOKEN_ENV, config
from .deploy import PagesDeployer
from .exceptions import PagesError
from .models import DeploymentOptions
from .output import OutputFormatter
from .utils import DEFAULT_CONCURRENCY, compute_hash

logger = logging.getLogger(__name__)


def require_credentials(ctx: Any, out: OutputFormatter) -> tuple[str, str]:
    """Return the API token and account ID or exit with an error."""
    api_token = ctx.obj.get("api_token") or config.api_token
    account_id = ctx.obj.get("account_id") or config.account_id

    if not api_token or not account_id:
        missing = []
        if not api_token:
            missing.append(f"API token (--api-token or {API_TOKEN_ENV})")
        if not account_id:
            missing.append(f"account ID (--account-id or {ACCOUNT_ID_ENV})")
        out.error(f"Missing {' and '.join(missing)}")
        out.info("Run 'pycfpages init' to store your credentials")
        ctx.exit(1)

    return api_token, account_id


@click.group()
@click.option("--api-token", "-t", envvar=API_TOKEN_ENV, help="Cloudflare API token")
@click.option("--account-id", "-a", envvar=ACCOUNT_ID_ENV, help="Cloudflare account ID")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    api_token: Optional[str],
    account_id: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pycfpages - Deploy static sites to Cloudflare Pages via direct upload."""
    ctx.ensure_object(dict)
    ctx.obj["api_token"] = api_token
    ctx.obj["account_id"] = account_id
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pycfpages").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--api-token",
    "-t",
    prompt="Enter your Cloudflare API token",
    hide_input=True,
    help="Cloudflare API token",
)
@click.option(
    "--account-id",
    "-a",
    prompt="Enter your Cloudflare account ID",
    help="Cloudflare account ID",
)
@click.pass_context
def init(ctx: Any, api_token: str, account_id: str) -> None:
    """Store Cloudflare credentials.

    Saves the API token and account ID in ~/.config/pycfpages/config for
    future use. Environment variables still take precedence.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        config.save_credentials(api_token.strip(), account_id.strip())
    except OSError as e:
        out.error(f"Could not save configuration: {e}")
        ctx.exit(1)

    out.success("✓ Configuration saved successfully")
    out.info(f"Config file: {config.get_config_path()}")


@main.command()
@click.argument("project")
@click.argument(
    "directory",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option("--branch", "-b", help="Branch name, used for preview deployments")
@click.option("--commit-message", "-m", help="Commit message to attach")
@click.option("--commit-hash", help="Commit hash to attach")
@click.option(
    "--concurrency",
    "-j",
    type=click.IntRange(min=1),
    default=DEFAULT_CONCURRENCY,
    show_default=True,
    help="Number of parallel asset uploads",
)
@click.option("--no-progress", is_flag=True, help="Disable progress bar")
@click.pass_context
def deploy(
    ctx: Any,
    project: str,
    directory: Optional[Path],
    branch: Optional[str],
    commit_message: Optional[str],
    commit_hash: Optional[str],
    concurrency: int,
    no_progress: bool,
) -> None:
    """Deploy a directory to a Pages project.

    PROJECT: Name of the Pages project

    DIRECTORY: Site directory (defaults to the current directory)
    """
    out: OutputFormatter = ctx.obj["out"]
    api_token, account_id = require_credentials(ctx, out)
    site_dir = (directory or Path.cwd()).resolve()
    logger.debug(f"Deploying {site_dir} to project {project}")

    message = f"deploying project {project}"
    if branch:
        message += f" on branch {branch}"
    out.print(message)

    show_progress = out.show_info and not no_progress
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=out.console,
        transient=True,
        disable=not show_progress,
    )
    task = progress.add_task("Uploading", total=None)

    def on_progress(uploaded: int, total: int) -> None:
        progress.update(task, completed=uploaded, total=total)

    def log(msg: str) -> None:
        if show_progress:
            progress.console.print(msg, markup=False, highlight=False, style="dim")
        else:
            out.info(msg)

    options = DeploymentOptions(
        branch=branch,
        commit_message=commit_message,
        commit_hash=commit_hash,
        concurrency=concurrency,
        log=log,
        progress_callback=on_progress,
    )

    try:
        client = PagesClient(project, api_token=api_token, account_id=account_id)
        with client, progress:
            deployment = PagesDeployer(client).deploy_directory(site_dir, options)
    except (PagesError, ValueError) as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(
            {
                "id": deployment.id,
                "url": deployment.url,
                "files": len(deployment.hashes),
            }
        )
    else:
        out.success(f"deployed {deployment.url}")


@main.command(name="hash")
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def hash_files(ctx: Any, files: tuple[Path, ...]) -> None:
    """Print the asset fingerprint of files.

    Fingerprints can be passed as precomputed hashes when deploying large
    files programmatically.
    """
    out: OutputFormatter = ctx.obj["out"]

    hashes = {str(path): compute_hash(path.read_bytes(), path.name) for path in files}

    if out.json_output:
        out.output_json(hashes)
        return
    for filename, hash_value in hashes.items():
        click.echo(f"{hash_value}  {filename}")

