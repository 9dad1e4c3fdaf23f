from __future__ import annotations

import logging
from pathlib import Path

import typer

from dbdata_sync.config import DEFAULT_DATA_FOLDER, DEFAULT_INPUT_FILE, build_config
from dbdata_sync.errors import ConfigError, SyncError
from dbdata_sync.manifest import read_manifest
from dbdata_sync.nexus import NexusClient
from dbdata_sync.pipeline import render_result_table, render_table, run_sync
from dbdata_sync.storage import GzipLocalStore
from dbdata_sync.sync import SyncEngine

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

logger = logging.getLogger(__name__)

app = typer.Typer(help="Mongo-Initializr DbData Sync CLI")


def _exit_with_help(ctx: typer.Context, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    # Help text is printed by the formatter itself when rich is installed.
    help_text = ctx.get_help()
    if help_text:
        typer.echo(help_text)
    raise typer.Exit(code=1)


@app.command("sync", context_settings={"help_option_names": []})
def sync_command(
    ctx: typer.Context,
    input_file: Path | None = typer.Option(
        None,
        "--input-file",
        "-i",
        help=f"Manifest JSON file (default: {DEFAULT_INPUT_FILE}).",
        dir_okay=False,
    ),
    data_folder: Path | None = typer.Option(
        None,
        "--data-folder",
        "-d",
        help=f"Local data folder (default: {DEFAULT_DATA_FOLDER}).",
        file_okay=False,
    ),
    nexus_url: str | None = typer.Option(
        None,
        "--nexus-url",
        envvar="NEXUS_BASE_URL",
        help="Nexus base URL.",
    ),
    nexus_repo: str | None = typer.Option(
        None,
        "--nexus-repo",
        envvar="NEXUS_REPOSITORY",
        help="Nexus repository name.",
    ),
    nexus_username: str | None = typer.Option(
        None,
        "--nexus-username",
        envvar="NEXUS_USERNAME",
        help="Nexus username.",
    ),
    nexus_password: str | None = typer.Option(
        None,
        "--nexus-password",
        envvar="NEXUS_PASSWORD",
        help="Nexus password.",
        show_envvar=True,
    ),
    timeout_seconds: float | None = typer.Option(
        None,
        "--timeout-seconds",
        min=0.1,
        help="HTTP timeout for Nexus requests.",
    ),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Optional YAML/JSON config file; command line options take precedence.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
    show_help: bool = typer.Option(
        False,
        "--help",
        "-h",
        is_eager=True,
        callback=_exit_with_help,
        help="Show this message and exit with status 1.",
    ),
) -> None:
    """Download changed artifacts listed in the manifest and decompress them."""
    _display_banner()

    try:
        config = build_config(
            config_path=config_path,
            input_file=input_file,
            data_folder=data_folder,
            base_url=nexus_url,
            repository=nexus_repo,
            username=nexus_username,
            password=nexus_password,
            timeout_seconds=timeout_seconds,
            verbose=verbose or None,
        )
        config.require_input_file()
    except ConfigError as exc:
        _echo_usage_error(ctx, str(exc))
        raise typer.Exit(code=1) from exc

    if config.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    logger.info("Handle inputfile '%s'", config.input_file)
    engine = SyncEngine(
        data_folder=config.data_folder,
        client=NexusClient(config.nexus),
        store=GzipLocalStore(),
    )
    try:
        entries = read_manifest(config.input_file)
        result = run_sync(entries, engine=engine)
    except SyncError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    logger.info("Done!")
    typer.echo(render_result_table(result))
    typer.echo(
        "summary "
        f"entries={len(result.results)} "
        f"downloaded={result.downloaded} "
        f"up_to_date={result.up_to_date} "
        f"duration={result.duration_seconds:.3f}s"
    )


@app.command("manifest")
def manifest_command(
    input_file: Path = typer.Option(
        DEFAULT_INPUT_FILE,
        "--input-file",
        "-i",
        help="Manifest JSON file.",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
) -> None:
    """Print the parsed manifest entries without contacting Nexus."""
    try:
        entries = read_manifest(input_file)
    except SyncError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    rows = [
        (str(index), entry.collection or "-", entry.path, entry.remote_path)
        for index, entry in enumerate(entries, start=1)
    ]
    typer.echo(render_table(headers=("#", "collection", "path", "remote"), rows=rows))
    typer.echo(f"entries={len(entries)}")


def _display_banner() -> None:
    logger.info("------------------------------------------")
    logger.info("- Mongo-Initializr - DbData Sync")
    logger.info("------------------------------------------")


def _echo_usage_error(ctx: typer.Context, message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    typer.echo(ctx.get_usage(), err=True)
    typer.echo(f"Try '{ctx.command_path} --help' for help.", err=True)


if __name__ == "__main__":
    app()
