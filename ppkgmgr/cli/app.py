"""
Defines the command-line interface for the application using Typer.
"""

import logging
import os
from importlib import metadata
from pathlib import Path

import typer
import zstandard
from rich.console import Console
from rich.logging import RichHandler

from ppkgmgr import __version__
from ppkgmgr.core.decoder import compress_zstd
from ppkgmgr.core.digest import compute_digest, digest_zstd_content
from ppkgmgr.core.download_manager import download_files
from ppkgmgr.core.file_processor import DownloadFunc
from ppkgmgr.core.repo import add_manifest, list_manifests, remove_manifest
from ppkgmgr.core.updater import run_pkg_up
from ppkgmgr.exceptions import (
    DownloadFailedError,
    ErrorKind,
    NotFoundError,
    PpkgError,
    UsageError,
    exit_code_for,
)
from ppkgmgr.models.config import DEFAULT_VERSION, AppConfig
from ppkgmgr.storage.config_manager import ConfigManager
from ppkgmgr.storage.manifest_loader import is_remote_path, parse_manifest
from ppkgmgr.transport.downloader import Downloader
from ppkgmgr.utils.path import expand_path

from .formatters import (
    print_config,
    print_registry_table,
    print_summary_panel,
    render_digest_snippet,
)

console = Console()
err_console = Console(stderr=True)

logging.basicConfig(
    level="WARNING",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=err_console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            show_time=False,
            markup=False,
        )
    ],
)
log = logging.getLogger("ppkgmgr")

app = typer.Typer(
    name="ppkgmgr",
    help="Download, verify and track files described by YAML manifests.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
repo_app = typer.Typer(help="Manage stored manifests.", no_args_is_help=True)
pkg_app = typer.Typer(help="Refresh registered manifests.", no_args_is_help=True)
util_app = typer.Typer(
    help="Utility helpers for working with ppkgmgr artifacts.", no_args_is_help=True
)
app.add_typer(repo_app, name="repo")
app.add_typer(pkg_app, name="pkg")
app.add_typer(util_app, name="util")

_UNSET_VERSIONS = ("", "(devel)", DEFAULT_VERSION)


def resolve_version(configured: str) -> str:
    """Returns the configured version, else the installed one, else 0.0.0."""
    if configured.strip() not in _UNSET_VERSIONS:
        return configured.strip()
    try:
        installed = metadata.version("ppkgmgr")
    except metadata.PackageNotFoundError:
        return DEFAULT_VERSION
    return installed if installed not in _UNSET_VERSIONS else DEFAULT_VERSION


def load_config() -> AppConfig:
    return ConfigManager().load_config({"version": __version__})


def get_downloader(config: AppConfig) -> DownloadFunc:
    """Builds the downloader used for manifest files."""
    return Downloader.from_config(config).download


def get_fetcher(config: AppConfig):
    """Builds the fetcher used for remote manifests."""
    return Downloader.from_config(config).fetch_bytes


def _fail(error: PpkgError) -> None:
    if isinstance(error, DownloadFailedError):
        for subject, reason in error.failures:
            err_console.print(f"[red]✗ Failed:[/red] {subject}: {reason}", highlight=False)
    else:
        err_console.print(f"[bold red]Error:[/bold red] {error}", highlight=False)
    raise typer.Exit(code=exit_code_for(error.kind)) from error


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Manifest-driven downloader."""
    if version:
        console.print(f"[bold]ppkgmgr[/bold] version [cyan]{resolve_version(__version__)}[/cyan]")
        raise typer.Exit()

    try:
        config = load_config()
    except PpkgError as e:
        _fail(e)

    log_level = config.log_level
    if verbose == 1:
        log_level = "INFO"
    elif verbose >= 2:
        log_level = "DEBUG"
    log.setLevel(log_level)

    if show_config:
        print_config(config, console)
        raise typer.Exit()

    ctx.obj = config
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _config_from(ctx: typer.Context) -> AppConfig:
    config = ctx.find_root().obj
    if isinstance(config, AppConfig):
        return config
    return load_config()


@app.command(name="dl")
def dl_command(
    ctx: typer.Context,
    manifest: str = typer.Argument(..., help="Manifest path or http(s) URL."),
    spider: bool = typer.Option(
        False, "--spider", help="Print the planned downloads without writing anything."
    ),
    overwrite: bool = typer.Option(
        False, "--overwrite", "-o", help="Overwrite existing files without backups."
    ),
):
    """Download files defined in a manifest."""
    try:
        if not is_remote_path(manifest) and not os.path.exists(manifest):
            raise NotFoundError("not found path")
        config = _config_from(ctx)
        parsed = parse_manifest(manifest, get_fetcher(config))
        downloader = None if spider else get_downloader(config)
        stats = download_files(
            parsed, downloader, spider=spider, force_overwrite=overwrite
        )
    except PpkgError as e:
        _fail(e)

    if not spider and stats.files_planned:
        print_summary_panel(stats, err_console)


@repo_app.command(name="add")
def repo_add(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Manifest path or http(s) URL."),
):
    """Register a manifest locally."""
    try:
        config = _config_from(ctx)
        entry = add_manifest(source, config, get_fetcher(config))
    except PpkgError as e:
        _fail(e)
    typer.echo(f"registered manifest: {entry.local_path}")


@repo_app.command(name="ls")
def repo_ls(ctx: typer.Context):
    """List registered manifests."""
    try:
        entries = list_manifests(_config_from(ctx))
    except PpkgError as e:
        _fail(e)
    if not entries:
        typer.echo("no manifests registered")
        return
    print_registry_table(entries, console)


@repo_app.command(name="rm")
def repo_rm(
    ctx: typer.Context,
    selector: str = typer.Argument(..., help="Manifest ID or source."),
):
    """Unregister a manifest and delete its cached copy."""
    try:
        entry = remove_manifest(selector, _config_from(ctx))
    except PpkgError as e:
        _fail(e)
    typer.echo(f"removed manifest: {entry.source or '-'}")


@pkg_app.command(name="up")
def pkg_up(
    ctx: typer.Context,
    redownload: bool = typer.Option(
        False, "--redownload", "-r", help="Download files even if nothing changed."
    ),
):
    """Refresh registered manifests and download their files."""
    try:
        config = _config_from(ctx)
        run_pkg_up(
            get_downloader(config),
            force=redownload,
            config=config,
            fetch=get_fetcher(config),
        )
    except PpkgError as e:
        _fail(e)


@util_app.command(name="dig")
def util_dig(
    path: str = typer.Argument(..., help="File to hash."),
    mode: str = typer.Option("file", "--mode", help="Input mode: file or artifact."),
    output_format: str = typer.Option("raw", "--format", help="Output format: raw or yaml."),
):
    """Print the BLAKE3 digest of a file."""
    try:
        expanded = expand_path(path)
        if not expanded:
            raise UsageError("require file path argument")
        mode = mode.lower()
        output_format = output_format.lower()
        if mode not in ("file", "artifact"):
            raise UsageError(f"invalid mode {mode!r} (expected file or artifact)")
        if output_format not in ("raw", "yaml"):
            raise UsageError(f"invalid format {output_format!r} (expected raw or yaml)")

        try:
            digest = compute_digest(expanded)
        except OSError as e:
            raise PpkgError(f"failed to compute digest: {e}", kind=ErrorKind.ENVIRONMENT) from e

        content_digest = ""
        if mode == "artifact":
            try:
                content_digest = digest_zstd_content(expanded)
            except (OSError, zstandard.ZstdError) as e:
                raise PpkgError(
                    f"failed to compute decoded digest: {e}", kind=ErrorKind.ENVIRONMENT
                ) from e
    except PpkgError as e:
        _fail(e)

    if output_format == "raw":
        typer.echo(digest)
    elif mode == "artifact":
        typer.echo(render_digest_snippet(Path(expanded), content_digest, digest), nl=False)
    else:
        typer.echo(render_digest_snippet(Path(expanded), digest), nl=False)


@util_app.command(name="zstd")
def util_zstd(
    src: str = typer.Argument(..., help="File to compress."),
    dst: str = typer.Argument(..., help="Destination of the zstd stream."),
):
    """Compress a file using zstd and print the BLAKE3 digest of the result."""
    try:
        src_path = expand_path(src)
        dst_path = expand_path(dst)
        if not src_path or not dst_path:
            raise UsageError("require source and destination paths")
        if os.path.abspath(src_path) == os.path.abspath(dst_path):
            raise UsageError("source and destination paths must be different")
        try:
            compress_zstd(src_path, dst_path)
            digest = compute_digest(dst_path)
        except (OSError, zstandard.ZstdError) as e:
            raise PpkgError(f"failed to compress file: {e}", kind=ErrorKind.ENVIRONMENT) from e
    except PpkgError as e:
        _fail(e)
    typer.echo(digest)


@app.command(name="ver")
def ver_command(ctx: typer.Context):
    """Print the version."""
    typer.echo(f"Version : {resolve_version(_config_from(ctx).version)}")
