"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

import yaml
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ppkgmgr.models.config import AppConfig
from ppkgmgr.models.registry import RegistryEntry
from ppkgmgr.models.stats import DownloadStats
from ppkgmgr.utils.formatting import format_duration, format_size, format_updated_at

_SUGGESTIONS = {
    "ManifestError": (
        "Check that the manifest is valid YAML with a 'repositories' list.",
        "Every file entry needs a 'file_name'.",
    ),
    "ManifestNotFoundError": ("Check the manifest path, or pass an http(s) URL.",),
    "DownloadFailedError": (
        "Run the command with -v to see which step failed for each file.",
        "Digest mismatches mean the remote file changed or the manifest is stale.",
        "Run `ppkgmgr pkg up -r` to retry every registered manifest.",
    ),
    "BackupError": (
        "An existing output could not be moved aside.",
        "Remove old '.bak' files or directories in the way and retry.",
    ),
    "RegistryError": ("The registry file may be corrupt; check `$PPKGMGR_HOME/registry.json`.",),
    "ConfigurationError": (
        "Check `$PPKGMGR_HOME/config.ini` for invalid values.",
        "Run `ppkgmgr --show-config` to see the effective settings.",
    ),
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Wraps an error and the hints for its type in a red Rich panel."""
    kind = type(error).__name__
    hints = _SUGGESTIONS.get(kind, ("Run the command with -vv for detailed logs.",))

    body = Text.assemble((f"{kind}: ", "bold red"), str(error), "\n\n")
    body.append("Hints\n", style="bold yellow")
    body.append("\n".join(f"• {hint}" for hint in hints))
    if context:
        body.append(f"\n\nContext: {context}", style="dim")

    return Panel(body, title="[bold red]ppkgmgr failed[/bold red]", border_style="red", expand=False)


def print_config(config: AppConfig, console: Console | None = None):
    """Displays the effective configuration."""
    console = console or Console()
    content = f"storage_dir = {config.storage_dir}\n"
    for key in sorted(AppConfig.get_ini_keys()):
        content += f"{key} = {getattr(config, key)}\n"

    source = config.config_file if config.config_file.is_file() else "defaults"
    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{source}[/dim])",
            border_style="cyan",
        )
    )


def print_registry_table(entries: list[RegistryEntry], console: Console):
    """Lists registered manifests."""
    table = Table(box=None, padding=(0, 2), show_edge=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("SOURCE", overflow="fold")
    table.add_column("UPDATED AT", style="green", no_wrap=True)
    for entry in entries:
        table.add_row(
            entry.id or "-",
            entry.source or "-",
            format_updated_at(entry.updated_at),
        )
    console.print(table)


def print_summary_panel(stats: DownloadStats, console: Console):
    """Displays a short summary of a download run."""
    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right")
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("✓ Placed:", f"[bold green]{stats.files_downloaded}[/bold green]")
    if stats.backups_created > 0:
        stats_table.add_row("↺ Backed up:", f"[yellow]{stats.backups_created}[/yellow]")
    if stats.files_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.files_failed}[/bold red]")
    stats_table.add_row("Total Size:", f"[cyan]{format_size(stats.bytes_downloaded)}[/cyan]")
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(stats.elapsed)}[/blue]")

    console.print(
        Panel(
            stats_table,
            title="[bold]Download Complete[/bold]",
            border_style="green" if not stats.has_failures else "red",
            box=box.ROUNDED,
            expand=False,
        )
    )


def render_digest_snippet(path: Path, digest: str, artifact_digest: str = "") -> str:
    """Renders a manifest ``files:`` snippet describing ``path``."""
    entry: dict[str, Any] = {
        "file_name": path.name,
        "out_dir": str(path.parent),
        "digest": digest,
    }
    if artifact_digest:
        entry["artifact_digest"] = artifact_digest
        entry["encoding"] = "zstd"
    return yaml.safe_dump(
        {"files": [entry]}, sort_keys=False, default_flow_style=False
    )
