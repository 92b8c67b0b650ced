"""
Main entry point for the ppkgmgr application.
Runs the Typer app and turns anything that escapes a command into an exit code.
"""

import logging
import os
import sys

import click
from rich.console import Console

from ppkgmgr.cli.app import app
from ppkgmgr.cli.formatters import format_error_with_suggestions
from ppkgmgr.exceptions import ErrorKind, PpkgError, exit_code_for


def main() -> None:
    """Console script entry point."""
    if os.name == "nt":
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass

    log = logging.getLogger("ppkgmgr")
    console = Console(stderr=True)

    try:
        result = app(standalone_mode=False)
    except click.UsageError as e:
        e.show()
        sys.exit(exit_code_for(ErrorKind.USAGE))
    except (click.Abort, KeyboardInterrupt):
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except PpkgError as e:
        console.print()
        console.print(format_error_with_suggestions(e))
        sys.exit(exit_code_for(e.kind))
    except Exception as e:
        console.print()
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Unhandled exception", exc_info=True)
        sys.exit(exit_code_for(ErrorKind.ENVIRONMENT))

    if isinstance(result, int):
        sys.exit(result)


if __name__ == "__main__":
    main()
