import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from estrella_build.cli.logs import configure_logging
from estrella_build.config import load_settings
from estrella_build.core.typeinfo import generate_typeinfo_if_needed
from estrella_build.errors import EstrellaBuildError

console = Console()


def typeinfo(
    force: Annotated[bool, typer.Option("--force", help="Regenerate even when up to date.")] = False,
    root: Annotated[Path | None, typer.Option(help="Project root (default: $ESTRELLA_ROOT or cwd).")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug messages.")] = False,
) -> None:
    """Regenerate src/typeinfo.ts when its inputs changed."""
    configure_logging(verbose, console)
    settings = load_settings(root)
    try:
        written = asyncio.run(generate_typeinfo_if_needed(settings, force=force))
    except (EstrellaBuildError, OSError, ValueError, KeyError) as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    if written:
        console.print(f"[green]Generated[/green] {settings.typeinfo_outfile}")
    else:
        console.print(f"Up to date: {settings.typeinfo_outfile}")
