import asyncio
from collections.abc import Callable, Coroutine, Sequence
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape

from estrella_build.bundler.esbuild import EsbuildBundler
from estrella_build.cli.logs import configure_logging
from estrella_build.config import Settings, load_settings
from estrella_build.core.ports.bundler import Bundler
from estrella_build.core.ports.watcher import FileWatcherPort
from estrella_build.core.runner import BuildTaskRunner, TargetOutcome
from estrella_build.targets import build_tasks
from estrella_build.watcher.watchfiles_adapter import WatchfilesWatcher

console = Console()


def _get_bundler(settings: Settings) -> Bundler:
    return EsbuildBundler(settings.esbuild_binary)


def _get_watcher(settings: Settings, on_change: Callable[[set[Path]], Coroutine[Any, Any, None]]) -> FileWatcherPort:
    return WatchfilesWatcher(settings.root / "src", on_change, ignored=[settings.typeinfo_outfile])


def _report(outcomes: Sequence[TargetOutcome]) -> None:
    for outcome in outcomes:
        target = outcome.target
        style = target.options.lint_format
        if outcome.error is not None:
            console.print(f"[red]✘[/red] {target.name}: {escape(str(outcome.error))}")
            continue
        assert outcome.result is not None
        for warning in outcome.result.warnings:
            console.print(f"[yellow]▲[/yellow] {target.name}: {escape(warning.format(style))}")
        if outcome.result.ok:
            console.print(f"[green]✔[/green] {target.name} → {target.outfile}")
        else:
            console.print(f"[red]✘[/red] {target.name}: {len(outcome.result.errors)} error(s)")
            for error in outcome.result.errors:
                console.print(f"    {escape(error.format(style))}")


def build(
    debug: Annotated[bool, typer.Option("--debug", help="Build the .g.js debug bundles.")] = False,
    watch: Annotated[bool, typer.Option("--watch", "-w", help="Rebuild when files under src/ change.")] = False,
    root: Annotated[Path | None, typer.Option(help="Project root (default: $ESTRELLA_ROOT or cwd).")] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug messages.")] = False,
) -> None:
    """Build the estrella bundles."""
    configure_logging(verbose, console)
    settings = load_settings(root)
    try:
        tasks = build_tasks(settings, debug=debug)
    except (OSError, ValueError, KeyError) as exc:
        console.print(f"[red]Cannot read project metadata: {escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc
    runner = BuildTaskRunner(_get_bundler(settings))

    async def _rebuild(changed: set[Path]) -> None:
        _report(await runner.run(tasks, changed))

    async def _run() -> bool:
        outcomes = await runner.run(tasks)
        _report(outcomes)
        if not watch:
            return not any(o.failed for o in outcomes)

        watcher = _get_watcher(settings, _rebuild)
        await watcher.start()
        console.print("Watching src/ for changes (Ctrl-C to stop)")
        try:
            await watcher.wait()
        finally:
            await watcher.stop()
        return True

    try:
        ok = asyncio.run(_run())
    except KeyboardInterrupt:
        return
    if not ok:
        raise typer.Exit(1)
