from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from watchfiles import awatch

logger = logging.getLogger(__name__)

# Extensions that can influence a bundle
_SOURCE_EXTENSIONS: frozenset[str] = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".json"})


def _is_source_file(path: Path) -> bool:
    return path.suffix in _SOURCE_EXTENSIONS


class WatchfilesWatcher:
    """Watch a directory for source-file changes and trigger a callback.

    Implements the ``FileWatcherPort`` protocol. Paths in ``ignored`` (files
    the build itself writes, like the generated typeinfo) never trigger it.
    """

    def __init__(
        self,
        directory: str | Path,
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
        ignored: Iterable[str | Path] = (),
    ) -> None:
        self._directory = Path(directory)
        self._on_change = on_change
        self._ignored = frozenset(Path(p).resolve() for p in ignored)
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", self._directory)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped for %s", self._directory)

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    async def _watch(self) -> None:
        async for changes in awatch(self._directory):
            paths = {
                Path(p) for _, p in changes if _is_source_file(Path(p)) and Path(p).resolve() not in self._ignored
            }
            if paths:
                logger.info("Detected changes in %d file(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in watcher callback")
