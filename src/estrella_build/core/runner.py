import asyncio
import logging
from collections.abc import Sequence, Set
from dataclasses import dataclass
from pathlib import Path

from estrella_build.core.ports.bundler import Bundler
from estrella_build.core.ports.task import BuildTask
from estrella_build.errors import HookError
from estrella_build.models import BuildResult, BuildTarget

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetOutcome:
    target: BuildTarget
    result: BuildResult | None = None
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None or self.result is None or not self.result.ok


class BuildTaskRunner:
    """Run build tasks concurrently; each task's phases run strictly in order.

    ``before_build`` -> ``bundler.build`` -> ``after_build``. A failing task
    never affects the others.
    """

    def __init__(self, bundler: Bundler) -> None:
        self._bundler = bundler

    async def run(self, tasks: Sequence[BuildTask], changed_files: Set[Path] = frozenset()) -> list[TargetOutcome]:
        return list(await asyncio.gather(*(self._run_task(task, changed_files) for task in tasks)))

    async def _run_task(self, task: BuildTask, changed_files: Set[Path]) -> TargetOutcome:
        target = task.target
        try:
            await task.before_build(changed_files)
        except Exception as exc:
            logger.debug("%s: before_build raised %r", target.name, exc)
            return TargetOutcome(target, error=HookError(target.name, "before_build", exc))

        try:
            result = await self._bundler.build(target)
        except Exception as exc:
            return TargetOutcome(target, error=exc)
        if not result.ok:
            logger.debug("%s: build reported %d error(s)", target.name, len(result.errors))

        try:
            await task.after_build(result)
        except Exception as exc:
            return TargetOutcome(target, result, HookError(target.name, "after_build", exc))
        return TargetOutcome(target, result)
