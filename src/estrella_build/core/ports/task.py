from collections.abc import Set
from pathlib import Path
from typing import Protocol

from estrella_build.models import BuildResult, BuildTarget


class BuildTask(Protocol):
    """One build target plus the two phases the runner calls around the bundler."""

    @property
    def target(self) -> BuildTarget: ...

    async def before_build(self, changed_files: Set[Path]) -> None: ...

    async def after_build(self, result: BuildResult) -> None: ...
