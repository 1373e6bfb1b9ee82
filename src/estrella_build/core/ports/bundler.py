from typing import Protocol

from estrella_build.models import BuildResult, BuildTarget


class Bundler(Protocol):
    async def build(self, target: BuildTarget) -> BuildResult: ...
