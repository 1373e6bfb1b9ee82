import asyncio
import math
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

# mtime reported for paths that do not exist
MISSING = -math.inf


def latest_or_missing(paths: Sequence[str | Path]) -> list[float]:
    """Return the modification time of each path, in input order.

    Paths that do not exist yield ``MISSING`` instead of raising.
    """
    mtimes: list[float] = []
    for path in paths:
        try:
            mtimes.append(Path(path).stat().st_mtime)
        except FileNotFoundError:
            mtimes.append(MISSING)
    return mtimes


async def alatest_or_missing(paths: Sequence[str | Path]) -> list[float]:
    return await asyncio.to_thread(latest_or_missing, paths)


@dataclass(frozen=True)
class StalenessRecord:
    entries: tuple[tuple[Path, float], ...]

    @property
    def outfile_mtime(self) -> float:
        return self.entries[0][1]

    @property
    def dependency_mtimes(self) -> list[float]:
        return [mtime for _, mtime in self.entries[1:]]

    def is_fresh(self) -> bool:
        deps = self.dependency_mtimes
        if self.outfile_mtime == MISSING or not deps:
            return False
        return self.outfile_mtime >= max(deps)


async def staleness_record(outfile: str | Path, dependencies: Sequence[str | Path]) -> StalenessRecord:
    paths = [Path(outfile), *(Path(p) for p in dependencies)]
    mtimes = await alatest_or_missing(paths)
    return StalenessRecord(entries=tuple(zip(paths, mtimes, strict=True)))
