"""The four estrella bundles and the work done around each of them."""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from collections.abc import Set
from pathlib import Path

from estrella_build.config import Settings
from estrella_build.core.transform import transform_artifact
from estrella_build.core.typeinfo import generate_typeinfo_if_needed
from estrella_build.models import BuildOptions, BuildResult, BuildTarget, OutputMode

logger = logging.getLogger(__name__)


def common_options(settings: Settings) -> BuildOptions:
    return BuildOptions(
        platform="node",
        target="node12",
        define={
            "VERSION": json.dumps(settings.package_version()),
            "_runtimeRequire": "require",
        },
        lint_format="short",
        external=("esbuild", "fsevents", "typescript"),
        bundle=True,
        sourcemap=True,
    )


def _outfile(name: str, debug: bool) -> str:
    return f"dist/{name}.g.js" if debug else f"dist/{name}.js"


class BundleTask:
    """Release builds strip banner comments and patch the source map once the bundle is built."""

    def __init__(self, target: BuildTarget, settings: Settings) -> None:
        self._target = target
        self._settings = settings

    @property
    def target(self) -> BuildTarget:
        return self._target

    async def before_build(self, changed_files: Set[Path]) -> None:
        if changed_files:
            logger.debug("%s: %d changed file(s)", self._target.name, len(changed_files))

    async def after_build(self, result: BuildResult) -> None:
        if self._target.debug or not result.ok:
            return
        report = await asyncio.to_thread(
            transform_artifact,
            self._target.output_path,
            sourcemap=self._target.options.sourcemap,
            source_prefix=self._settings.source_prefix,
            marker=self._settings.source_marker,
        )
        logger.info(
            "%s: stripped %d banner comment(s), patched %d source path(s)",
            report.path.relative_to(self._target.cwd),
            report.banners_removed,
            report.sources_rewritten,
        )


class MainBundleTask(BundleTask):
    """The estrella executable; regenerates typeinfo first and ships typedefs in debug builds."""

    def __init__(self, target: BuildTarget, settings: Settings, force_typeinfo: bool = False) -> None:
        super().__init__(target, settings)
        self._force_typeinfo = force_typeinfo

    async def before_build(self, changed_files: Set[Path]) -> None:
        await super().before_build(changed_files)
        await generate_typeinfo_if_needed(self._settings, force=self._force_typeinfo)

    async def after_build(self, result: BuildResult) -> None:
        await super().after_build(result)
        if self._target.debug and result.ok:
            # local examples and tests import dist/ by relative path and need
            # the typedefs colocated for IDE type annotations
            declarations = self._settings.estrella_declarations
            dist = self._target.cwd / "dist"
            await asyncio.gather(
                asyncio.to_thread(shutil.copyfile, declarations, dist / "estrella.d.ts"),
                asyncio.to_thread(shutil.copyfile, declarations, dist / "estrella.g.d.ts"),
            )


def build_tasks(settings: Settings, debug: bool = False, force_typeinfo: bool = False) -> list[BundleTask]:
    options = common_options(settings)

    def _target(name: str, entry: str, outfile_name: str, mode: OutputMode = OutputMode.NORMAL) -> BuildTarget:
        return BuildTarget(
            name=name,
            cwd=settings.root,
            entry=entry,
            outfile=_outfile(outfile_name, debug),
            outfile_mode=mode,
            debug=debug,
            options=options,
        )

    return [
        MainBundleTask(
            _target("estrella", "src/estrella.js", "estrella", OutputMode.EXECUTABLE),
            settings,
            force_typeinfo=force_typeinfo,
        ),
        BundleTask(_target("debug", "src/debug/debug.ts", "debug"), settings),
        BundleTask(_target("watch", "src/watch/watch.ts", "watch"), settings),
        BundleTask(_target("register", "src/register.ts", "register"), settings),
    ]
