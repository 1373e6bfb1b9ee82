"""Bundler adapter that drives the esbuild command line."""

from __future__ import annotations

import asyncio
import logging
import re
import stat
from pathlib import Path

from estrella_build.models import BuildResult, BuildTarget, Diagnostic, OutputMode

logger = logging.getLogger(__name__)

_ERROR_RE = re.compile(r"^(?:[✘X] \[ERROR\]|error:)\s*(?P<text>.+?)\s*$")
_WARNING_RE = re.compile(r"^(?:[▲!] \[WARNING\]|warning:)\s*(?P<text>.+?)\s*$")
_LOCATION_RE = re.compile(r"^\s+(?P<file>[^\s:][^:]*):(?P<line>\d+):(?P<column>\d+):?\s*$")


def parse_diagnostics(stderr: str) -> tuple[list[Diagnostic], list[Diagnostic]]:
    """Split esbuild's stderr into (errors, warnings).

    Each message starts with a ``[ERROR]`` or ``[WARNING]`` header; the first
    ``file:line:column:`` line that follows is taken as its location.
    """
    errors: list[Diagnostic] = []
    warnings: list[Diagnostic] = []
    current: dict[str, object] | None = None
    bucket: list[Diagnostic] = errors

    def _flush() -> None:
        if current is not None:
            bucket.append(Diagnostic.model_validate(current))

    for line in stderr.splitlines():
        header = _ERROR_RE.match(line) or _WARNING_RE.match(line)
        if header:
            _flush()
            bucket = errors if header.re is _ERROR_RE else warnings
            current = {"text": header.group("text")}
            continue
        location = _LOCATION_RE.match(line)
        if location and current is not None and "file" not in current:
            current.update(
                file=location.group("file"),
                line=int(location.group("line")),
                column=int(location.group("column")),
            )
    _flush()
    return errors, warnings


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class EsbuildBundler:
    """Implements the ``Bundler`` protocol with an esbuild subprocess per target."""

    def __init__(self, binary: str = "esbuild") -> None:
        self._binary = binary

    def command(self, target: BuildTarget) -> list[str]:
        options = target.options
        argv = [
            self._binary,
            target.entry,
            f"--outfile={target.outfile}",
            f"--platform={options.platform}",
            f"--target={options.target}",
            "--log-level=warning",
            "--color=false",
        ]
        if options.bundle:
            argv.append("--bundle")
        if options.sourcemap:
            argv.append("--sourcemap")
        argv += [f"--define:{name}={value}" for name, value in options.define.items()]
        argv += [f"--external:{module}" for module in options.external]
        return argv

    async def build(self, target: BuildTarget) -> BuildResult:
        argv = self.command(target)
        logger.debug("running %s", " ".join(argv))
        process = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(target.cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr_bytes = await process.communicate()
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        errors, warnings = parse_diagnostics(stderr)
        if process.returncode != 0 and not errors:
            errors.append(Diagnostic(text=stderr.strip() or f"esbuild exited with status {process.returncode}"))

        if not errors and target.outfile_mode is OutputMode.EXECUTABLE:
            await asyncio.to_thread(_make_executable, target.output_path)

        return BuildResult(errors=tuple(errors), warnings=tuple(warnings), outfile=target.output_path)
