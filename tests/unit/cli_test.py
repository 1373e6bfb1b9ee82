"""Tests for the estrella-build command line."""

from __future__ import annotations

import json
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from estrella_build.cli.app import app
from estrella_build.config import Settings
from estrella_build.models import BuildResult, BuildTarget, Diagnostic

runner = CliRunner()


class _FakeBundler:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = failing or set()

    async def build(self, target: BuildTarget) -> BuildResult:
        if target.name in self.failing:
            return BuildResult(
                errors=[Diagnostic(text="Unexpected [end]", file="src/a.ts", line=1, column=1)],
                outfile=target.output_path,
            )
        target.output_path.write_text("x()\n", encoding="utf-8")
        target.map_path.write_text(json.dumps({"version": 3, "sources": []}), encoding="utf-8")
        return BuildResult(outfile=target.output_path)


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["build"],
        ["typeinfo"],
    ],
    ids=["root", "build", "typeinfo"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_build_reports_each_target(project: Settings) -> None:
    with patch("estrella_build.cli.build._get_bundler", return_value=_FakeBundler()):
        result = runner.invoke(app, ["build", "--root", str(project.root)])

    assert result.exit_code == 0, result.output
    for name in ("estrella", "debug", "watch", "register"):
        assert f"dist/{name}.js" in result.output
    assert project.typeinfo_outfile.exists()


def test_build_fails_when_a_target_fails(project: Settings) -> None:
    with patch("estrella_build.cli.build._get_bundler", return_value=_FakeBundler(failing={"watch"})):
        result = runner.invoke(app, ["build", "--root", str(project.root)])

    assert result.exit_code == 1
    assert "src/a.ts:1:1: Unexpected [end]" in result.output


def test_build_debug_writes_g_bundles(project: Settings) -> None:
    with patch("estrella_build.cli.build._get_bundler", return_value=_FakeBundler()):
        result = runner.invoke(app, ["build", "--debug", "--root", str(project.root)])

    assert result.exit_code == 0, result.output
    assert (project.root / "dist" / "debug.g.js").exists()
    assert (project.root / "dist" / "estrella.g.d.ts").exists()


def test_build_without_package_json(tmp_path: Path) -> None:
    result = runner.invoke(app, ["build", "--root", str(tmp_path)])
    assert result.exit_code == 1
    assert "Cannot read project metadata" in result.output


def test_typeinfo_generates_then_reports_up_to_date(project: Settings) -> None:
    first = runner.invoke(app, ["typeinfo", "--root", str(project.root)])
    assert first.exit_code == 0, first.output
    assert "Generated" in first.output

    second = runner.invoke(app, ["typeinfo", "--root", str(project.root)])
    assert second.exit_code == 0
    assert "Up to date" in second.output


def test_typeinfo_missing_interface_exits_nonzero(project: Settings) -> None:
    project.estrella_declarations.write_text("export interface Other {}\n", encoding="utf-8")

    result = runner.invoke(app, ["typeinfo", "--root", str(project.root)])

    assert result.exit_code == 1
    assert "BuildConfig" in result.output


def test_typeinfo_without_esbuild_types_field(project: Settings) -> None:
    project.esbuild_package.write_text(json.dumps({"name": "esbuild", "version": "0.8.57"}), encoding="utf-8")

    result = runner.invoke(app, ["typeinfo", "--root", str(project.root)])

    assert result.exit_code == 1
    assert "types" in result.output
    assert not isinstance(result.exception, KeyError)


class _FakeWatcher:
    """Delivers one change to the rebuild callback, then exits."""

    def __init__(self, changed: Path, on_change: Callable[[set[Path]], Coroutine[Any, Any, None]]) -> None:
        self.changed = changed
        self.on_change = on_change
        self.started = False
        self.stopped = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    async def wait(self) -> None:
        await self.on_change({self.changed})


def test_build_watch_rebuilds_on_change(project: Settings) -> None:
    bundler = _FakeBundler()
    watchers: list[_FakeWatcher] = []

    def _watcher(settings: Settings, on_change: Callable[[set[Path]], Coroutine[Any, Any, None]]) -> _FakeWatcher:
        watcher = _FakeWatcher(settings.root / "src" / "estrella.ts", on_change)
        watchers.append(watcher)
        return watcher

    with (
        patch("estrella_build.cli.build._get_bundler", return_value=bundler),
        patch("estrella_build.cli.build._get_watcher", side_effect=_watcher),
    ):
        result = runner.invoke(app, ["build", "--watch", "--root", str(project.root)])

    assert result.exit_code == 0, result.output
    assert "Watching src/" in result.output
    # initial build plus one rebuild
    assert result.output.count("dist/estrella.js") == 2
    assert len(watchers) == 1
    assert watchers[0].started and watchers[0].stopped
