"""Shared fixtures and helpers for tests."""

import json
from pathlib import Path

import pytest

from estrella_build.config import Settings, load_settings

_TESTS_DIR = Path(__file__).parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_TESTS_DIR)
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# A minimal estrella checkout on disk
# ---------------------------------------------------------------------------

ESBUILD_DECLARATIONS = """\
export type Platform = 'browser' | 'node';

interface CommonOptions {
  sourcemap?: boolean | 'inline' | 'external';
  target?: string | string[];
}

export interface BuildOptions extends CommonOptions {
  bundle?: boolean;
  outfile?: string;
  define?: { [key: string]: string };
  platform?: Platform;
}

export declare function build(options: BuildOptions): Promise<void>;
"""

ESTRELLA_DECLARATIONS = """\
import * as esbuild from "esbuild"

export interface BuildConfig extends esbuild.BuildOptions {
  // Compile a debug build
  debug?: boolean
  quiet?: boolean
  onEnd?(config: BuildConfig, result: BuildResult): void
}

export interface BuildResult {
  errors: string[]
}
"""


def write_project(root: Path) -> None:
    (root / "src").mkdir(parents=True, exist_ok=True)
    (root / "dist").mkdir(exist_ok=True)
    (root / "package.json").write_text(json.dumps({"name": "estrella", "version": "1.2.3"}), encoding="utf-8")
    (root / "estrella.d.ts").write_text(ESTRELLA_DECLARATIONS, encoding="utf-8")
    esbuild_dir = root / "node_modules" / "esbuild"
    (esbuild_dir / "lib").mkdir(parents=True)
    (esbuild_dir / "package.json").write_text(
        json.dumps({"name": "esbuild", "version": "0.8.57", "types": "lib/main.d.ts"}), encoding="utf-8"
    )
    (esbuild_dir / "lib" / "main.d.ts").write_text(ESBUILD_DECLARATIONS, encoding="utf-8")


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Return settings for a fake estrella checkout with esbuild typings installed."""
    monkeypatch.delenv("ESBUILD_BINARY", raising=False)
    write_project(tmp_path)
    return load_settings(tmp_path)
