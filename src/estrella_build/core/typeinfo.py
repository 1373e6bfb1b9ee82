"""Generation of ``src/typeinfo.ts``.

The generated module lists the properties of ``esbuild.BuildOptions`` and
``estrella.BuildConfig`` so the runtime can filter and verify options passed
to ``build()``. Regeneration is skipped while the file is newer than every
input that influences its contents, including this module itself.
"""

import asyncio
import json
import logging
import os
import re
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path

from estrella_build.config import Settings
from estrella_build.core.interfaces import ainterface_info
from estrella_build.core.mtime import staleness_record
from estrella_build.models import PropInfo

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


def format_props(props: Mapping[str, PropInfo]) -> str:
    """Format props as a ``new Set([...])`` literal with aligned type comments."""
    width = max((len(_quote(name)) for name in props), default=0)
    lines = ["new Set(["]
    for name, prop in props.items():
        typeinfo = _WHITESPACE_RE.sub(" ", prop.typestr)
        lines.append(f"    {_quote(name).ljust(width)} , // {typeinfo}")
    lines.append("  ])")
    return "\n".join(lines)


def _quote(name: str) -> str:
    return json.dumps(name, ensure_ascii=False)


def render_typeinfo(
    esbuild_version: str,
    build_options: Mapping[str, PropInfo],
    build_config: Mapping[str, PropInfo],
) -> str:
    return (
        "// Do not edit. Generated by estrella-build\n"
        "\n"
        "export const esbuild = {\n"
        f"  version:      {_quote(esbuild_version)},\n"
        f"  BuildOptions: {format_props(build_options)}, // BuildOptions\n"
        "}\n"
        "\n"
        "export const estrella = {\n"
        f"  BuildConfig: {format_props(build_config)}, // BuildConfig\n"
        "}\n"
    )


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(text.encode("utf-8"))
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise


def _read_version(package_file: Path) -> str:
    package = json.loads(package_file.read_text(encoding="utf-8"))
    return str(package["version"])


async def regenerate_if_stale(
    outfile: str | Path,
    dependency_paths: Sequence[str | Path],
    *,
    esbuild_package: str | Path,
    esbuild_declarations: str | Path,
    estrella_declarations: str | Path,
    force: bool = False,
) -> bool:
    """Regenerate ``outfile`` unless it is newer than all ``dependency_paths``.

    Returns True when the file was written. Nothing is written if reflecting
    either interface fails.
    """
    outfile = Path(outfile)
    record = await staleness_record(outfile, dependency_paths)
    if record.is_fresh() and not force:
        logger.debug("%s is up-to date; skipping codegen", outfile)
        return False

    build_options, build_config = await asyncio.gather(
        ainterface_info(esbuild_declarations, "BuildOptions"),
        ainterface_info(estrella_declarations, "BuildConfig"),
    )
    version = await asyncio.to_thread(_read_version, Path(esbuild_package))
    text = render_typeinfo(version, build_options.computed_props(), build_config.props)

    await asyncio.to_thread(_write_atomic, outfile, text)
    logger.info("generated %s from %s, %s", outfile, esbuild_declarations, estrella_declarations)
    return True


def typeinfo_dependencies(settings: Settings, esbuild_declarations: Path) -> list[Path]:
    return [
        esbuild_declarations,
        settings.esbuild_package,
        settings.estrella_declarations,
        Path(__file__),
    ]


async def generate_typeinfo_if_needed(settings: Settings, force: bool = False) -> bool:
    esbuild_declarations = await asyncio.to_thread(settings.esbuild_declarations)
    return await regenerate_if_stale(
        settings.typeinfo_outfile,
        typeinfo_dependencies(settings, esbuild_declarations),
        esbuild_package=settings.esbuild_package,
        esbuild_declarations=esbuild_declarations,
        estrella_declarations=settings.estrella_declarations,
        force=force,
    )
