import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# "/*! ... */" license banners plus the newlines right after them
_BANNER_RE = re.compile(r"/\*!([\s\S]*?)\*/\n*")


@dataclass(frozen=True)
class TransformReport:
    path: Path
    banners_removed: int
    sources_rewritten: int


def strip_banner_comments(text: str) -> tuple[str, int]:
    return _BANNER_RE.subn("", text)


def rewrite_sources(source_map: dict[str, Any], prefix: str = "src", marker: str = "<estrella>") -> dict[str, Any]:
    """Return a copy of ``source_map`` with ``prefix/`` in ``sources`` replaced by ``marker``.

    ``src/a/b.ts`` becomes ``<estrella>/a/b.ts``. The marker is used at runtime
    to tell errors inside estrella apart from errors in user code.
    """
    sources = source_map.get("sources")
    if not isinstance(sources, list):
        raise ValueError("source map has no 'sources' list")
    directory = f"{prefix}/"
    return {
        **source_map,
        "sources": [
            marker + src[len(prefix) :] if isinstance(src, str) and src.startswith(directory) else src
            for src in sources
        ],
    }


def _strip_file(path: Path) -> int:
    text = path.read_bytes().decode("utf-8")
    stripped, count = strip_banner_comments(text)
    if stripped != text:
        path.write_bytes(stripped.encode("utf-8"))
    return count


def _patch_map(path: Path, prefix: str, marker: str) -> int:
    raw = path.read_bytes().decode("utf-8")
    try:
        source_map = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid source map {path}: {exc}") from exc
    if not isinstance(source_map, dict):
        raise ValueError(f"Invalid source map {path}: expected an object")

    patched = rewrite_sources(source_map, prefix, marker)
    changed = sum(a != b for a, b in zip(source_map["sources"], patched["sources"], strict=True))
    serialized = json.dumps(patched, ensure_ascii=False, separators=(",", ":"))
    if serialized != raw:
        path.write_bytes(serialized.encode("utf-8"))
    return changed


def transform_artifact(
    output_path: str | Path,
    *,
    sourcemap: bool = True,
    source_prefix: str = "src",
    marker: str = "<estrella>",
) -> TransformReport:
    """Strip banner comments from a build product and normalize its source map paths.

    A missing output or map file raises: it means the build did not produce
    what it claimed to.
    """
    path = Path(output_path)
    banners = _strip_file(path)
    rewritten = _patch_map(Path(f"{path}.map"), source_prefix, marker) if sourcemap else 0
    logger.debug("%s: removed %d banner comment(s), rewrote %d source path(s)", path, banners, rewritten)
    return TransformReport(path=path, banners_removed=banners, sources_rewritten=rewritten)
