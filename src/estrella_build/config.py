import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

TYPEINFO_OUTFILE = "src/typeinfo.ts"
ESBUILD_PACKAGE = "node_modules/esbuild/package.json"
ESTRELLA_DECLARATIONS = "estrella.d.ts"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path
    esbuild_binary: str
    typeinfo_outfile: Path
    esbuild_package: Path
    estrella_declarations: Path
    source_prefix: str = "src"
    source_marker: str = "<estrella>"

    def package_version(self) -> str:
        package = json.loads((self.root / "package.json").read_text(encoding="utf-8"))
        return str(package["version"])

    def esbuild_declarations(self) -> Path:
        """Resolve the esbuild typings file from the ``types`` field of its package.json."""
        package = json.loads(self.esbuild_package.read_text(encoding="utf-8"))
        return (self.esbuild_package.parent / package["types"]).resolve()


def load_settings(root: str | Path | None = None) -> Settings:
    project_root = Path(root or os.getenv("ESTRELLA_ROOT", ".")).resolve()
    esbuild_binary = os.getenv(
        "ESBUILD_BINARY",
        str(project_root / "node_modules" / ".bin" / "esbuild"),
    )
    return Settings(
        root=project_root,
        esbuild_binary=esbuild_binary,
        typeinfo_outfile=project_root / TYPEINFO_OUTFILE,
        esbuild_package=project_root / ESBUILD_PACKAGE,
        estrella_declarations=project_root / ESTRELLA_DECLARATIONS,
    )
