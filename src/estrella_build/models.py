from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

LintFormat = Literal["short", "full"]


class OutputMode(str, Enum):
    NORMAL = "normal"
    EXECUTABLE = "executable"


class BuildOptions(BaseModel):
    """Options shared by every target, built once from the common base."""

    model_config = ConfigDict(frozen=True)

    platform: str = "node"
    target: str = "node12"
    define: Mapping[str, str] = Field(default_factory=lambda: MappingProxyType({}))
    lint_format: LintFormat = "short"
    external: tuple[str, ...] = ()
    bundle: bool = True
    sourcemap: bool = True

    @field_validator("define", mode="after")
    @classmethod
    def _freeze_define(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("define")
    def _serialize_define(self, value: Mapping[str, str]) -> dict[str, str]:
        return dict(value)


class BuildTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    cwd: Path
    entry: str
    outfile: str
    outfile_mode: OutputMode = OutputMode.NORMAL
    debug: bool = False
    options: BuildOptions = Field(default_factory=BuildOptions)

    @property
    def entry_path(self) -> Path:
        return self.cwd / self.entry

    @property
    def output_path(self) -> Path:
        return self.cwd / self.outfile

    @property
    def map_path(self) -> Path:
        return self.cwd / f"{self.outfile}.map"


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    file: str | None = None
    line: int | None = None
    column: int | None = None

    def format(self, style: LintFormat = "short") -> str:
        if self.file is None:
            return self.text
        location = self.file if self.line is None else f"{self.file}:{self.line}:{self.column or 0}"
        if style == "short":
            return f"{location}: {self.text}"
        return f"{self.text}\n    at {location}"


class BuildResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    errors: tuple[Diagnostic, ...] = ()
    warnings: tuple[Diagnostic, ...] = ()
    outfile: Path

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0


class PropInfo(BaseModel):
    name: str
    typestr: str


class InterfaceInfo(BaseModel):
    name: str
    file: str
    heritage: list[str] = []
    props: dict[str, PropInfo] = {}
    bases: list["InterfaceInfo"] = []

    def computed_props(self) -> dict[str, PropInfo]:
        """Return own props merged over the props of locally declared base interfaces.

        Inherited props come first; a prop redeclared by this interface keeps
        its inherited position but takes this interface's type.
        """
        props: dict[str, PropInfo] = {}
        for base in self.bases:
            props.update(base.computed_props())
        props.update(self.props)
        return props


InterfaceInfo.model_rebuild()  # necessary for recursive types
