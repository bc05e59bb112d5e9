"""
Compiler configuration models.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

EntrySpec = str | list[str] | dict[str, str | list[str]]


class OutputOptions(BaseModel):
    """Where and under which name compiled bundles are written."""

    model_config = ConfigDict(extra="ignore")

    path: Path = Field(default=Path("dist"))
    filename: str = Field(default="main.js")
    public_path: str = Field(default="/")

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value
        return Path(value)


class CompilerOptions(BaseModel):
    """
    Compiler configuration object.

    ``entry`` accepts a single module, a list of modules, or a mapping of
    named entries. Relative paths resolve against ``context``.
    """

    model_config = ConfigDict(extra="allow")

    mode: str = Field(default="development")
    context: Path = Field(default_factory=Path.cwd)
    entry: EntrySpec = Field(default="./src/index.js")
    output: OutputOptions = Field(default_factory=OutputOptions)
    html_template: str | None = Field(default="./src/index.html")

    @field_validator("context", mode="before")
    @classmethod
    def _coerce_context(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value
        return Path(value)

    @property
    def output_path(self) -> str:
        """Absolute POSIX output directory, as reported to the output store."""
        path = self.output.path
        if not path.is_absolute():
            path = self.context / path
        return path.resolve().as_posix()

    def resolve(self, module: str) -> Path:
        """Resolve an entry module or template path against the context."""
        path = Path(module)
        if not path.is_absolute():
            path = self.context / path
        return path.resolve()

    def entry_chunks(self) -> dict[str, list[str]]:
        """Normalise ``entry`` into ``{chunk_name: [modules...]}``."""
        entry = self.entry
        if isinstance(entry, str):
            return {"main": [entry]}
        if isinstance(entry, list):
            return {"main": list(entry)}
        return {
            name: [modules] if isinstance(modules, str) else list(modules)
            for name, modules in entry.items()
        }


__all__ = ["CompilerOptions", "EntrySpec", "OutputOptions"]
