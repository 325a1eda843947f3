"""Models for file sets and cross-file substitution."""

from __future__ import annotations

import shlex

from pydantic import BaseModel, ConfigDict, Field

from grepfix.models.results import ListMode


class FileSet(BaseModel):
    """Distinct files referenced by a result list, in first-occurrence order."""

    model_config = ConfigDict(frozen=True)

    files: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.files)

    @property
    def escaped(self) -> list[str]:
        """Each path quoted for use as a single shell argument."""
        return [shlex.quote(path) for path in self.files]


class SubstitutionExpression(BaseModel):
    """Parsed ``/pattern/replacement/flags`` expression."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    replacement: str
    flags: str = ""

    @property
    def effective_flags(self) -> str:
        """User flags with global and no-error always appended."""
        return f"{self.flags}ge"


class SubstituteRequest(BaseModel):
    """Request body for a substitution pass."""

    expression: str = Field(..., description="Expression of the form /pattern/replacement/flags")
    mode: ListMode = Field(ListMode.QUICKFIX, description="Result list supplying the files")


class FileFailure(BaseModel):
    """A file that could not be written back."""

    path: str
    error: str


class SubstituteResponse(BaseModel):
    """Outcome of a substitution pass."""

    files_changed: int = Field(..., description="Files whose content was modified")
    files_visited: int = Field(..., description="Files the substitution was applied to")
    replacements: int = Field(0, description="Total replacements across all files")
    dry_run: bool = False
    failures: list[FileFailure] = Field(default_factory=list)


class FileSetResponse(BaseModel):
    """Working set installed from a result list."""

    mode: ListMode
    files: list[str]
    escaped: list[str]
