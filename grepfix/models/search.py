"""Models for search compilation and dispatch."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from grepfix.models.results import ListMode


class CompiledCommand(BaseModel):
    """
    Result of compiling a raw query.

    ``escaped_args`` is the shell-safe argument string appended to the grep
    program; ``argv`` holds the same arguments unescaped, in order.
    """

    model_config = ConfigDict(frozen=True)

    escaped_args: str
    argv: tuple[str, ...] = ()
    pattern: str | None = None


class SearchRequest(BaseModel):
    """Request body for a search."""

    query: str = Field(..., description="Raw argument string as typed by the user")
    mode: ListMode = Field(ListMode.QUICKFIX, description="Result list to populate")
    scope_files: list[str] | None = Field(
        None, description="Restrict the search to these files (e.g. open buffers)"
    )


class SearchResponse(BaseModel):
    """Response payload for a search."""

    enabled: bool = Field(..., description="False when no search program is configured")
    command: str | None = Field(None, description="Full command line that was run")
    pattern: str | None = Field(None, description="Captured search pattern")
    pending: bool = Field(False, description="True while an asynchronous job is running")
    entries: int = Field(0, description="Entries installed in the result list")
    exit_code: int | None = None
    stderr: str = ""


class HighlightResponse(BaseModel):
    """Current search-highlighting state."""

    pattern: str | None
    enabled: bool
    dirty: bool
