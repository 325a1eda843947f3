"""Models for result lists and their entries."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ListMode(str, Enum):
    """Which of the session's two result lists an operation targets."""

    QUICKFIX = "quickfix"
    LOCATION = "location"


class ResultEntry(BaseModel):
    """One match reported by the search program."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["match"] = "match"
    file: str = Field(..., description="Path as reported by the search program")
    line: int = Field(..., description="1-based line number")
    column: int = Field(0, description="1-based column, 0 when the tool reports none")
    text: str = Field("", description="Matched line text")


class Tombstone(BaseModel):
    """Placeholder left in the slot of a deleted entry."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["tombstone"] = "tombstone"


ResultSlot = Annotated[Union[ResultEntry, Tombstone], Field(discriminator="kind")]


class ResultList(BaseModel):
    """
    Ordered result list as installed in the session.

    Lists are replaced whole; slots keep discovery order and deletions
    never change the length.
    """

    model_config = ConfigDict(frozen=True)

    slots: tuple[ResultSlot, ...] = ()
    title: str = ""
    selected: int = Field(0, description="1-based selected slot, 0 when the list is empty")

    def __len__(self) -> int:
        return len(self.slots)

    def entries(self) -> list[ResultEntry]:
        """Return the live entries, skipping tombstones."""
        return [slot for slot in self.slots if isinstance(slot, ResultEntry)]


class Position(BaseModel):
    """Cursor position in the results view (1-based line, 0-based column)."""

    line: int = Field(..., ge=1)
    col: int = Field(0, ge=0)


class DeleteRangeRequest(BaseModel):
    """Inclusive range of slots to delete."""

    first: int = Field(..., description="First slot, 1-based")
    last: int = Field(..., description="Last slot, 1-based, inclusive")


class DeleteMotionRequest(BaseModel):
    """Range expressed as the start and end of a motion in the results view."""

    start: Position
    end: Position


class ResultListResponse(BaseModel):
    """Response payload describing a result list."""

    mode: ListMode
    title: str
    selected: int
    length: int
    live: int = Field(..., description="Number of slots that are not tombstones")
    slots: list[ResultSlot]

    @classmethod
    def from_list(cls, mode: ListMode, result_list: ResultList) -> ResultListResponse:
        return cls(
            mode=mode,
            title=result_list.title,
            selected=result_list.selected,
            length=len(result_list),
            live=len(result_list.entries()),
            slots=list(result_list.slots),
        )
