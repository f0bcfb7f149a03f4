"""assistant/models.py

Data models shared by the parser, the update extractor and the responder.

Conversation messages and project counts come from the caller and are
validated with pydantic. Everything the parser produces is a plain
dataclass with a ``to_dict`` that emits the camelCase wire format the
web layer consumes.
"""

from __future__ import annotations

# Standard Library
import dataclasses
from typing import Any, Literal

# Third-Party Libraries
from pydantic import BaseModel, ConfigDict, Field

QueryType = Literal["search", "list", "count", "update"]
Lang = Literal["fr", "en"]

PROJECT_STATUSES: tuple[str, ...] = (
    "GHOST_PRODUCTION",
    "TERMINE",
    "ANNULE",
    "EN_COURS",
    "EN_ATTENTE",
    "ARCHIVE",
    "A_REWORK",
)


def to_camel(key: str) -> str:
    """Convert a snake_case identifier to camelCase."""
    head, *tail = key.split("_")
    return head + "".join(part.capitalize() for part in tail)


class ConversationMessage(BaseModel):
    """A single turn of caller-owned conversation history."""

    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1)
    timestamp: str = ""


class ProjectContext(BaseModel):
    """Aggregate counts describing the user's catalogue.

    Accepts both snake_case and the camelCase keys of the wire format
    (``projectCount``, ``collabCount``, ``styleCount``).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project_count: int = Field(0, ge=0)
    collab_count: int = Field(0, ge=0)
    style_count: int = Field(0, ge=0)


@dataclasses.dataclass(slots=True)
class DeadlineShift:
    """Signed offset applied to existing deadlines."""

    days: int = 0
    weeks: int = 0
    months: int = 0

    def to_dict(self) -> dict[str, int]:
        """Return the non-zero offsets, e.g. ``{"weeks": 2}``."""
        return {k: v for k, v in dataclasses.asdict(self).items() if v}


@dataclasses.dataclass(slots=True)
class UpdateData:
    """Sparse description of a bulk or single-project modification.

    Scope fields narrow which projects are touched; ``new_*`` fields describe
    the mutation. ``remove_deadline`` is the explicit form of "set the
    deadline to nothing", which is distinct from leaving it untouched.
    """

    # scope
    status: str | None = None
    min_progress: int | None = None
    max_progress: int | None = None
    no_progress: bool | None = None
    has_deadline: bool | None = None
    collab: str | None = None
    style: str | None = None
    label: str | None = None
    label_final: str | None = None
    project_name: str | None = None
    # mutation
    new_status: str | None = None
    new_progress: int | None = None
    new_deadline: str | None = None
    remove_deadline: bool = False
    push_deadline_by: DeadlineShift | None = None
    new_collab: str | None = None
    new_style: str | None = None
    new_label: str | None = None
    new_label_final: str | None = None
    new_note: str | None = None

    def has_mutation(self) -> bool:
        """Return True when at least one mutation field is set."""
        return bool(
            self.new_status is not None
            or self.new_progress is not None
            or self.new_deadline is not None
            or self.remove_deadline
            or self.push_deadline_by is not None
            or self.new_collab is not None
            or self.new_style is not None
            or self.new_label is not None
            or self.new_label_final is not None
            or self.new_note is not None
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the set fields to the camelCase wire format."""
        data: dict[str, Any] = {}
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if field.name == "remove_deadline":
                if value:
                    data["newDeadline"] = None
                continue
            if value is None:
                continue
            if isinstance(value, DeadlineShift):
                value = value.to_dict()
            data[to_camel(field.name)] = value
        return data


@dataclasses.dataclass(slots=True)
class FilterResult:
    """Filters and display fields detected in a query."""

    filters: dict[str, Any] = dataclasses.field(default_factory=dict)
    fields_to_show: list[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(slots=True)
class ParseQueryResult:
    """Structured interpretation of one user utterance."""

    filters: dict[str, Any] = dataclasses.field(default_factory=dict)
    type: QueryType = "search"
    understood: bool = False
    lang: Lang | None = None
    update_data: UpdateData | None = None
    clarification: str | None = None
    is_conversational: bool = False
    fields_to_show: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase wire format."""
        data: dict[str, Any] = {
            "filters": {to_camel(k): v for k, v in self.filters.items()},
            "type": self.type,
            "understood": self.understood,
            "clarification": self.clarification,
            "isConversational": self.is_conversational,
        }
        if self.lang is not None:
            data["lang"] = self.lang
        if self.update_data is not None:
            data["updateData"] = self.update_data.to_dict()
        if self.fields_to_show is not None:
            data["fieldsToShow"] = [to_camel(f) for f in self.fields_to_show]
        return data
