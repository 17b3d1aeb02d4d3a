"""Data models exchanged between the Redmine client, the GitLab side and the migrator.

Source models are frozen: a Redmine ticket is read once per run and never
modified. Lookup tables built before the main loop are exposed read-only.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

DUMMY_ISSUE_TITLE = "Dummy issue created by Redmine import"
DUMMY_ISSUE_LABEL = "import/skipped"


class TicketVariant(enum.Enum):
    """What the reconciler produces for a single ticket number."""

    REAL = "real"
    DUMMY_NOT_FOUND = "dummy_not_found"
    DUMMY_EXCLUDED = "dummy_excluded"

    @property
    def is_dummy(self) -> bool:
        return self is not TicketVariant.REAL


class LabelCategory(enum.Enum):
    """Categories of the labels mapping, valued by their configuration key."""

    TRACKER = "tracker"
    STATUS = "status"
    PRIORITY = "priority"
    CUSTOM_FIELD = "custom-field"


@dataclass(frozen=True)
class SourceAttachment:
    """An attachment of a Redmine ticket."""

    filename: str
    content_url: str


@dataclass(frozen=True)
class Journal:
    """A journal entry (change event, possibly with a note) of a Redmine ticket."""

    author: str
    notes: str = ""


@dataclass(frozen=True)
class Relation:
    """A relation between two Redmine tickets, migrated as plain text only."""

    issue_id: int
    relation_type: str
    issue_to_id: int


@dataclass(frozen=True)
class CustomFieldValue:
    """A custom field of a ticket. Multi-value fields carry several values."""

    name: str
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class SourceTicket:
    """A Redmine ticket including attachments, relations and journals."""

    id: int
    project_id: int
    subject: str
    description: str
    status: str
    tracker: str
    priority: str
    author: str
    is_private: bool = False
    assignee_id: int | None = None
    fixed_version: str | None = None
    custom_fields: tuple[CustomFieldValue, ...] = ()
    attachments: tuple[SourceAttachment, ...] = ()
    journals: tuple[Journal, ...] = ()
    relations: tuple[Relation, ...] = ()


@dataclass(frozen=True)
class SourceVersion:
    """A Redmine version, the equivalent of a GitLab milestone."""

    name: str
    due_date: str | None = None  # ISO date (YYYY-MM-DD) as delivered by Redmine


@dataclass(frozen=True)
class LabelMapping:
    """Labels to apply per Redmine tracker, status, priority and custom field value."""

    tracker: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    status: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    priority: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    custom_field: Mapping[str, Mapping[str, tuple[str, ...]]] = field(default_factory=dict)

    def lookup(self, category: LabelCategory, key: str, value: str | None = None) -> tuple[str, ...]:
        """Return the labels configured for a key (and value, for custom fields)."""
        match category:
            case LabelCategory.TRACKER:
                return self.tracker.get(key, ())
            case LabelCategory.STATUS:
                return self.status.get(key, ())
            case LabelCategory.PRIORITY:
                return self.priority.get(key, ())
            case LabelCategory.CUSTOM_FIELD:
                if value is None:
                    return ()
                return self.custom_field.get(key, {}).get(value, ())


@dataclass
class IssuePayload:
    """The GitLab issue to create or overwrite for one ticket number."""

    number: int
    title: str
    description: str
    confidential: bool
    labels: list[str] = field(default_factory=list)
    assignee_ids: list[int] = field(default_factory=list)
    milestone_id: int | None = None
    closed: bool = False

    def to_update_data(self) -> dict[str, Any]:
        """Fields sent on update. Every field is sent so stale values get replaced."""
        return {
            "title": self.title,
            "description": self.description,
            "confidential": self.confidential,
            "labels": ",".join(self.labels),
            "assignee_ids": list(self.assignee_ids),
            # GitLab unassigns the milestone when given 0
            "milestone_id": self.milestone_id if self.milestone_id is not None else 0,
        }

    def to_create_data(self) -> dict[str, Any]:
        """Fields sent on creation, requesting the ticket number as issue iid."""
        data: dict[str, Any] = {
            "iid": self.number,
            "title": self.title,
            "description": self.description,
            "confidential": self.confidential,
            "labels": ",".join(self.labels),
        }
        if self.assignee_ids:
            data["assignee_ids"] = list(self.assignee_ids)
        if self.milestone_id is not None:
            data["milestone_id"] = self.milestone_id
        return data
