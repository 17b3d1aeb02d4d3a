"""
Pytest configuration and fixtures.

Provides in-memory stand-ins for the Redmine client and the python-gitlab
project so migration runs can be checked end to end, including reruns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from gitlab.exceptions import GitlabCreateError, GitlabGetError, GitlabUpdateError

from redmine_to_gitlab_migrator.config import GitLabConfig, MigrationConfig, RedmineConfig
from redmine_to_gitlab_migrator.models import LabelMapping, SourceTicket, SourceVersion


class FakeRedmine:
    """In-memory replacement for RedmineClient."""

    def __init__(self) -> None:
        self.tickets: dict[int, SourceTicket] = {}
        self.project_ids: list[int] = [1]
        self.statuses: list[dict[str, Any]] = [
            {"id": 1, "name": "New"},
            {"id": 5, "name": "Closed", "is_closed": True},
            {"id": 6, "name": "Rejected", "is_closed": True},
        ]
        self.versions: dict[int, list[SourceVersion]] = {}
        self.files: dict[str, bytes] = {}
        self.most_recent: int | None = None
        self.ticket_requests: list[int] = []

    def get_most_recent_ticket_number(self) -> int:
        if self.most_recent is not None:
            return self.most_recent
        return max(self.tickets, default=0)

    def iter_project_ids(self):
        yield from self.project_ids

    def get_issue_statuses(self) -> list[dict[str, Any]]:
        return self.statuses

    def get_versions(self, project_id: int) -> list[SourceVersion]:
        return self.versions.get(project_id, [])

    def get_ticket(self, number: int) -> SourceTicket | None:
        self.ticket_requests.append(number)
        return self.tickets.get(number)

    def download_attachment(self, content_url: str) -> bytes:
        return self.files.get(content_url, b"data")


class FakeNotes:
    def __init__(self, issue: FakeIssue) -> None:
        self._issue = issue
        self.bodies: list[str] = []

    def create(self, data: dict[str, Any]) -> None:
        self._issue.project.events.append(("note", self._issue.iid))
        self.bodies.append(data["body"])


class FakeIssue:
    def __init__(self, project: FakeProject, iid: int) -> None:
        self.project = project
        self.iid = iid
        self.title = ""
        self.description = ""
        self.confidential = False
        self.labels: list[str] = []
        self.assignee_ids: list[int] = []
        self.milestone_id: int | None = None
        self.state = "opened"
        self.notes = FakeNotes(self)

    def apply(self, data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key == "state_event":
                self.state = "closed" if value == "close" else "opened"
            elif key == "labels":
                self.labels = [label for label in value.split(",") if label]
            elif key == "milestone_id":
                self.milestone_id = value or None
            elif key != "iid":
                setattr(self, key, value)


class FakeIssues:
    def __init__(self, project: FakeProject) -> None:
        self._project = project
        self.by_number: dict[int, FakeIssue] = {}
        self.get_status: int | None = None
        self.ignore_requested_iid = False

    def get(self, number: int) -> FakeIssue:
        if self.get_status is not None:
            raise GitlabGetError("error", response_code=self.get_status)
        if number not in self.by_number:
            raise GitlabGetError("404 Not found", response_code=404)
        return self.by_number[number]

    def create(self, data: dict[str, Any]) -> FakeIssue:
        iid = len(self.by_number) + 1 if self.ignore_requested_iid else data["iid"]
        if iid in self.by_number:
            raise GitlabCreateError("409 Conflict", response_code=409)
        issue = FakeIssue(self._project, iid)
        issue.apply(data)
        self.by_number[iid] = issue
        self._project.events.append(("create", iid))
        return issue

    def update(self, number: int, data: dict[str, Any]) -> None:
        if number not in self.by_number:
            raise GitlabUpdateError("404 Not found", response_code=404)
        event = "close" if data.get("state_event") == "close" and len(data) == 1 else "update"
        self._project.events.append((event, number))
        self.by_number[number].apply(data)


@dataclass
class FakeMilestone:
    id: int
    title: str
    due_date: str | None = None


class FakeMilestones:
    def __init__(self) -> None:
        self.items: list[FakeMilestone] = []
        self.create_calls: list[dict[str, Any]] = []

    def list(self, per_page: int = 20, page: int = 1) -> list[FakeMilestone]:
        start = (page - 1) * per_page
        return self.items[start : start + per_page]

    def create(self, data: dict[str, Any]) -> FakeMilestone:
        self.create_calls.append(data)
        milestone = FakeMilestone(id=1000 + len(self.items), title=data["title"], due_date=data.get("due_date"))
        self.items.append(milestone)
        return milestone


@dataclass
class FakeProject:
    """In-memory replacement for a python-gitlab Project."""

    events: list[tuple[str, int]] = field(default_factory=list)
    uploads: list[tuple[str, bytes]] = field(default_factory=list)
    upload_markdown: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.issues = FakeIssues(self)
        self.milestones = FakeMilestones()

    def upload(self, filename: str, filedata: bytes) -> dict[str, Any]:
        self.uploads.append((filename, filedata))
        markdown = self.upload_markdown.get(filename, f"[{filename}](/uploads/{len(self.uploads)}/{filename})")
        return {"alt": filename, "url": f"/uploads/{len(self.uploads)}/{filename}", "markdown": markdown}


def make_ticket(number: int, **overrides: Any) -> SourceTicket:
    values: dict[str, Any] = {
        "id": number,
        "project_id": 1,
        "subject": f"Ticket {number}",
        "description": f"Description of ticket {number}",
        "status": "New",
        "tracker": "Bug",
        "priority": "Normal",
        "author": "Jane Doe",
    }
    values.update(overrides)
    return SourceTicket(**values)


def make_config(
    labels_mapping: LabelMapping | None = None,
    users_mapping: dict[int, int] | None = None,
) -> MigrationConfig:
    return MigrationConfig(
        redmine=RedmineConfig(base_uri="https://redmine.example.com", username="user", password="pass"),
        gitlab=GitLabConfig(
            base_uri="https://gitlab.example.com",
            private_token="token",  # noqa: S106
            project="group/project",
            labels_mapping=labels_mapping or LabelMapping(),
            users_mapping=users_mapping or {},
        ),
    )


@pytest.fixture
def fake_redmine() -> FakeRedmine:
    return FakeRedmine()


@pytest.fixture
def fake_project() -> FakeProject:
    return FakeProject()
