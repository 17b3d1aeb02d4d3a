"""Access to the Redmine REST API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Final

import requests

from .exceptions import UnexpectedStatusError
from .models import CustomFieldValue, Journal, Relation, SourceAttachment, SourceTicket, SourceVersion

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .config import RedmineConfig

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_SYSTEM: Final[str] = "Redmine"
_PAGE_SIZE: Final[int] = 100


def _custom_field_values(raw: Any) -> tuple[str, ...]:  # noqa: ANN401 - string, list or null in Redmine JSON
    if raw is None or raw == "":
        return ()
    if isinstance(raw, list):
        return tuple(str(value) for value in raw if value is not None and value != "")
    return (str(raw),)


def parse_ticket(data: dict[str, Any]) -> SourceTicket:
    """Convert the `issue` object of a Redmine ticket response into a SourceTicket."""
    assigned_to = data.get("assigned_to")
    fixed_version = data.get("fixed_version")
    return SourceTicket(
        id=int(data["id"]),
        project_id=int(data["project"]["id"]),
        subject=data.get("subject", ""),
        description=data.get("description") or "",
        status=data["status"]["name"],
        tracker=data["tracker"]["name"],
        priority=data["priority"]["name"],
        author=data.get("author", {}).get("name", ""),
        is_private=bool(data.get("is_private", False)),
        assignee_id=int(assigned_to["id"]) if assigned_to else None,
        fixed_version=fixed_version["name"] if fixed_version else None,
        custom_fields=tuple(
            CustomFieldValue(name=cf["name"], values=_custom_field_values(cf.get("value")))
            for cf in data.get("custom_fields", [])
        ),
        attachments=tuple(
            SourceAttachment(filename=a["filename"], content_url=a["content_url"]) for a in data.get("attachments", [])
        ),
        journals=tuple(
            Journal(author=j.get("user", {}).get("name", ""), notes=j.get("notes") or "")
            for j in data.get("journals", [])
        ),
        relations=tuple(
            Relation(issue_id=int(r["issue_id"]), relation_type=r["relation_type"], issue_to_id=int(r["issue_to_id"]))
            for r in data.get("relations", [])
        ),
    )


class RedmineClient:
    """Thin blocking client for the parts of the Redmine API the migration reads."""

    base_uri: str
    timeout: float
    session: requests.Session

    def __init__(self, base_uri: str, session: requests.Session, *, timeout: float = 30.0) -> None:
        self.base_uri = base_uri.rstrip("/") + "/"
        self.session = session
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return self.base_uri + path.lstrip("/")

    def _get(self, path: str, params: dict[str, Any] | None = None) -> requests.Response:
        try:
            return self.session.get(self._url(path), params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UnexpectedStatusError(_SYSTEM, f"{path} (request failed: {e})", None) from e

    def _get_json(self, path: str, context: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self._get(path, params)
        if response.status_code != HTTPStatus.OK:
            raise UnexpectedStatusError(_SYSTEM, context, response.status_code)
        return response.json()

    def get_most_recent_ticket_number(self) -> int:
        """Return the highest ticket id across all statuses, or 0 without tickets."""
        data = self._get_json(
            "issues.json", "the most recent ticket", params={"status_id": "*", "sort": "id:desc", "limit": 1}
        )
        issues = data.get("issues", [])
        return int(issues[0]["id"]) if issues else 0

    def iter_project_ids(self) -> Iterator[int]:
        """Yield the ids of all projects, following pagination."""
        offset = 0
        while True:
            data = self._get_json("projects.json", "the project list", params={"offset": offset, "limit": _PAGE_SIZE})
            projects = data.get("projects", [])
            for project in projects:
                yield int(project["id"])
            offset += len(projects)
            if not projects or offset >= int(data.get("total_count", offset)):
                return

    def get_issue_statuses(self) -> list[dict[str, Any]]:
        return self._get_json("issue_statuses.json", "the issue statuses").get("issue_statuses", [])

    def get_versions(self, project_id: int) -> list[SourceVersion]:
        data = self._get_json(f"projects/{project_id}/versions.json", f"versions of project {project_id}")
        return [SourceVersion(name=v["name"], due_date=v.get("due_date") or None) for v in data.get("versions", [])]

    def get_ticket(self, number: int) -> SourceTicket | None:
        """Fetch a ticket with attachments, relations and journals.

        Returns:
            The ticket, or None if Redmine answers 404

        Raises:
            UnexpectedStatusError: For any other status than 200 and 404
        """
        response = self._get(f"issues/{number}.json", params={"include": "attachments,relations,journals"})
        if response.status_code == HTTPStatus.NOT_FOUND:
            return None
        if response.status_code != HTTPStatus.OK:
            raise UnexpectedStatusError(_SYSTEM, f"ticket #{number}", response.status_code)
        return parse_ticket(response.json()["issue"])

    def download_attachment(self, content_url: str) -> bytes:
        """Download the raw bytes of an attachment by its absolute content URL."""
        try:
            response = self.session.get(content_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise UnexpectedStatusError(_SYSTEM, f"attachment {content_url} (request failed: {e})", None) from e
        if response.status_code != HTTPStatus.OK:
            raise UnexpectedStatusError(_SYSTEM, f"attachment {content_url}", response.status_code)
        return response.content


def get_client(config: RedmineConfig) -> RedmineClient:
    """Get a Redmine client authenticating with HTTP basic auth."""
    session = requests.Session()
    session.auth = (config.username, config.password)
    return RedmineClient(config.base_uri, session, timeout=config.timeout)
