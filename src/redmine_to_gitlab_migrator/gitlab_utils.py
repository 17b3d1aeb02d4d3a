from __future__ import annotations

import logging
from contextlib import contextmanager
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Final

from gitlab import Gitlab
from gitlab.exceptions import GitlabError, GitlabGetError

from .exceptions import UnexpectedStatusError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from gitlab.v4.objects import Project as GitlabProject
    from gitlab.v4.objects import ProjectIssue

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

SYSTEM: Final[str] = "GitLab"
MILESTONES_PAGE_SIZE: Final[int] = 100


def get_client(base_uri: str, token: str) -> Gitlab:
    """Get a GitLab client using the token."""
    return Gitlab(base_uri, private_token=token)


def get_project(client: Gitlab, project: str | int) -> GitlabProject:
    """Get the target project without fetching it; all calls go through its id or path."""
    return client.projects.get(project, lazy=True)


def get_issue(project: GitlabProject, number: int) -> ProjectIssue | None:
    """Fetch an issue by its number (iid).

    Returns:
        The issue, or None if GitLab answers 404

    Raises:
        UnexpectedStatusError: For any other failing status
    """
    try:
        return project.issues.get(number)
    except GitlabGetError as e:
        if e.response_code == HTTPStatus.NOT_FOUND:
            return None
        raise UnexpectedStatusError(SYSTEM, f"issue #{number}", e.response_code) from e


def list_milestones(project: GitlabProject) -> list[Any]:
    """List the first page of project milestones.

    Only the first page is ever read, milestones beyond it are not considered.
    """
    return project.milestones.list(per_page=MILESTONES_PAGE_SIZE, page=1)


def upload_file(project: GitlabProject, filename: str, content: bytes) -> str:
    """Upload a file to the project and return its embeddable markdown reference."""
    result: dict[str, Any] = project.upload(filename, filedata=content)
    return result["markdown"]


@contextmanager
def abort_on_error(context: str) -> Iterator[None]:
    """Turn any python-gitlab error raised inside the block into an UnexpectedStatusError."""
    try:
        yield
    except GitlabError as e:
        raise UnexpectedStatusError(SYSTEM, context, e.response_code) from e
