"""
Synchronization of Redmine versions with GitLab milestones.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, NamedTuple

from . import gitlab_utils as glu

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from gitlab.v4.objects import Project as GitlabProject

    from .models import SourceVersion
    from .redmine_utils import RedmineClient

logger: logging.Logger = logging.getLogger(__name__)


class MilestoneSyncResult(NamedTuple):
    """Result of milestone synchronization."""

    milestone_ids: Mapping[str, int]
    """Milestone title -> GitLab milestone id, as listed after synchronization."""
    created_titles: tuple[str, ...]
    """Titles of milestones created during this run, in creation order."""


def _milestone_request(version: SourceVersion) -> dict[str, Any]:
    data: dict[str, Any] = {"title": version.name}
    if version.due_date is not None:
        data["due_date"] = version.due_date
    return data


def _fetch_milestones(gitlab_project: GitlabProject) -> list[Any]:
    with glu.abort_on_error("the milestone list"):
        return glu.list_milestones(gitlab_project)


def sync_milestones(
    redmine: RedmineClient,
    gitlab_project: GitlabProject,
    project_ids: Iterable[int],
) -> MilestoneSyncResult:
    """Create a GitLab milestone for every Redmine version that has none yet.

    Existing milestones are matched by exact title against the first page of
    GitLab milestones. Versions shared between a project and its sub-projects
    are created once.

    Args:
        redmine: Client for the Redmine instance
        gitlab_project: The GitLab project receiving the milestones
        project_ids: Redmine projects whose versions are synchronized

    Returns:
        MilestoneSyncResult with the title -> id lookup and the created titles

    Raises:
        UnexpectedStatusError: If listing or creating milestones fails
    """
    print("Fetching Redmine versions and comparing with GitLab milestones...")

    existing_titles = frozenset(milestone.title for milestone in _fetch_milestones(gitlab_project))
    created_titles: list[str] = []

    for project_id in sorted(project_ids):
        for version in redmine.get_versions(project_id):
            if version.name in existing_titles or version.name in created_titles:
                logger.info(
                    f"Skipped import of version '{version.name}' as an identical GitLab milestone already exists"
                )
                continue

            with glu.abort_on_error(f"milestone '{version.name}'"):
                gitlab_project.milestones.create(_milestone_request(version))

            # Record right away, sub-projects share versions with their parent
            created_titles.append(version.name)
            logger.info(f"Successfully imported milestone '{version.name}'")

    # Re-fetch to learn the ids of the milestones created above
    milestone_ids = MappingProxyType(
        {milestone.title: milestone.id for milestone in _fetch_milestones(gitlab_project)}
    )
    print(f"Created {len(created_titles)} milestones")

    return MilestoneSyncResult(milestone_ids=milestone_ids, created_titles=tuple(created_titles))
