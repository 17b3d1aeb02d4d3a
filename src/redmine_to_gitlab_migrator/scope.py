"""Determine what a migration run covers: ticket numbers, projects and closing statuses."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .redmine_utils import RedmineClient

logger: logging.Logger = logging.getLogger(__name__)


def resolve_ticket_range(redmine: RedmineClient, first_ticket_number: int = 1) -> range:
    """Return the ticket numbers from first_ticket_number up to the most recent Redmine ticket.

    The range is empty when first_ticket_number exceeds the most recent ticket
    number, in which case there is nothing to do.
    """
    most_recent = redmine.get_most_recent_ticket_number()
    if first_ticket_number > most_recent:
        logger.info(
            f"First ticket number of {first_ticket_number} is greater than the most recent ticket "
            f"number in Redmine ({most_recent}). So, there is nothing to do."
        )
        return range(0)
    return range(first_ticket_number, most_recent + 1)


def select_project_ids(redmine: RedmineClient, configured: Iterable[int] | None = None) -> frozenset[int]:
    """Return the configured project ids, or all Redmine project ids if none are configured."""
    project_ids = frozenset(configured or ())
    if project_ids:
        return project_ids

    # No projects specified: import versions and tickets of all projects
    project_ids = frozenset(redmine.iter_project_ids())
    logger.info(f"Selected all {len(project_ids)} Redmine projects")
    return project_ids


def get_closed_status_names(redmine: RedmineClient) -> frozenset[str]:
    """Return the names of Redmine statuses that close a ticket."""
    closed = frozenset(status["name"] for status in redmine.get_issue_statuses() if status.get("is_closed"))
    logger.debug(f"Closing statuses: {sorted(closed)}")
    return closed
