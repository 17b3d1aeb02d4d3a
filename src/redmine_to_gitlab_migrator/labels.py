"""
Mapping of Redmine ticket metadata to GitLab labels and assignees.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import LabelCategory

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import LabelMapping, SourceTicket

logger: logging.Logger = logging.getLogger(__name__)


def resolve_labels(ticket: SourceTicket, mapping: LabelMapping) -> list[str]:
    """Collect the labels configured for a ticket's tracker, status, priority and custom field values.

    Lookups are independent and their results are concatenated in that order,
    without removing duplicates. Unmapped values contribute nothing.
    """
    labels: list[str] = []
    labels.extend(mapping.lookup(LabelCategory.TRACKER, ticket.tracker))
    labels.extend(mapping.lookup(LabelCategory.STATUS, ticket.status))
    labels.extend(mapping.lookup(LabelCategory.PRIORITY, ticket.priority))

    for custom_field in ticket.custom_fields:
        for value in custom_field.values:
            labels.extend(mapping.lookup(LabelCategory.CUSTOM_FIELD, custom_field.name, value))

    return labels


def resolve_assignee_ids(ticket: SourceTicket, users_mapping: Mapping[int, int]) -> list[int]:
    """Return the GitLab assignee for a ticket, or nobody if it is unassigned or the user is unmapped."""
    if ticket.assignee_id is None:
        return []

    gitlab_user_id = users_mapping.get(ticket.assignee_id)
    if gitlab_user_id is None:
        logger.debug(f"Redmine user {ticket.assignee_id} is not mapped, ticket #{ticket.id} stays unassigned")
        return []
    return [gitlab_user_id]
