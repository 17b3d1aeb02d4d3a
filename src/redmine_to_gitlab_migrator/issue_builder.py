"""Build GitLab issue payloads and comment bodies from Redmine ticket data."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final

from .attachments import apply_replacements
from .models import DUMMY_ISSUE_LABEL, DUMMY_ISSUE_TITLE, IssuePayload, TicketVariant

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import Journal, Relation, SourceTicket

logger: logging.Logger = logging.getLogger(__name__)

# Automated comments of the Redmine VCS integration (Git only)
COMMIT_MARKER: Final[str] = "commit:"
COMMIT_HASH_PATTERN: Final[re.Pattern[str]] = re.compile(r"commit:.*\|([0-9a-f]{40})")

_DUMMY_REASONS: Final[dict[TicketVariant, str]] = {
    TicketVariant.DUMMY_NOT_FOUND: "Original ticket does not exist in Redmine.",
    TicketVariant.DUMMY_EXCLUDED: "The Redmine project the ticket belongs to was excluded from import.",
}


def build_dummy_payload(number: int, variant: TicketVariant) -> IssuePayload:
    """Build the confidential, closed placeholder that keeps ticket numbering intact."""
    return IssuePayload(
        number=number,
        title=DUMMY_ISSUE_TITLE,
        description=f"Created by Redmine import to retain Redmine ticket numbers in GitLab. {_DUMMY_REASONS[variant]}",
        confidential=True,
        labels=[DUMMY_ISSUE_LABEL],
        closed=True,
    )


def build_issue_description(ticket: SourceTicket, replacements: Mapping[str, str]) -> str:
    """Build the issue description with author attribution and GitLab attachment references."""
    return f"__Created/reported by: {ticket.author}__\n\n" + apply_replacements(ticket.description, replacements)


def extract_commit_hash(notes: str) -> str | None:
    """Extract the commit hash of an automated VCS integration comment.

    This is a best-effort match against one comment template; notes that do
    not follow it are returned as None.
    """
    if COMMIT_MARKER not in notes:
        return None
    match = COMMIT_HASH_PATTERN.search(notes)
    return match.group(1) if match else None


def build_journal_comment(journal: Journal, replacements: Mapping[str, str]) -> str | None:
    """Build the comment body for a journal entry, or None if it has no notes."""
    if not journal.notes:
        return None

    commit_hash = extract_commit_hash(journal.notes)
    if commit_hash is not None:
        logger.info(f"Extracted commit hash '{commit_hash}' from ticket comment")
        body = commit_hash
    else:
        body = apply_replacements(journal.notes, replacements)
    return f"__By {journal.author}__: {body}"


def build_relation_comment(relation: Relation) -> str:
    """Describe a relation as plain text; GitLab gets no structural relation."""
    return f"#{relation.issue_id} {relation.relation_type} #{relation.issue_to_id}"
