"""Attachment migration between Redmine and GitLab."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from . import gitlab_utils as glu

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gitlab.v4.objects import Project as GitlabProject

    from .models import SourceTicket
    from .redmine_utils import RedmineClient

logger: logging.Logger = logging.getLogger(__name__)


def reference_variants(filename: str) -> tuple[str, str]:
    """Inline references to an attachment as they appear in Redmine text.

    Images inserted by authors usually use the first variant, automated
    Redmine comments the second one.
    """
    return f"![]({filename})", f"![{filename}]({filename})"


def apply_replacements(text: str, replacements: Mapping[str, str]) -> str:
    """Replace all occurrences of the keys in text in a single pass.

    Longer keys win over shorter ones at the same position and replaced text
    is never scanned again.
    """
    if not text or not replacements:
        return text

    pattern = re.compile("|".join(re.escape(key) for key in sorted(replacements, key=len, reverse=True)))
    return pattern.sub(lambda match: replacements[match.group(0)], text)


class AttachmentHandler:
    """Downloads ticket attachments from Redmine and uploads them to the GitLab project."""

    _redmine: RedmineClient
    _gitlab_project: GitlabProject
    _uploaded_files_count: int

    def __init__(self, redmine: RedmineClient, gitlab_project: GitlabProject) -> None:
        self._redmine = redmine
        self._gitlab_project = gitlab_project
        self._uploaded_files_count = 0

    @property
    def uploaded_files_count(self) -> int:
        """Number of files uploaded to GitLab by this handler."""
        return self._uploaded_files_count

    def upload_ticket_attachments(self, ticket: SourceTicket) -> dict[str, str]:
        """Upload every attachment of a ticket, in order.

        Uploads are not deduplicated: migrating a ticket again uploads its
        attachments again.

        Returns:
            Replacements from inline attachment references to GitLab markdown

        Raises:
            UnexpectedStatusError: If a download or upload fails
        """
        replacements: dict[str, str] = {}

        for attachment in ticket.attachments:
            logger.info(f"Uploading attachment '{attachment.filename}'")
            content = self._redmine.download_attachment(attachment.content_url)

            with glu.abort_on_error(f"upload of '{attachment.filename}' of ticket #{ticket.id}"):
                markdown = glu.upload_file(self._gitlab_project, attachment.filename, content)

            self._uploaded_files_count += 1
            for variant in reference_variants(attachment.filename):
                replacements[variant] = markdown
            logger.debug(f"Uploaded {attachment.filename}: {markdown}")

        return replacements
