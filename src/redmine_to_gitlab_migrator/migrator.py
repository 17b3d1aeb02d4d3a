"""
Main migration class for Redmine to GitLab migration.

Tickets are migrated one number at a time, from the first requested number up
to the most recent Redmine ticket. Every number ends up as a GitLab issue with
the same number: either the migrated ticket or a confidential, closed dummy
issue when the ticket does not exist or belongs to an excluded project.

Existing GitLab issues are overwritten, so a rerun converges title,
description, labels, milestone, assignee, confidentiality and state. Comments
and attachment uploads are appended on every run.

Per ticket the order is: upsert the issue, post journal comments, post
relation comments, then close. GitLab may reject comments on closed issues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from . import gitlab_utils as glu
from . import redmine_utils as rmu
from .attachments import AttachmentHandler
from .exceptions import MissingMilestoneError, NumberVerificationError
from .issue_builder import (
    build_dummy_payload,
    build_issue_description,
    build_journal_comment,
    build_relation_comment,
)
from .labels import resolve_assignee_ids, resolve_labels
from .milestones import sync_milestones
from .models import IssuePayload, SourceTicket, TicketVariant
from .scope import get_closed_status_names, resolve_ticket_range, select_project_ids

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    import gitlab
    from gitlab.v4.objects import Project as GitlabProject
    from gitlab.v4.objects import ProjectIssue

    from .config import MigrationConfig
    from .models import LabelMapping

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics collected during migration."""

    tickets_processed: int = 0
    real_issues: int = 0
    dummy_issues: int = 0
    issues_created: int = 0
    issues_updated: int = 0
    issues_closed: int = 0
    comments_created: int = 0
    attachments_uploaded: int = 0
    milestones_created: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MigrationLookups:
    """Read-only lookups prepared once before the ticket loop."""

    project_ids: frozenset[int]
    closed_status_names: frozenset[str]
    milestone_ids: Mapping[str, int]
    created_milestones: tuple[str, ...] = ()


def select_variant(ticket: SourceTicket | None, project_ids: frozenset[int]) -> TicketVariant:
    """Decide whether a ticket number becomes a real issue or a dummy issue."""
    if ticket is None:
        return TicketVariant.DUMMY_NOT_FOUND
    if ticket.project_id not in project_ids:
        return TicketVariant.DUMMY_EXCLUDED
    return TicketVariant.REAL


class RedmineToGitlabMigrator:
    """Main migration class."""

    def __init__(
        self,
        config: MigrationConfig,
        *,
        project_ids: Iterable[int] | None = None,
    ) -> None:
        self.configured_project_ids: frozenset[int] = frozenset(project_ids or ())
        self.labels_mapping: LabelMapping = config.gitlab.labels_mapping
        self.users_mapping: Mapping[int, int] = config.gitlab.users_mapping

        self.redmine: rmu.RedmineClient = rmu.get_client(config.redmine)
        self.gitlab_client: gitlab.Gitlab = glu.get_client(config.gitlab.base_uri, config.gitlab.private_token)
        self.gitlab_project: GitlabProject = glu.get_project(self.gitlab_client, config.gitlab.project)

        logger.info(f"Initialized migrator for {config.redmine.base_uri} -> {config.gitlab.base_uri}")

    def resolve_ticket_range(self, first_ticket_number: int = 1) -> range:
        """Return the ticket numbers to migrate, empty if there is nothing to do."""
        return resolve_ticket_range(self.redmine, first_ticket_number)

    def prepare(self) -> MigrationLookups:
        """Select projects, synchronize milestones and collect closing statuses."""
        project_ids = select_project_ids(self.redmine, self.configured_project_ids)
        milestones = sync_milestones(self.redmine, self.gitlab_project, project_ids)
        return MigrationLookups(
            project_ids=project_ids,
            closed_status_names=get_closed_status_names(self.redmine),
            milestone_ids=milestones.milestone_ids,
            created_milestones=milestones.created_titles,
        )

    def migrate(self, ticket_range: range) -> MigrationStats:
        """Migrate all tickets of the range.

        Returns:
            MigrationStats of this run; nothing is written for an empty range

        Raises:
            UnexpectedStatusError: If Redmine or GitLab answers unexpectedly
            MissingMilestoneError: If a ticket's version has no GitLab milestone
            NumberVerificationError: If GitLab assigns a different issue number
        """
        stats = MigrationStats()
        if not ticket_range:
            return stats

        lookups = self.prepare()
        stats.milestones_created.extend(lookups.created_milestones)
        attachment_handler = AttachmentHandler(self.redmine, self.gitlab_project)

        print(f"Importing tickets #{ticket_range.start} to #{ticket_range.stop - 1}...")
        for number in ticket_range:
            self.migrate_ticket(number, lookups, attachment_handler, stats)

        stats.attachments_uploaded = attachment_handler.uploaded_files_count
        return stats

    def migrate_ticket(
        self,
        number: int,
        lookups: MigrationLookups,
        attachment_handler: AttachmentHandler,
        stats: MigrationStats,
    ) -> None:
        """Create or overwrite the GitLab issue for one ticket number."""
        logger.info(f"Collecting data for Redmine ticket #{number}")

        ticket = self.redmine.get_ticket(number)
        existing_issue = glu.get_issue(self.gitlab_project, number)
        variant = select_variant(ticket, lookups.project_ids)

        if ticket is None or variant.is_dummy:
            if variant is TicketVariant.DUMMY_NOT_FOUND:
                logger.info(f"Skipped import of ticket #{number} as it does not exist in Redmine")
            else:
                logger.info(f"Skipped import of ticket #{number} as its Redmine project is excluded")
            logger.info("A (confidential) dummy issue will be created instead")
            payload = build_dummy_payload(number, variant)
            self._upsert_issue(payload, existing_issue, stats)
            stats.dummy_issues += 1
        else:
            payload, replacements = self._build_issue_payload(ticket, lookups, attachment_handler)
            reopen = existing_issue is not None and existing_issue.state == "closed"
            issue = self._upsert_issue(payload, existing_issue, stats, reopen=reopen)
            self._migrate_comments(ticket, issue, replacements, stats)
            stats.real_issues += 1

        if payload.closed:
            with glu.abort_on_error(f"closing issue #{number}"):
                self.gitlab_project.issues.update(number, {"state_event": "close"})
            stats.issues_closed += 1

        stats.tickets_processed += 1
        logger.info(f"Successfully imported ticket #{number} into GitLab")

    def _build_issue_payload(
        self,
        ticket: SourceTicket,
        lookups: MigrationLookups,
        attachment_handler: AttachmentHandler,
    ) -> tuple[IssuePayload, dict[str, str]]:
        """Build the payload of a real issue, uploading the ticket's attachments on the way."""
        milestone_id: int | None = None
        if ticket.fixed_version is not None:
            milestone_id = lookups.milestone_ids.get(ticket.fixed_version)
            if milestone_id is None:
                raise MissingMilestoneError(ticket.fixed_version, ticket.id)

        labels = resolve_labels(ticket, self.labels_mapping)
        assignee_ids = resolve_assignee_ids(ticket, self.users_mapping)

        replacements = attachment_handler.upload_ticket_attachments(ticket)

        payload = IssuePayload(
            number=ticket.id,
            title=ticket.subject,
            description=build_issue_description(ticket, replacements),
            confidential=ticket.is_private,
            labels=labels,
            assignee_ids=assignee_ids,
            milestone_id=milestone_id,
            closed=ticket.status in lookups.closed_status_names,
        )
        return payload, replacements

    def _upsert_issue(
        self,
        payload: IssuePayload,
        existing_issue: ProjectIssue | None,
        stats: MigrationStats,
        *,
        reopen: bool = False,
    ) -> ProjectIssue:
        """Overwrite the existing issue with the payload, or create it."""
        number = payload.number

        if existing_issue is not None:
            logger.info("Updating existing GitLab issue")
            data = payload.to_update_data()
            if reopen:
                # Comments follow, GitLab may reject them on closed issues
                data["state_event"] = "reopen"
            with glu.abort_on_error(f"issue #{number}"):
                self.gitlab_project.issues.update(number, data)
            stats.issues_updated += 1
            return existing_issue

        logger.info("Creating new GitLab issue")
        with glu.abort_on_error(f"issue #{number}"):
            issue = self.gitlab_project.issues.create(payload.to_create_data())

        if issue.iid != number:
            msg = f"Issue number mismatch: expected {number}, got {issue.iid}"
            raise NumberVerificationError(msg)

        stats.issues_created += 1
        return issue

    def _migrate_comments(
        self,
        ticket: SourceTicket,
        issue: ProjectIssue,
        replacements: Mapping[str, str],
        stats: MigrationStats,
    ) -> None:
        """Post journal notes, then relations, as comments on the issue."""
        # Private notes are not filtered, every journal becomes a public comment
        for journal in ticket.journals:
            body = build_journal_comment(journal, replacements)
            if body is None:
                continue
            with glu.abort_on_error(f"comment on issue #{ticket.id}"):
                issue.notes.create({"body": body})
            stats.comments_created += 1

        for relation in ticket.relations:
            with glu.abort_on_error(f"relation comment on issue #{ticket.id}"):
                issue.notes.create({"body": build_relation_comment(relation)})
            stats.comments_created += 1
