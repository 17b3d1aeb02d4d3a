"""
Custom exception classes for the Redmine to GitLab migration tool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised when the configuration file is malformed or does not validate.

    Carries one diagnostic per offending field so the CLI can report all of
    them at once.
    """

    errors: list[str]

    def __init__(self, msg: str, errors: Sequence[str] = ()) -> None:
        super().__init__(msg)
        self.errors = list(errors)


class UnexpectedStatusError(MigrationError):
    """Raised when Redmine or GitLab answers with a status the migration cannot handle."""

    system: str
    context: str
    status_code: int | None

    def __init__(self, system: str, context: str, status_code: int | None) -> None:
        self.system = system
        self.context = context
        self.status_code = status_code
        super().__init__(f"Unexpected status code received from {system} for {context}: {status_code}. Aborting.")


class MissingMilestoneError(MigrationError):
    """Raised when a ticket's fixed version has no synchronized GitLab milestone."""

    title: str
    ticket_number: int

    def __init__(self, title: str, ticket_number: int) -> None:
        self.title = title
        self.ticket_number = ticket_number
        super().__init__(f"No GitLab milestone found for version '{title}' of ticket #{ticket_number}")


class NumberVerificationError(MigrationError):
    """Raised when a created GitLab issue does not get the Redmine ticket number."""
