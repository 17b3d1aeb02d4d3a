"""
Redmine to GitLab Migration Tool

Migrates Redmine tickets into a GitLab project, preserving ticket numbers as
issue numbers, together with comments, attachments, labels, assignees and
milestones.
"""

from __future__ import annotations

from .cli import main
from .config import MigrationConfig, load_config
from .exceptions import (
    ConfigurationError,
    MigrationError,
    MissingMilestoneError,
    NumberVerificationError,
    UnexpectedStatusError,
)
from .migrator import MigrationStats, RedmineToGitlabMigrator
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "MigrationConfig",
    "MigrationError",
    "MigrationStats",
    "MissingMilestoneError",
    "NumberVerificationError",
    "RedmineToGitlabMigrator",
    "UnexpectedStatusError",
    "load_config",
    "main",
    "setup_logging",
]
