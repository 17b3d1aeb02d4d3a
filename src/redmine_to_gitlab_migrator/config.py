"""
Configuration file loading and validation.

The configuration is a JSON document validated against a JSON schema before
any network activity happens. Validation failures are collected per field and
raised together as a ConfigurationError.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urlparse

from jsonschema import Draft7Validator

from .exceptions import ConfigurationError
from .models import LabelMapping

if TYPE_CHECKING:
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "GITLAB_TOKEN"  # noqa: S105
DEFAULT_TIMEOUT: Final[float] = 30.0

_LABEL_TABLE: Final[dict[str, Any]] = {
    "type": "object",
    "additionalProperties": {"type": "array", "items": {"type": "string"}},
}

CONFIG_SCHEMA: Final[dict[str, Any]] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["redmine", "git-lab"],
    "properties": {
        "redmine": {
            "type": "object",
            "required": ["base-uri", "username", "password"],
            "properties": {
                "base-uri": {"type": "string", "minLength": 1},
                "username": {"type": "string"},
                "password": {"type": "string"},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
        "git-lab": {
            "type": "object",
            "required": ["base-uri", "project"],
            "properties": {
                "base-uri": {"type": "string", "minLength": 1},
                "private-token": {"type": "string", "minLength": 1},
                "project": {"type": ["string", "integer"]},
                "labels-mapping": {
                    "type": "object",
                    "properties": {
                        "tracker": _LABEL_TABLE,
                        "status": _LABEL_TABLE,
                        "priority": _LABEL_TABLE,
                        "custom-field": {"type": "object", "additionalProperties": _LABEL_TABLE},
                    },
                    "additionalProperties": False,
                },
                "users-mapping": {
                    "type": "object",
                    "propertyNames": {"pattern": "^[0-9]+$"},
                    "additionalProperties": {"type": ["integer", "string"], "pattern": "^[0-9]+$"},
                },
            },
            "additionalProperties": False,
        },
    },
}


@dataclass(frozen=True)
class RedmineConfig:
    base_uri: str
    username: str
    password: str
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class GitLabConfig:
    base_uri: str
    private_token: str
    project: str | int
    labels_mapping: LabelMapping = field(default_factory=LabelMapping)
    users_mapping: Mapping[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MigrationConfig:
    redmine: RedmineConfig
    gitlab: GitLabConfig


def _is_valid_base_uri(uri: str) -> bool:
    parsed = urlparse(uri)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _format_path(path: Any) -> str:  # noqa: ANN401 - jsonschema deque of keys and indices
    return "/" + "/".join(str(part) for part in path)


def validate_config_data(data: Any) -> list[str]:  # noqa: ANN401 - arbitrary decoded JSON
    """Validate decoded configuration data, returning field level diagnostics."""
    validator = Draft7Validator(CONFIG_SCHEMA)
    errors = [
        f"In {_format_path(error.absolute_path)}: {error.message}"
        for error in sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
    ]
    if errors:
        return errors

    for section, name in (("redmine", "Redmine"), ("git-lab", "GitLab")):
        uri = data[section]["base-uri"]
        if not _is_valid_base_uri(uri):
            errors.append(f"In /{section}/base-uri: The specified {name} base URI '{uri}' is not valid")
    return errors


def _labels(table: Mapping[str, list[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({key: tuple(labels) for key, labels in table.items()})


def _parse_labels_mapping(data: Mapping[str, Any]) -> LabelMapping:
    return LabelMapping(
        tracker=_labels(data.get("tracker", {})),
        status=_labels(data.get("status", {})),
        priority=_labels(data.get("priority", {})),
        custom_field=MappingProxyType(
            {name: _labels(values) for name, values in data.get("custom-field", {}).items()}
        ),
    )


def parse_config(data: Mapping[str, Any]) -> MigrationConfig:
    """Build a typed configuration from already validated data.

    Raises:
        ConfigurationError: If no GitLab token is configured nor found in GITLAB_TOKEN
    """
    redmine_data = data["redmine"]
    gitlab_data = data["git-lab"]

    token: str | None = gitlab_data.get("private-token") or os.environ.get(_TOKEN_ENV_VAR)
    if not token:
        msg = "No GitLab private token configured"
        raise ConfigurationError(
            msg, [f"In /git-lab: 'private-token' is required unless {_TOKEN_ENV_VAR} is set"]
        )

    return MigrationConfig(
        redmine=RedmineConfig(
            base_uri=redmine_data["base-uri"].rstrip("/"),
            username=redmine_data["username"],
            password=redmine_data["password"],
            timeout=float(redmine_data.get("timeout", DEFAULT_TIMEOUT)),
        ),
        gitlab=GitLabConfig(
            base_uri=gitlab_data["base-uri"].rstrip("/"),
            private_token=token,
            project=gitlab_data["project"],
            labels_mapping=_parse_labels_mapping(gitlab_data.get("labels-mapping", {})),
            users_mapping=MappingProxyType(
                {int(source): int(target) for source, target in gitlab_data.get("users-mapping", {}).items()}
            ),
        ),
    )


def load_config(path: str | Path) -> MigrationConfig:
    """Load, validate and parse the configuration file at path.

    Raises:
        ConfigurationError: If the file cannot be read, is not JSON or does not conform to the schema
    """
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as e:
        msg = f"Cannot read configuration file '{config_path}'"
        raise ConfigurationError(msg, [str(e)]) from e
    except json.JSONDecodeError as e:
        msg = f"The configuration file '{config_path}' is not valid JSON"
        raise ConfigurationError(msg, [f"Line {e.lineno}, column {e.colno}: {e.msg}"]) from e

    errors = validate_config_data(data)
    if errors:
        msg = f"The configuration file '{config_path}' does not conform to the JSON schema"
        raise ConfigurationError(msg, errors)

    config = parse_config(data)
    logger.debug(f"Loaded configuration from {config_path}")
    return config
