"""Load target definitions from a JSON file.

The file holds a list of objects, for example::

    [
        {"project": "ACME", "client": "Acme", "labels": ["from-core"], "affects_versions": ["2.4"]},
        {"project": "OPS", "naming": "strip", "components": ["Backend"], "link_type": "Relates"}
    ]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .exceptions import ConfigError
from .models import TargetSpec

logger: logging.Logger = logging.getLogger(__name__)

_NAMING_POLICIES = ("prefix", "strip")


def _string_tuple(raw: dict[str, Any], key: str, project: str) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return tuple(value)
    msg = f"Target {project}: '{key}' must be a string or a list of strings"
    raise ConfigError(msg)


def parse_target(raw: Any) -> TargetSpec:  # noqa: ANN401 - decoded JSON
    """Build a TargetSpec from one entry of the targets file.

    Raises:
        ConfigError: If the entry is invalid
    """
    if not isinstance(raw, dict):
        msg = f"Target definition must be an object, got {type(raw).__name__}"
        raise ConfigError(msg)

    project = raw.get("project")
    if not isinstance(project, str) or not project.strip():
        msg = f"Target definition without project: {raw}"
        raise ConfigError(msg)
    project = project.strip()

    naming = raw.get("naming", "prefix")
    if naming not in _NAMING_POLICIES:
        msg = f"Target {project}: naming must be one of {', '.join(_NAMING_POLICIES)}, got {naming!r}"
        raise ConfigError(msg)

    client = raw.get("client")
    if client is not None and not isinstance(client, str):
        client = _string_tuple(raw, "client", project)

    link_type = raw.get("link_type")
    if link_type is not None and not isinstance(link_type, str):
        msg = f"Target {project}: link_type must be a string"
        raise ConfigError(msg)

    return TargetSpec(
        project=project,
        naming=naming,
        client=client,
        labels=_string_tuple(raw, "labels", project),
        components=_string_tuple(raw, "components", project),
        affects_versions=_string_tuple(raw, "affects_versions", project),
        link_type=link_type or None,
    )


def load_targets(path: str | Path) -> list[TargetSpec]:
    """Read every target definition from a JSON file, keeping their order.

    Raises:
        ConfigError: If the file cannot be read or holds an invalid definition
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        msg = f"Cannot read targets file {path}: {e}"
        raise ConfigError(msg) from e
    except json.JSONDecodeError as e:
        msg = f"Targets file {path} is not valid JSON: {e}"
        raise ConfigError(msg) from e

    if not isinstance(data, list):
        msg = f"Targets file {path} must contain a list of targets"
        raise ConfigError(msg)

    targets = [parse_target(entry) for entry in data]
    if not targets:
        msg = f"Targets file {path} defines no targets"
        raise ConfigError(msg)
    logger.debug(f"Loaded {len(targets)} target(s) from {path}")
    return targets
