"""Accelerator properties loader.

This module handles loading accelerator.properties:
- read_properties: Parse Java-properties style text into a dict
- load_accelerator_properties: Load and validate the accelerator switches

Loading fails closed: an unreadable or malformed properties source yields
disabled properties, so the workspace behaves as a plain source build.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from buildaccel_core.schemas.properties import (
    DEFAULT_CLASSIFICATION_KEY,
    ENABLE_KEY,
    SKIP_PARENTS_KEY,
    WORKSPACE_KEY,
    AcceleratorProperties,
)

logger = logging.getLogger(__name__)

# Standard properties file name, looked up next to workspace.yaml
PROPERTIES_FILE_NAME = "accelerator.properties"

_TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "off", "0", ""})


class PropertiesFormatError(ValueError):
    """Raised when a properties value cannot be interpreted."""

    pass


def read_properties(text: str) -> dict[str, str]:
    """Parse Java-properties style text.

    Supports "key=value" and "key: value" lines, "#" and "!" comments,
    and backslash line continuations. Later keys override earlier ones.

    Args:
        text: Properties file content.

    Returns:
        Mapping of keys to raw string values.

    Example:
        >>> read_properties("buildingAccelerator.enable=true")
        {'buildingAccelerator.enable': 'true'}
    """
    properties: dict[str, str] = {}
    pending = ""

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not pending and (not line or line[0] in "#!"):
            continue

        if line.endswith("\\"):
            pending += line[:-1]
            continue
        _put_entry(properties, pending + line)
        pending = ""

    if pending:
        _put_entry(properties, pending)

    return properties


def _put_entry(properties: dict[str, str], line: str) -> None:
    """Split one logical line at its first "=" or ":" and store it."""
    separators = [i for i in (line.find("="), line.find(":")) if i >= 0]
    if not separators:
        properties[line] = ""
        return

    index = min(separators)
    properties[line[:index].strip()] = line[index + 1 :].strip()


def parse_bool(value: str, key: str) -> bool:
    """Interpret a properties boolean.

    Raises:
        PropertiesFormatError: If the value is not a recognizable boolean.
    """
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise PropertiesFormatError(f"{key}: expected a boolean, got '{value}'")


def parse_path_list(value: str) -> tuple[str, ...]:
    """Split a comma-separated module path list, dropping blanks and duplicates."""
    paths: list[str] = []
    for item in value.split(","):
        path = item.strip()
        if path and path not in paths:
            paths.append(path)
    return tuple(paths)


def properties_from_mapping(
    values: dict[str, str],
    source: str | None = None,
) -> AcceleratorProperties:
    """Build AcceleratorProperties from raw property values.

    Args:
        values: Raw key/value pairs.
        source: Where the values came from, for diagnostics.

    Returns:
        Validated AcceleratorProperties.

    Raises:
        PropertiesFormatError: If a value cannot be interpreted.
        pydantic.ValidationError: If a value fails validation.
    """
    enabled = parse_bool(values.get(ENABLE_KEY, "false"), ENABLE_KEY)

    workspace: tuple[str, ...] | None = None
    if WORKSPACE_KEY in values:
        workspace = parse_path_list(values[WORKSPACE_KEY])

    skip_parents = parse_path_list(values.get(SKIP_PARENTS_KEY, ""))

    policy = values.get(DEFAULT_CLASSIFICATION_KEY, "stable").strip().lower() or "stable"

    return AcceleratorProperties(
        enabled=enabled,
        workspace=workspace,
        skip_parents=skip_parents,
        default_classification=policy,  # type: ignore[arg-type]
        source=source,
    )


def load_accelerator_properties(path: Path | str) -> AcceleratorProperties:
    """Load accelerator properties, failing closed.

    Args:
        path: Path to accelerator.properties.

    Returns:
        Validated properties, or disabled properties if the file is missing,
        unreadable or malformed.

    Example:
        >>> props = load_accelerator_properties(Path("accelerator.properties"))
        >>> props.enabled
        True
    """
    path = Path(path)
    source = str(path)

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning(
            "Accelerator properties unreadable at %s (%s); accelerator disabled",
            path,
            e.__class__.__name__,
        )
        return AcceleratorProperties.disabled(source=source)

    try:
        properties = properties_from_mapping(read_properties(text), source=source)
    except (PropertiesFormatError, ValidationError) as e:
        logger.warning("Malformed accelerator properties in %s: %s; accelerator disabled", path, e)
        return AcceleratorProperties.disabled(source=source)

    logger.info(
        "Loaded accelerator properties from %s (enabled=%s, workspace=%s)",
        path,
        properties.enabled,
        ",".join(properties.workspace) if properties.workspace is not None else "<unset>",
    )
    return properties
