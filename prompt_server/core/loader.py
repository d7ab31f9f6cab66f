"""Definition Loader — finds and parses prompt documents under a root directory."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from prompt_server.core.errors import InvalidPromptError, PromptLoadError
from prompt_server.core.models import PromptDefinition

logger = structlog.get_logger()

SUPPORTED_EXTENSIONS = (".json", ".yaml", ".yml")


def is_prompt_file(name: str) -> bool:
    return name.lower().endswith(SUPPORTED_EXTENSIONS)


def parse_definition(raw: str, suffix: str) -> PromptDefinition:
    """Parse raw JSON or YAML text into a PromptDefinition.

    ``suffix`` picks the parser: ``.json`` uses json, anything else YAML.
    Raises InvalidPromptError with a readable reason on any failure.
    """
    try:
        if suffix.lower() == ".json":
            data: Any = json.loads(raw)
        else:
            data = yaml.safe_load(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidPromptError(f"Failed to parse document: {e}") from e

    if not isinstance(data, dict):
        raise InvalidPromptError("Prompt document must be a mapping")

    name = data.get("name")
    if isinstance(name, (int, float)) and not isinstance(name, bool):
        name = data["name"] = str(name)
    if not isinstance(name, str) or not name.strip():
        raise InvalidPromptError("Prompt name is missing")

    try:
        return PromptDefinition.model_validate(data)
    except ValidationError as e:
        raise InvalidPromptError(f"Invalid prompt '{name}': {e}") from e


def load_from_file(path: Path) -> PromptDefinition | None:
    """Load a single prompt file. Returns None (and logs) on any failure."""
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("loader.file_skipped", path=str(path), reason=str(e))
        return None

    try:
        definition = parse_definition(raw, path.suffix)
    except InvalidPromptError as e:
        logger.error("loader.file_skipped", path=str(path), reason=e.message)
        return None

    logger.debug("loader.file_loaded", path=str(path), name=definition.name)
    return definition


def load_all(root_dir: str | Path) -> list[PromptDefinition]:
    """Recursively load every prompt document under ``root_dir``.

    Directories and files are visited in lexicographic order, so when two
    files share a name the lexicographically last path is the one kept by
    callers applying last-wins. Unreadable subdirectories are logged and
    skipped. Raises PromptLoadError if ``root_dir`` itself is unusable.
    """
    root = Path(root_dir).resolve()
    if not root.is_dir():
        raise PromptLoadError(f"Prompt directory not found: {root}")

    logger.info("loader.started", root=str(root))
    definitions: list[PromptDefinition] = []

    def _on_error(error: OSError) -> None:
        logger.error("loader.directory_unreadable", path=error.filename, reason=str(error))

    for current, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            if not is_prompt_file(filename):
                continue
            path = Path(current) / filename
            if not path.is_file():
                continue
            definition = load_from_file(path)
            if definition is not None:
                definitions.append(definition)

    logger.info("loader.finished", root=str(root), count=len(definitions))
    return definitions
