"""Security utilities — input validation for names that become filesystem paths."""

from __future__ import annotations

import re
from pathlib import Path

CATEGORY_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*(/[A-Za-z0-9_][A-Za-z0-9_.-]*)*$")
FILENAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")
MAX_CONTENT_SIZE = 256 * 1024  # 256KB


def validate_category(category: str) -> bool:
    """Validate a category: one or more slash-separated safe path segments."""
    if not category or len(category) > 200:
        return False
    if not CATEGORY_PATTERN.fullmatch(category):
        return False
    return all(part not in {".", ".."} for part in category.split("/"))


def validate_filename(filename: str) -> bool:
    """Validate a bare filename: no separators, no leading dot, 1-200 chars."""
    return bool(FILENAME_PATTERN.fullmatch(filename)) and len(filename) <= 200 and ".." not in filename


def validate_content_size(raw: str, max_bytes: int = MAX_CONTENT_SIZE) -> bool:
    return len(raw.encode("utf-8")) <= max_bytes


def is_within(root: Path, path: Path) -> bool:
    """True if ``path`` resolves to a location inside ``root``."""
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True
