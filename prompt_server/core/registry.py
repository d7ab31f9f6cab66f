"""Prompt Registry — the live catalog of loaded prompt definitions.

The catalog is published as an immutable ``CatalogSnapshot``. Reloads build a
complete replacement off to the side and publish it with a single reference
assignment, so concurrent readers see either the old or the new catalog,
never a mix of both.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Generic, TypeVar

import structlog

from prompt_server.config import get_settings
from prompt_server.core.errors import (
    InvalidPromptError,
    PromptExistsError,
    PromptWriteError,
    ReloadAfterAddError,
    RuleReadError,
    UnsafePathError,
)
from prompt_server.core.loader import SUPPORTED_EXTENSIONS, load_all, parse_definition
from prompt_server.core.models import PromptDefinition
from prompt_server.utils.security import (
    is_within,
    validate_category,
    validate_content_size,
    validate_filename,
)

logger = structlog.get_logger()

T = TypeVar("T")

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class CatalogSnapshot(Generic[T]):
    """One published state of the catalog."""

    definitions: Mapping[str, PromptDefinition] = field(default_factory=lambda: _EMPTY)
    bindings: Mapping[str, T] = field(default_factory=lambda: _EMPTY)
    source_dir: Path | None = None
    loaded_at: datetime | None = None

    def __len__(self) -> int:
        return len(self.definitions)


class PromptRegistry(Generic[T]):
    """Owns the prompt catalog: full reloads, single-file additions, lookups.

    ``adapter`` turns each definition into whatever the protocol layer needs
    (tool and prompt descriptors plus handlers). The registry stores the
    results in the snapshot next to the definitions they were built from.
    """

    def __init__(
        self,
        prompts_dir: str | Path,
        rule_path: str | Path,
        adapter: Callable[[PromptDefinition], T] | None = None,
    ) -> None:
        self.prompts_dir = Path(prompts_dir).resolve()
        self.rule_path = Path(rule_path)
        self.adapter = adapter
        self._snapshot: CatalogSnapshot[T] = CatalogSnapshot()

    @property
    def snapshot(self) -> CatalogSnapshot[T]:
        """The current catalog. Take it once per request and read from it."""
        return self._snapshot

    @property
    def loaded(self) -> bool:
        return self._snapshot.loaded_at is not None

    def __len__(self) -> int:
        return len(self._snapshot)

    # --- Reads ---

    def lookup(self, name: str) -> PromptDefinition | None:
        return self._snapshot.definitions.get(name)

    def binding(self, name: str) -> T | None:
        return self._snapshot.bindings.get(name)

    def list_names(self) -> list[str]:
        return sorted(self._snapshot.definitions)

    # --- Mutations ---

    def load_and_register(self) -> CatalogSnapshot[T]:
        """Reload the whole catalog from disk and publish it atomically.

        Raises PromptLoadError if the prompt directory cannot be walked; the
        previously published snapshot stays in place in that case.
        """
        loaded = load_all(self.prompts_dir)

        definitions: dict[str, PromptDefinition] = {}
        for definition in loaded:
            if definition.name in definitions:
                logger.warning("registry.duplicate_name", name=definition.name)
            definitions[definition.name] = definition

        bindings: dict[str, T] = {}
        if self.adapter is not None:
            for name, definition in definitions.items():
                try:
                    bindings[name] = self.adapter(definition)
                except Exception as e:
                    logger.error("registry.adapt_failed", name=name, error=str(e))

        snapshot: CatalogSnapshot[T] = CatalogSnapshot(
            definitions=MappingProxyType(definitions),
            bindings=MappingProxyType(bindings),
            source_dir=self.prompts_dir,
            loaded_at=datetime.now(timezone.utc),
        )
        self._snapshot = snapshot
        logger.info(
            "registry.reloaded",
            prompts=len(definitions),
            registered=len(bindings),
            source=str(self.prompts_dir),
        )
        return snapshot

    def add_definition(self, category: str, filename: str, raw_content: str) -> PromptDefinition:
        """Write a new prompt file under ``category`` and reload the catalog.

        Nothing is written unless the names are safe, the extension is
        supported, the file does not exist yet and the content parses. If the
        reload after writing fails, the new file is removed again (best
        effort) and ReloadAfterAddError reports whether removal worked.
        """
        if not validate_category(category):
            raise UnsafePathError(f"Invalid category '{category}'")
        if not validate_filename(filename):
            raise UnsafePathError(f"Invalid filename '{filename}'")

        suffix = Path(filename).suffix.lower()
        if suffix not in SUPPORTED_EXTENSIONS:
            raise InvalidPromptError(
                f"Filename must end with one of: {', '.join(SUPPORTED_EXTENSIONS)}"
            )
        if not validate_content_size(raw_content):
            raise InvalidPromptError("Prompt content is too large")

        target = self.prompts_dir / category / filename
        if not is_within(self.prompts_dir, target):
            raise UnsafePathError(f"Path escapes the prompt directory: {category}/{filename}")
        if target.exists():
            raise PromptExistsError(f"Prompt file '{category}/{filename}' already exists")

        definition = parse_definition(raw_content, suffix)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("x", encoding="utf-8") as f:
                f.write(raw_content)
        except FileExistsError as e:
            raise PromptExistsError(f"Prompt file '{category}/{filename}' already exists") from e
        except OSError as e:
            raise PromptWriteError(f"Failed to write prompt file to {target}: {e}") from e
        logger.info("registry.file_written", path=str(target), name=definition.name)

        try:
            self.load_and_register()
        except Exception as reload_error:
            logger.error("registry.reload_after_add_failed", path=str(target), error=str(reload_error))
            try:
                target.unlink()
            except OSError as cleanup_error:
                logger.error("registry.cleanup_failed", path=str(target), error=str(cleanup_error))
                raise ReloadAfterAddError(target, reload_error, cleanup_error) from reload_error
            raise ReloadAfterAddError(target, reload_error) from reload_error

        logger.info("registry.prompt_added", name=definition.name, category=category)
        return definition

    def read_generate_rule(self) -> str:
        """Return the text of the prompt generation rule file."""
        try:
            return self.rule_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RuleReadError(f"Failed to read {self.rule_path}: {e}") from e


@lru_cache
def get_registry() -> PromptRegistry:
    """Get the cached registry instance, loaded from configured paths."""
    from prompt_server.protocol.adapter import adapt

    settings = get_settings()
    registry: PromptRegistry = PromptRegistry(
        settings.prompts_dir, settings.generate_rule_path, adapter=adapt
    )
    registry.load_and_register()
    return registry
