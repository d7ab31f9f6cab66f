"""Template Renderer — substitutes ``{{argument}}`` placeholders in message text."""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Mapping
from typing import Any

from prompt_server.core.models import MessageTemplate, PromptDefinition, TextBlock


def stringify(value: Any) -> str:
    """Canonical text form of an argument value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _placeholder_pattern(keys: Iterable[str]) -> re.Pattern[str] | None:
    placeholders = sorted({f"{{{{{key}}}}}" for key in keys}, key=len, reverse=True)
    if not placeholders:
        return None
    return re.compile("|".join(re.escape(p) for p in placeholders))


def render_messages(
    messages: Iterable[MessageTemplate], args: Mapping[str, Any] | None
) -> list[MessageTemplate]:
    """Render message templates with ``args``; the templates are left untouched.

    Each text block gets a single left-to-right pass replacing ``{{key}}`` for
    every key present in ``args``. Substituted values are not scanned again,
    so the result does not depend on the order of keys. ``None`` values
    render as the empty string. Non-text content is copied unchanged.
    """
    args = args or {}
    pattern = _placeholder_pattern(args.keys())
    values = {f"{{{{{key}}}}}": stringify(value) for key, value in args.items()}

    rendered: list[MessageTemplate] = []
    for message in messages:
        content = message.content
        if content is None:
            rendered.append(message.model_copy())
            continue
        if isinstance(content, TextBlock) and content.text is not None and pattern is not None:
            text = pattern.sub(lambda m: values[m.group(0)], content.text)
            new_content = content.model_copy(update={"text": text})
        else:
            new_content = content.model_copy()
        rendered.append(message.model_copy(update={"content": new_content}))
    return rendered


def render_definition(
    definition: PromptDefinition, args: Mapping[str, Any] | None
) -> list[MessageTemplate]:
    """Render a definition's messages for one request.

    Declared arguments the caller left out render as the empty string, the
    same as an explicit ``None``. Required-ness is not enforced here.
    """
    merged: dict[str, Any] = {arg.name: None for arg in definition.arguments}
    merged.update(args or {})
    return render_messages(definition.messages, merged)
