"""Management tools — reload, add, rule text and name listing over MCP.

These hold no state of their own; everything goes through the registry.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import anyio.to_thread
import mcp.types as types
import structlog

from prompt_server.core.errors import PromptServerError
from prompt_server.core.registry import PromptRegistry
from prompt_server.protocol.adapter import text_result, tool_error

logger = structlog.get_logger()

RELOAD_PROMPTS = "reload_prompts"
ADD_PROMPT = "add_prompt"
GET_PROMPT_GENERATE_RULE = "get_prompt_generate_rule"
GET_PROMPT_NAMES = "get_prompt_names"

MISSING_ARGUMENTS = "missing_arguments"

_NO_ARGS: dict[str, Any] = {"type": "object", "properties": {}, "required": []}


def get_tool_declarations() -> list[types.Tool]:
    """Descriptors for the four management tools."""
    return [
        types.Tool(
            name=RELOAD_PROMPTS,
            description="Hot reload all prompt templates from the prompts directory.",
            inputSchema=_NO_ARGS,
        ),
        types.Tool(
            name=ADD_PROMPT,
            description=(
                "Adds a new prompt to the server. Requires category, filename and the prompt "
                "document content (YAML or JSON). Reloads all prompts on success."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "category": {
                        "type": "string",
                        "description": "The category (subdirectory) for the new prompt.",
                    },
                    "filename": {
                        "type": "string",
                        "description": "The filename for the new prompt (e.g. my_new_prompt.yaml).",
                    },
                    "content": {
                        "type": "string",
                        "description": "The YAML or JSON content of the new prompt.",
                    },
                },
                "required": ["category", "filename", "content"],
            },
        ),
        types.Tool(
            name=GET_PROMPT_GENERATE_RULE,
            description="Returns the rule text describing how prompt documents are written.",
            inputSchema=_NO_ARGS,
        ),
        types.Tool(
            name=GET_PROMPT_NAMES,
            description="List all currently loaded prompt names.",
            inputSchema=_NO_ARGS,
        ),
    ]


class ManagementTools:
    """Dispatches management tool calls to the registry."""

    def __init__(self, registry: PromptRegistry) -> None:
        self.registry = registry
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[types.CallToolResult]]] = {
            RELOAD_PROMPTS: self.reload_prompts,
            ADD_PROMPT: self.add_prompt,
            GET_PROMPT_GENERATE_RULE: self.get_prompt_generate_rule,
            GET_PROMPT_NAMES: self.get_prompt_names,
        }

    @property
    def names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def tools(self) -> list[types.Tool]:
        return get_tool_declarations()

    async def call(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(name)
        logger.info("management.called", tool=name)
        return await handler(arguments or {})

    async def reload_prompts(self, arguments: dict[str, Any]) -> types.CallToolResult:
        try:
            snapshot = await anyio.to_thread.run_sync(self.registry.load_and_register)
        except PromptServerError as e:
            logger.error("management.reload_failed", error=e.message)
            return tool_error(e.code, e.message)
        return text_result(
            f"Successfully reloaded {len(snapshot)} prompts.", {"count": len(snapshot)}
        )

    async def add_prompt(self, arguments: dict[str, Any]) -> types.CallToolResult:
        category = arguments.get("category")
        filename = arguments.get("filename")
        content = arguments.get("content") or arguments.get("yaml_content")
        if not all(isinstance(v, str) and v for v in (category, filename, content)):
            return tool_error(
                MISSING_ARGUMENTS,
                "category, filename and content are required and cannot be empty",
            )

        try:
            definition = await anyio.to_thread.run_sync(
                self.registry.add_definition, category, filename, content
            )
        except PromptServerError as e:
            logger.warning("management.add_failed", category=category, filename=filename, code=e.code)
            return tool_error(e.code, e.message)

        return text_result(
            f"Prompt {definition.name} added as {category}/{filename} and all prompts reloaded. "
            f"Total: {len(self.registry)}",
            {"name": definition.name, "count": len(self.registry)},
        )

    async def get_prompt_generate_rule(self, arguments: dict[str, Any]) -> types.CallToolResult:
        try:
            text = await anyio.to_thread.run_sync(self.registry.read_generate_rule)
        except PromptServerError as e:
            logger.error("management.rule_read_failed", error=e.message)
            return tool_error(e.code, e.message)
        return text_result(text)

    async def get_prompt_names(self, arguments: dict[str, Any]) -> types.CallToolResult:
        names = self.registry.list_names()
        return text_result(json.dumps(names), {"names": names})
