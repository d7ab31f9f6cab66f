"""Adapter Layer — exposes prompt definitions as MCP tools and MCP prompts."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import mcp.types as types
import structlog

from prompt_server.core.models import (
    ImageBlock,
    MessageTemplate,
    PromptDefinition,
    Role,
)
from prompt_server.core.renderer import render_definition

logger = structlog.get_logger()

TOOL_EXECUTION_ERROR = "tool_execution_error"
PROMPT_RENDERING_ERROR = "prompt_rendering_error"

_SCHEMA_TYPES = {"number": "number", "boolean": "boolean"}
_PROTOCOL_ROLES: dict[Role, types.Role] = {Role.USER: "user", Role.ASSISTANT: "assistant"}

ToolHandler = Callable[[dict[str, Any] | None], types.CallToolResult]
PromptHandler = Callable[[dict[str, Any] | None], types.GetPromptResult]


@dataclass(frozen=True)
class AdaptedPrompt:
    """Everything the protocol server needs to serve one definition."""

    tool: types.Tool
    tool_handler: ToolHandler
    prompt: types.Prompt
    prompt_handler: PromptHandler


def tool_error(code: str, message: str) -> types.CallToolResult:
    """A tool result flagged as an error, with the code in structured content."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=f"{code}: {message}")],
        structuredContent={"error": {"code": code, "message": message}},
        isError=True,
    )


def text_result(text: str, structured: dict[str, Any] | None = None) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


def input_schema(definition: PromptDefinition) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    for arg in definition.arguments:
        properties[arg.name] = {
            "type": _SCHEMA_TYPES.get(arg.type.lower(), "string"),
            "description": arg.description,
        }
    return {
        "type": "object",
        "properties": properties,
        "required": definition.required_arguments,
    }


def build_tool(definition: PromptDefinition) -> types.Tool:
    return types.Tool(
        name=definition.name,
        description=definition.description,
        inputSchema=input_schema(definition),
    )


def user_text(messages: list[MessageTemplate]) -> str:
    """Join the text of every user message with content, one per line."""
    parts = [
        message.content.text or ""
        for message in messages
        if message.role is Role.USER and message.content is not None
    ]
    return "\n".join(parts)


def make_tool_handler(definition: PromptDefinition) -> ToolHandler:
    def handle(arguments: dict[str, Any] | None) -> types.CallToolResult:
        try:
            rendered = render_definition(definition, arguments or {})
            return text_result(user_text(rendered))
        except Exception as e:
            logger.error("adapter.tool_failed", tool=definition.name, error=str(e))
            return tool_error(TOOL_EXECUTION_ERROR, str(e))

    return handle


def build_prompt(definition: PromptDefinition) -> types.Prompt:
    return types.Prompt(
        name=definition.name,
        description=definition.description,
        arguments=[
            types.PromptArgument(name=arg.name, description=arg.description, required=arg.required)
            for arg in definition.arguments
        ],
    )


def to_protocol_role(role: Role) -> types.Role:
    mapped = _PROTOCOL_ROLES.get(role)
    if mapped is None:
        logger.warning("adapter.role_unsupported", role=role.value, fallback="user")
        return "user"
    return mapped


def to_protocol_message(message: MessageTemplate) -> types.PromptMessage | None:
    """Convert a rendered message; messages without content have no protocol form."""
    content = message.content
    if content is None:
        return None
    role = to_protocol_role(message.role)
    if isinstance(content, ImageBlock):
        return types.PromptMessage(
            role=role,
            content=types.ImageContent(type="image", data=content.text or "", mimeType=content.type),
        )
    return types.PromptMessage(role=role, content=types.TextContent(type="text", text=content.text or ""))


def make_prompt_handler(definition: PromptDefinition) -> PromptHandler:
    def handle(arguments: dict[str, Any] | None) -> types.GetPromptResult:
        try:
            rendered = render_definition(definition, arguments or {})
            messages = [m for m in (to_protocol_message(msg) for msg in rendered) if m is not None]
            return types.GetPromptResult(description=definition.description, messages=messages)
        except Exception as e:
            logger.error("adapter.prompt_failed", prompt=definition.name, error=str(e))
            return types.GetPromptResult(
                description=definition.description,
                messages=[],
                _meta={"error": {"code": PROMPT_RENDERING_ERROR, "message": str(e)}},
            )

    return handle


def adapt(definition: PromptDefinition) -> AdaptedPrompt:
    """Build the tool and prompt surfaces for one definition."""
    return AdaptedPrompt(
        tool=build_tool(definition),
        tool_handler=make_tool_handler(definition),
        prompt=build_prompt(definition),
        prompt_handler=make_prompt_handler(definition),
    )
