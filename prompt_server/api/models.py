"""Pydantic request/response models for the API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from prompt_server.core.models import PromptDefinition


# --- Prompts ---


class ArgumentResponse(BaseModel):
    name: str
    description: str = ""
    type: str = "string"
    required: bool = False


class PromptSummary(BaseModel):
    """Catalog entry."""

    name: str
    description: str
    arguments: list[str] = Field(default_factory=list)


class PromptDetail(BaseModel):
    """Full prompt definition."""

    name: str
    description: str
    arguments: list[ArgumentResponse]
    messages: list[dict[str, Any]]

    @classmethod
    def from_definition(cls, definition: PromptDefinition) -> PromptDetail:
        return cls(
            name=definition.name,
            description=definition.description,
            arguments=[ArgumentResponse(**arg.model_dump()) for arg in definition.arguments],
            messages=[m.model_dump(mode="json") for m in definition.messages],
        )


# --- Rendering ---


class RenderRequest(BaseModel):
    """Argument values to substitute into a prompt."""

    arguments: dict[str, Any] = Field(default_factory=dict)


class RenderResponse(BaseModel):
    name: str
    messages: list[dict[str, Any]]
    text: str
