"""Prompt catalog endpoints — read-only views over the live registry."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from prompt_server.api.models import (
    PromptDetail,
    PromptSummary,
    RenderRequest,
    RenderResponse,
)
from prompt_server.core.models import PromptDefinition
from prompt_server.core.registry import PromptRegistry, get_registry
from prompt_server.core.renderer import render_definition
from prompt_server.protocol.adapter import user_text

router = APIRouter()


def _require(registry: PromptRegistry, name: str) -> PromptDefinition:
    definition = registry.lookup(name)
    if definition is None:
        raise HTTPException(status_code=404, detail=f"Prompt '{name}' not found")
    return definition


@router.get("", response_model=list[PromptSummary])
async def list_prompts(
    registry: PromptRegistry = Depends(get_registry),
) -> list[PromptSummary]:
    """List loaded prompts in name order."""
    snapshot = registry.snapshot
    return [
        PromptSummary(
            name=name,
            description=snapshot.definitions[name].description,
            arguments=[arg.name for arg in snapshot.definitions[name].arguments],
        )
        for name in sorted(snapshot.definitions)
    ]


@router.get("/{name}", response_model=PromptDetail)
async def get_prompt(
    name: str,
    registry: PromptRegistry = Depends(get_registry),
) -> PromptDetail:
    """Get a prompt definition by name."""
    return PromptDetail.from_definition(_require(registry, name))


@router.post("/{name}/render", response_model=RenderResponse)
async def render_prompt(
    name: str,
    data: RenderRequest,
    registry: PromptRegistry = Depends(get_registry),
) -> RenderResponse:
    """Render a prompt with the given argument values."""
    definition = _require(registry, name)
    rendered = render_definition(definition, data.arguments)
    return RenderResponse(
        name=definition.name,
        messages=[m.model_dump(mode="json") for m in rendered],
        text=user_text(rendered),
    )
