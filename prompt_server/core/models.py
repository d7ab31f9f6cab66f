"""Prompt definition models.

These mirror the structure of the prompt documents (YAML/JSON) found under the
prompts directory. All models are frozen: a loaded definition is never
mutated, a reload replaces it wholesale.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator, model_validator

logger = structlog.get_logger()


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # YAML writes empty keys as null; fall back to field defaults
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class TextBlock(_Frozen):
    """Textual content; the only kind that ``{{placeholders}}`` apply to."""

    type: Literal["text"] = "text"
    text: str | None = None


class ImageBlock(_Frozen):
    """Image content. ``type`` is the media type, ``text`` the base64 payload."""

    type: str = Field(..., pattern=r"^image/")
    text: str | None = None


class OpaqueBlock(_Frozen):
    """Any other content type. Passed through untouched."""

    type: str
    text: str | None = None


def _content_kind(value: Any) -> str:
    if isinstance(value, dict):
        type_ = value.get("type")
    else:
        type_ = getattr(value, "type", None)
    if type_ is None or type_ == "text":
        return "text"
    if isinstance(type_, str) and type_.startswith("image/"):
        return "image"
    return "opaque"


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ImageBlock, Tag("image")],
        Annotated[OpaqueBlock, Tag("opaque")],
    ],
    Discriminator(_content_kind),
]


class MessageTemplate(_Frozen):
    role: Role = Role.USER
    content: ContentBlock | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value: Any) -> Any:
        if isinstance(value, Role):
            return value
        try:
            return Role(str(value).strip().lower())
        except ValueError:
            logger.warning("prompt.unknown_role", role=value, fallback=Role.USER.value)
            return Role.USER


class ArgumentSpec(_Frozen):
    name: str = Field(..., min_length=1)
    description: str = ""
    type: str = "string"
    required: bool = False


class PromptDefinition(_Frozen):
    """A named prompt template with typed arguments and a message sequence."""

    name: str = Field(..., min_length=1)
    description: str = ""
    arguments: tuple[ArgumentSpec, ...] = ()
    messages: tuple[MessageTemplate, ...] = ()

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _unique_argument_names(self) -> PromptDefinition:
        seen: set[str] = set()
        for arg in self.arguments:
            if arg.name in seen:
                raise ValueError(f"Duplicate argument name '{arg.name}'")
            seen.add(arg.name)
        return self

    @property
    def required_arguments(self) -> list[str]:
        return [arg.name for arg in self.arguments if arg.required]
