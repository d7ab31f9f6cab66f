"""Error types raised by the loader and registry.

Each error carries a stable ``code`` that protocol handlers copy into the
structured error they return to clients.
"""

from __future__ import annotations

from pathlib import Path


class PromptServerError(Exception):
    """Base class for prompt server errors."""

    code = "prompt_server_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PromptLoadError(PromptServerError):
    """The prompt root directory could not be walked at all."""

    code = "reload_failed"


class InvalidPromptError(PromptServerError):
    """A prompt document failed to parse or validate."""

    code = "invalid_prompt"


class UnsafePathError(InvalidPromptError):
    """A category or filename would escape the prompt root."""

    code = "invalid_path"


class PromptExistsError(PromptServerError):
    code = "prompt_exists"


class PromptWriteError(PromptServerError):
    """Writing a new prompt file failed; nothing was reloaded."""

    code = "write_failed"


class ReloadAfterAddError(PromptServerError):
    """A new prompt file was written but the reload that followed failed.

    ``cleanup_error`` is ``None`` when the written file was removed again,
    otherwise it holds the error that prevented removal.
    """

    def __init__(
        self, path: Path, cause: Exception, cleanup_error: OSError | None = None
    ) -> None:
        if cleanup_error is None:
            message = (
                f"Prompt file saved to {path}, but reloading prompts failed: {cause}. "
                "The new file has been removed."
            )
        else:
            message = (
                f"Prompt file saved to {path}, but reloading prompts failed ({cause}) "
                f"and removing the file also failed ({cleanup_error})."
            )
        super().__init__(message)
        self.path = path
        self.cause = cause
        self.cleanup_error = cleanup_error

    @property
    def cleaned_up(self) -> bool:
        return self.cleanup_error is None

    @property
    def code(self) -> str:  # type: ignore[override]
        return "reload_failed_after_add" if self.cleaned_up else "cleanup_failed"


class RuleReadError(PromptServerError):
    code = "file_read_error"
