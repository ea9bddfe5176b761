"""Error taxonomy for the generate pipeline plus structured tool errors."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from .models.results import VariantResult


class PromptVideoError(Exception):
    """Base class for pipeline errors."""


class InputValidationError(PromptVideoError):
    """The request payload is malformed; nothing has been generated yet."""


class GenerationError(PromptVideoError):
    """The model service failed, timed out, or returned unusable output."""


class ParseError(GenerationError):
    """No JSON value could be recovered from model output."""


class RenderError(PromptVideoError):
    """The rendering engine failed to bundle, resolve, or render a composition."""


class TotalFailureError(PromptVideoError):
    """Every requested variant failed. Carries the per-variant breakdown."""

    def __init__(self, variants: list[VariantResult], message: str = "All style variants failed to render.") -> None:
        self.variants = variants
        super().__init__(message)


class SubprocessError(RenderError):
    """Raised when the Remotion CLI exits with a non-zero code."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        tail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        message = f"Command {' '.join(command[:3])!r} exited with code {returncode}"
        super().__init__(f"{message}: {tail}" if tail else message)


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    INPUT_INVALID = "INPUT_INVALID"
    MODEL_AUTH_MISSING = "MODEL_AUTH_MISSING"
    MODEL_QUOTA_EXCEEDED = "MODEL_QUOTA_EXCEEDED"
    MODEL_TIMEOUT = "MODEL_TIMEOUT"
    MODEL_OUTPUT_INVALID = "MODEL_OUTPUT_INVALID"
    MODEL_ERROR = "MODEL_ERROR"
    RENDER_TIMEOUT = "RENDER_TIMEOUT"
    RENDER_FAILED = "RENDER_FAILED"
    REMOTION_NOT_INSTALLED = "REMOTION_NOT_INSTALLED"
    ALL_VARIANTS_FAILED = "ALL_VARIANTS_FAILED"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    s = str(error).lower()

    if isinstance(error, InputValidationError):
        return (
            ErrorCategory.INPUT_INVALID,
            "Check prompt length (10-2000), variantCount (1 or 4), and image data URL format",
        )
    if isinstance(error, TotalFailureError):
        return (
            ErrorCategory.ALL_VARIANTS_FAILED,
            "Every variant failed — see the per-variant errors and step log",
        )
    if isinstance(error, SubprocessError):
        combined = f"{error.stdout} {error.stderr}".lower()
        if "remotion" in combined and ("not found" in combined or "could not determine executable" in combined):
            return (
                ErrorCategory.REMOTION_NOT_INSTALLED,
                "Remotion not installed — run 'npm install remotion @remotion/cli' in RENDER_PROJECT_DIR",
            )
        return (
            ErrorCategory.RENDER_FAILED,
            f"Remotion CLI failed (exit {error.returncode}) — check the generated component source",
        )
    if isinstance(error, (TimeoutError, RenderError)) and "render" in s and ("timeout" in s or "timed out" in s):
        return (
            ErrorCategory.RENDER_TIMEOUT,
            "Render timed out — raise RENDER_TIMEOUT or lower the resolution",
        )
    if isinstance(error, RenderError):
        return (
            ErrorCategory.RENDER_FAILED,
            "Render failed — check Remotion setup in RENDER_PROJECT_DIR",
        )
    if isinstance(error, ParseError) or "parseable json" in s:
        return (
            ErrorCategory.MODEL_OUTPUT_INVALID,
            "Model output was not valid JSON — retry or switch models",
        )
    if isinstance(error, TimeoutError) or "timeout" in s or "timed out" in s:
        return (
            ErrorCategory.MODEL_TIMEOUT,
            "Model call timed out — retry or raise GENERATION_TIMEOUT",
        )
    if "429" in s or "quota" in s or "resource_exhausted" in s:
        return (
            ErrorCategory.MODEL_QUOTA_EXCEEDED,
            "Rate limit hit — wait and retry, or choose a flash model",
        )
    if "api key" in s or "credentials" in s or "401" in s or "403" in s:
        return (
            ErrorCategory.MODEL_AUTH_MISSING,
            "Set GEMINI_API_KEY, or GOOGLE_CLOUD_PROJECT with application-default credentials",
        )
    if isinstance(error, GenerationError):
        return (
            ErrorCategory.MODEL_OUTPUT_INVALID
            if "expected exactly" in s or "styles" in s or "default export" in s
            else ErrorCategory.MODEL_ERROR,
            "Model returned an unusable response — retry the request",
        )

    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.MODEL_QUOTA_EXCEEDED,
        ErrorCategory.MODEL_TIMEOUT,
        ErrorCategory.MODEL_OUTPUT_INVALID,
        ErrorCategory.RENDER_TIMEOUT,
    }
    return ToolError(
        error=str(error),
        category=cat.value,
        hint=hint,
        retryable=retryable,
    ).model_dump()
