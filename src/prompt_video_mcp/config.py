"""Settings for model access, rendering paths and the HTTP listener, read from the environment."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

VALID_THINKING_LEVELS = {"minimal", "low", "medium", "high"}

DEFAULT_MODEL = "gemini-3.1-pro-preview"
DEFAULT_FALLBACK_MODELS = ("gemini-3.1-pro-preview", "gemini-3-flash-preview")


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Tracing is on whenever a tracking URI is set, unless the flag says ``false``."""
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    gemini_api_key: str = Field(default="")
    google_cloud_project: str = Field(default="")
    google_cloud_location: str = Field(default="us-central1")
    default_model: str = Field(default=DEFAULT_MODEL)
    fallback_models: list[str] = Field(default_factory=lambda: list(DEFAULT_FALLBACK_MODELS))
    default_thinking_level: str = Field(default="high")
    default_temperature: float = Field(default=1.0)
    generation_timeout: float = Field(
        default=240.0,
        description="Hard ceiling in seconds for a single model prompt",
    )
    default_style_count: int = Field(default=4)
    retry_max_attempts: int = Field(default=3)
    retry_base_delay: float = Field(default=1.0)
    retry_max_delay: float = Field(default=60.0)
    render_project_dir: str = Field(
        default="",
        description="Node project with remotion installed; cwd for the Remotion CLI",
    )
    render_jobs_dir: str = Field(default="")
    render_output_dir: str = Field(default="")
    render_public_path: str = Field(default="/renders")
    remotion_command: str = Field(default="npx remotion")
    render_codec: str = Field(default="h264")
    render_timeout: int = Field(default=900)
    render_concurrency: int = Field(default=4)
    max_image_data_url_length: int = Field(default=10_000_000)
    http_host: str = Field(default="127.0.0.1")
    http_port: int = Field(default=8000)
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="prompt-video-mcp")

    @field_validator("default_thinking_level")
    @classmethod
    def validate_thinking_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in VALID_THINKING_LEVELS:
            allowed = ", ".join(sorted(VALID_THINKING_LEVELS))
            raise ValueError(f"Invalid thinking level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("default_style_count", "max_image_data_url_length", "retry_max_attempts")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("generation_timeout", "retry_base_delay", "retry_max_delay")
    @classmethod
    def validate_positive_floats(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Timeouts and delays must be > 0")
        return value

    @field_validator("render_timeout")
    @classmethod
    def validate_render_timeout(cls, value: int) -> int:
        if value < 30:
            raise ValueError("render_timeout must be >= 30")
        return value

    @field_validator("render_concurrency")
    @classmethod
    def validate_render_concurrency(cls, value: int) -> int:
        if value < 1:
            raise ValueError("render_concurrency must be >= 1")
        return min(value, 10)  # each render is a full headless browser

    @field_validator("render_public_path")
    @classmethod
    def validate_public_path(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        return value

    @field_validator("fallback_models")
    @classmethod
    def validate_fallback_models(cls, value: list[str]) -> list[str]:
        return value or list(DEFAULT_FALLBACK_MODELS)

    @property
    def resolved_project_dir(self) -> Path:
        """Remotion project root, defaulting to the working directory."""
        return Path(self.render_project_dir or os.getcwd()).expanduser().resolve()

    @property
    def resolved_jobs_dir(self) -> Path:
        """Root under which per-request, per-variant workspaces are created."""
        if self.render_jobs_dir:
            return Path(self.render_jobs_dir).expanduser().resolve()
        return self.resolved_project_dir / ".generated" / "jobs"

    @property
    def resolved_output_dir(self) -> Path:
        """Directory that receives rendered MP4 files."""
        if self.render_output_dir:
            return Path(self.render_output_dir).expanduser().resolve()
        return self.resolved_project_dir / "public" / "renders"

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            google_cloud_project=os.getenv("GOOGLE_CLOUD_PROJECT", ""),
            google_cloud_location=os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
            default_model=os.getenv("VIDEO_MODEL", DEFAULT_MODEL),
            fallback_models=_split_csv(os.getenv("VIDEO_FALLBACK_MODELS", "")),
            default_thinking_level=os.getenv("GEMINI_THINKING_LEVEL", "high"),
            default_temperature=float(os.getenv("GEMINI_TEMPERATURE", "1.0")),
            generation_timeout=float(os.getenv("GENERATION_TIMEOUT", "240")),
            default_style_count=int(os.getenv("DEFAULT_STYLE_COUNT", "4")),
            retry_max_attempts=int(os.getenv("GEMINI_RETRY_MAX_ATTEMPTS", "3")),
            retry_base_delay=float(os.getenv("GEMINI_RETRY_BASE_DELAY", "1.0")),
            retry_max_delay=float(os.getenv("GEMINI_RETRY_MAX_DELAY", "60.0")),
            render_project_dir=os.getenv("RENDER_PROJECT_DIR", ""),
            render_jobs_dir=os.getenv("RENDER_JOBS_DIR", ""),
            render_output_dir=os.getenv("RENDER_OUTPUT_DIR", ""),
            render_public_path=os.getenv("RENDER_PUBLIC_PATH", "/renders"),
            remotion_command=os.getenv("REMOTION_COMMAND", "npx remotion"),
            render_codec=os.getenv("RENDER_CODEC", "h264"),
            render_timeout=int(os.getenv("RENDER_TIMEOUT", "900")),
            render_concurrency=int(os.getenv("RENDER_CONCURRENCY", "4")),
            max_image_data_url_length=int(os.getenv("MAX_IMAGE_DATA_URL_LENGTH", "10000000")),
            http_host=os.getenv("HTTP_HOST", "127.0.0.1"),
            http_port=int(os.getenv("HTTP_PORT", "8000")),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("GEMINI_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "prompt-video-mcp"),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/prompt-video-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
