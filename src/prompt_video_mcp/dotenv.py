"""Load server settings from a shared ``.env`` file.

Settings live in ``~/.config/prompt-video-mcp/.env`` so the MCP host, the
HTTP server, and ad-hoc scripts all see the same Gemini credentials and
render paths. ``PROMPT_VIDEO_ENV_FILE`` points at a different file.
Values already present in the process environment are never overwritten.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "prompt-video-mcp" / ".env"
ENV_FILE_OVERRIDE = "PROMPT_VIDEO_ENV_FILE"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def _is_unset(key: str, value: str | None) -> bool:
    """Return True when an inherited env value should yield to the file.

    Blank values and self-referencing placeholders (``${KEY}``,
    ``${KEY:-}``, ``$KEY``) come from hosts that forward unresolved
    configuration verbatim.
    """
    if value is None:
        return True
    normalized = _strip_quotes(value.strip()).strip()
    if not normalized:
        return True
    if normalized in {f"${key}", f"${{{key}}}"}:
        return True
    return normalized.startswith(f"${{{key}:-") and normalized.endswith("}")


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines from *path*.

    Understands ``export`` prefixes, single or double quotes, blank lines and
    ``#`` comments. No interpolation. A missing file parses as empty.
    """
    if not path.is_file():
        return {}

    entries: dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        entries[key] = _strip_quotes(value.strip())
    return entries


def resolve_env_path() -> Path:
    """Return the env file to load, honouring ``PROMPT_VIDEO_ENV_FILE``."""
    override = os.environ.get(ENV_FILE_OVERRIDE, "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_ENV_PATH


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy settings from *path* into ``os.environ`` where they are unset.

    Returns:
        The variables that were injected.
    """
    source = path if path is not None else resolve_env_path()
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(source).items():
        if _is_unset(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
