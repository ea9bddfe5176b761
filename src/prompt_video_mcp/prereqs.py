"""Render environment checks reported by ``/health`` and ``video_health``."""

from __future__ import annotations

import shutil

from pydantic import BaseModel, Field

from .config import get_config
from .render.runner import remotion_command


class PrereqStatus(BaseModel):
    """Result of checking a single prerequisite."""

    name: str
    available: bool
    path: str = ""
    message: str = ""


class PrereqReport(BaseModel):
    all_ok: bool = False
    checks: list[PrereqStatus] = Field(default_factory=list)


def _which(name: str, hint: str) -> PrereqStatus:
    path = shutil.which(name)
    return PrereqStatus(name=name, available=path is not None, path=path or "", message="" if path else hint)


def check_prereqs() -> PrereqReport:
    """Check Node.js, the Remotion launcher, and the render project layout."""
    cfg = get_config()
    checks = [_which("node", "Node.js not found; install Node 18 or newer")]

    launcher = remotion_command()[0]
    checks.append(_which(launcher, f"'{launcher}' not found in PATH; adjust REMOTION_COMMAND"))

    project = cfg.resolved_project_dir
    remotion_pkg = project / "node_modules" / "remotion"
    checks.append(PrereqStatus(
        name="render_project",
        available=remotion_pkg.is_dir(),
        path=str(project),
        message="" if remotion_pkg.is_dir() else (
            f"remotion is not installed in {project}; run 'npm install remotion @remotion/cli' "
            "or set RENDER_PROJECT_DIR"
        ),
    ))

    credentials = bool(cfg.gemini_api_key or cfg.google_cloud_project)
    checks.append(PrereqStatus(
        name="gemini_credentials",
        available=credentials,
        message="" if credentials else "Set GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT",
    ))

    return PrereqReport(all_ok=all(c.available for c in checks), checks=checks)
