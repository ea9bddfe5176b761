"""Per-job Remotion source files and the on-disk namespacing scheme.

Each variant of each request gets its own workspace::

    <jobs_dir>/<request_id>/<variant_id>/
        index.ts            entry point, registers the root
        Root.tsx            <Composition id="GeneratedVideo" ...>
        GeneratedVideo.tsx  model-authored component
        props.json          input props, written by the CLI engine

and renders to ``<output_dir>/<request_id>-<variant_id>-<slug>.mp4``,
served at ``<public_path>/<same name>``.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass
from pathlib import Path

from ..config import get_config
from ..models.video_spec import VideoSpec

COMPOSITION_ID = "GeneratedVideo"

ENTRY_TEMPLATE = """\
import {{ registerRoot }} from "remotion";
import {{ RemotionRoot }} from "./Root";

registerRoot(RemotionRoot);
"""

ROOT_TEMPLATE = """\
import React from "react";
import {{ Composition }} from "remotion";
import GeneratedVideo from "./GeneratedVideo";

const defaultProps = {default_props};

export const RemotionRoot: React.FC = () => {{
  return (
    <Composition
      id="{composition_id}"
      component={{GeneratedVideo}}
      durationInFrames={{{duration_in_frames}}}
      fps={{{fps}}}
      width={{{width}}}
      height={{{height}}}
      defaultProps={{defaultProps}}
    />
  );
}};
"""

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def to_slug(value: str) -> str:
    """Lowercase *value*, collapse non-alphanumerics to ``-``; ``style`` if empty."""
    return _SLUG_RE.sub("-", value.lower()).strip("-") or "style"


def build_entry_file() -> str:
    return ENTRY_TEMPLATE.format()


def build_root_file(spec: VideoSpec) -> str:
    """Root module registering the composition with the spec's parameters."""
    return ROOT_TEMPLATE.format(
        default_props=json.dumps(spec.input_props, indent=2),
        composition_id=COMPOSITION_ID,
        duration_in_frames=spec.duration_in_frames,
        fps=spec.fps,
        width=spec.width,
        height=spec.height,
    )


@dataclass(frozen=True)
class JobFiles:
    workspace: Path
    entry: Path
    root: Path
    component: Path


def _write(path: Path, content: str) -> None:
    path.write_text(content, encoding="utf-8")


@dataclass(frozen=True)
class JobLayout:
    """Where job workspaces and rendered files live, and how they are named."""

    jobs_dir: Path
    output_dir: Path
    public_path: str = "/renders"

    @classmethod
    def from_config(cls) -> JobLayout:
        cfg = get_config()
        return cls(
            jobs_dir=cfg.resolved_jobs_dir,
            output_dir=cfg.resolved_output_dir,
            public_path=cfg.render_public_path,
        )

    @staticmethod
    def job_id(request_id: str, variant_id: str, style_name: str) -> str:
        return f"{request_id}-{variant_id}-{to_slug(style_name)}"

    def workspace(self, request_id: str, variant_id: str) -> Path:
        """Workspace directory for one variant of one request.

        Raises:
            ValueError: if either id could escape ``jobs_dir``.
        """
        for label, value in (("request_id", request_id), ("variant_id", variant_id)):
            if not _SAFE_ID_RE.match(value):
                raise ValueError(f"Unsafe {label} for a job path: {value!r}")
        return self.jobs_dir / request_id / variant_id

    def output_path(self, job_id: str) -> Path:
        return self.output_dir / f"{job_id}.mp4"

    def video_url(self, job_id: str) -> str:
        return f"{self.public_path.rstrip('/')}/{job_id}.mp4"

    async def write_job_files(self, request_id: str, variant_id: str, spec: VideoSpec) -> JobFiles:
        """Materialize the Remotion sources for one job.

        Files are written concurrently off the event loop. The output
        directory is created as well so the renderer can write into it.
        """
        workspace = self.workspace(request_id, variant_id)
        files = JobFiles(
            workspace=workspace,
            entry=workspace / "index.ts",
            root=workspace / "Root.tsx",
            component=workspace / f"{COMPOSITION_ID}.tsx",
        )
        await asyncio.to_thread(workspace.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(self.output_dir.mkdir, parents=True, exist_ok=True)
        await asyncio.gather(
            asyncio.to_thread(_write, files.entry, build_entry_file()),
            asyncio.to_thread(_write, files.root, build_root_file(spec)),
            asyncio.to_thread(_write, files.component, spec.component_code),
        )
        return files
