"""Shared test fixtures for prompt-video-mcp."""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

import prompt_video_mcp.config as cfg_mod
from prompt_video_mcp.errors import RenderError
from prompt_video_mcp.model_service import ModelMessage
from prompt_video_mcp.render.artifacts import JobLayout
from prompt_video_mcp.render.engine import BundleHandle, CompositionHandle

COMPONENT_CODE = """\
import React from "react";
import {AbsoluteFill, interpolate, useCurrentFrame} from "remotion";

export default function GeneratedVideo() {
  const frame = useCurrentFrame();
  const opacity = interpolate(frame, [0, 30], [0, 1]);
  return <AbsoluteFill style={{backgroundColor: "black", opacity}} />;
}
"""

BRIEF_TEXT = "Neon typography sliding over a dark gradient with punchy cuts."


def unwrap_tool(tool: Any) -> Any:
    """Return the plain coroutine behind a FastMCP tool object.

    FastMCP 2.x wraps ``@server.tool`` functions in a ``FunctionTool``
    exposing ``.fn``; 3.x leaves the function as is.
    """
    return getattr(tool, "fn", tool)


def spec_json(**overrides: Any) -> str:
    """JSON text for a valid video spec, with field overrides."""
    payload = {
        "title": "Launch Teaser",
        "width": 1920,
        "height": 1080,
        "fps": 30,
        "durationInFrames": 240,
        "inputProps": {"headline": "Hello"},
        "componentCode": COMPONENT_CODE,
    }
    payload.update(overrides)
    return json.dumps(payload)


def briefs_json(*names: str) -> str:
    return json.dumps({"styles": [{"styleName": n, "styleBrief": f"{n}: {BRIEF_TEXT}"} for n in names]})


Reply = str | None | BaseException


class FakeSession:
    def __init__(self, service: FakeModelService, model: str) -> None:
        self.service = service
        self.model = model
        self.history: list[ModelMessage] = []
        self.closed = False

    async def send_prompt(self, text: str) -> str | None:
        self.service.prompts.append(text)
        reply = self.service.responder(text)
        if inspect.isawaitable(reply):
            reply = await reply
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def list_messages(self) -> list[ModelMessage]:
        return list(self.history)

    async def close(self) -> None:
        self.closed = True


class FakeModelService:
    """In-memory ``ModelService``; *responder* maps a prompt to a reply or exception."""

    def __init__(self, responder: Callable[[str], Any], models: list[str] | None = None) -> None:
        self.responder = responder
        self.models = models if models is not None else ["gemini-3-flash-preview"]
        self.prompts: list[str] = []
        self.sessions: list[FakeSession] = []
        self.exited = False

    async def start_session(self, model: str) -> FakeSession:
        session = FakeSession(self, model)
        self.sessions.append(session)
        return session

    async def list_models(self) -> list[str]:
        return list(self.models)

    async def __aenter__(self) -> FakeModelService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.exited = True


def scripted_responder(briefs: Reply, specs: dict[str, Reply] | None = None) -> Callable[[str], Reply]:
    """Answer brief prompts with *briefs* and spec prompts by style name."""
    specs = specs or {}

    def respond(prompt: str) -> Reply:
        if "creative director" in prompt:
            return briefs
        for name, reply in specs.items():
            if f"- Style name: {name}\n" in prompt:
                return reply
        return spec_json()

    return respond


class FakeRenderEngine:
    """``RenderEngine`` that writes a placeholder MP4 unless told to fail."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.bundled: list[Path] = []
        self.rendered: list[Path] = []
        self.props: list[dict] = []

    async def bundle(self, entry_point: Path) -> BundleHandle:
        self.bundled.append(entry_point)
        return BundleHandle(serve_url=str(entry_point.parent / "bundle"), workspace=entry_point.parent)

    async def select_composition(self, composition_id: str, bundle: BundleHandle, input_props: dict) -> CompositionHandle:
        return CompositionHandle(composition_id=composition_id, serve_url=bundle.serve_url)

    async def render(self, composition: CompositionHandle, bundle: BundleHandle, output_path: Path, input_props: dict) -> Path:
        if any(marker in output_path.name for marker in self.fail_for):
            raise RenderError(f"Bundling failed for {output_path.stem}")
        self.props.append(input_props)
        output_path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
        self.rendered.append(output_path)
        return output_path


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path, monkeypatch):
    """Keep the user's real .env, credentials and tracing out of every test."""
    monkeypatch.setattr("prompt_video_mcp.dotenv.DEFAULT_ENV_PATH", tmp_path / "nonexistent.env")
    monkeypatch.delenv("PROMPT_VIDEO_ENV_FILE", raising=False)
    monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
    monkeypatch.delenv("GOOGLE_CLOUD_LOCATION", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")
    monkeypatch.setenv("GEMINI_TRACING_ENABLED", "false")
    monkeypatch.setenv("RENDER_PROJECT_DIR", str(tmp_path / "project"))
    cfg_mod.reset_config()
    yield
    cfg_mod.reset_config()


@pytest.fixture()
def layout(tmp_path) -> JobLayout:
    return JobLayout(jobs_dir=tmp_path / "jobs", output_dir=tmp_path / "renders", public_path="/renders")


@pytest.fixture()
def render_engine() -> FakeRenderEngine:
    return FakeRenderEngine()
