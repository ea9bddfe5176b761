"""Rendering engine boundary and its Remotion CLI implementation.

The invoker owns what gets rendered and where; an engine only knows how
to bundle an entry point, resolve a composition in the bundle, and render
it to a file.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..config import get_config
from ..errors import RenderError
from .runner import run_remotion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BundleHandle:
    """A bundled Remotion project; ``serve_url`` is a directory or URL."""

    serve_url: str
    workspace: Path


@dataclass(frozen=True)
class CompositionHandle:
    composition_id: str
    serve_url: str


@runtime_checkable
class RenderEngine(Protocol):
    async def bundle(self, entry_point: Path) -> BundleHandle: ...

    async def select_composition(
        self,
        composition_id: str,
        bundle: BundleHandle,
        input_props: dict[str, Any],
    ) -> CompositionHandle: ...

    async def render(
        self,
        composition: CompositionHandle,
        bundle: BundleHandle,
        output_path: Path,
        input_props: dict[str, Any],
    ) -> Path: ...


class RemotionCliEngine:
    """Drives ``remotion bundle``, ``remotion compositions`` and ``remotion render``.

    Input props go through a ``props.json`` next to the bundle because an
    embedded image data URL is far too large for a command line.
    """

    PROPS_FILENAME = "props.json"

    def __init__(self, *, codec: str | None = None, timeout: int | None = None) -> None:
        cfg = get_config()
        self.codec = codec or cfg.render_codec
        self.timeout = timeout or cfg.render_timeout

    async def _props_file(self, bundle: BundleHandle, input_props: dict[str, Any]) -> Path:
        path = bundle.workspace / self.PROPS_FILENAME
        await asyncio.to_thread(path.write_text, json.dumps(input_props), encoding="utf-8")
        return path

    async def bundle(self, entry_point: Path) -> BundleHandle:
        out_dir = entry_point.parent / "bundle"
        await run_remotion("bundle", str(entry_point), "--out-dir", str(out_dir), timeout=self.timeout)
        return BundleHandle(serve_url=str(out_dir), workspace=entry_point.parent)

    async def select_composition(
        self,
        composition_id: str,
        bundle: BundleHandle,
        input_props: dict[str, Any],
    ) -> CompositionHandle:
        props = await self._props_file(bundle, input_props)
        result = await run_remotion(
            "compositions",
            bundle.serve_url,
            f"--props={props}",
            "--quiet",
            timeout=self.timeout,
        )
        if not re.search(rf"(?<![\w-]){re.escape(composition_id)}(?![\w-])", result.stdout):
            raise RenderError(f'Composition "{composition_id}" was not found in the bundle.')
        return CompositionHandle(composition_id=composition_id, serve_url=bundle.serve_url)

    async def render(
        self,
        composition: CompositionHandle,
        bundle: BundleHandle,
        output_path: Path,
        input_props: dict[str, Any],
    ) -> Path:
        props = await self._props_file(bundle, input_props)
        await run_remotion(
            "render",
            composition.serve_url,
            composition.composition_id,
            str(output_path),
            f"--props={props}",
            f"--codec={self.codec}",
            "--overwrite",
            "--log=error",
            timeout=self.timeout,
        )
        if not output_path.is_file():
            raise RenderError(f"Render finished without writing {output_path.name}")
        logger.info("Rendered %s", output_path)
        return output_path
