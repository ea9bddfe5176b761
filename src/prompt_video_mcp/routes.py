"""HTTP routes served next to the MCP endpoint.

``POST /api/generate`` and ``GET /api/models`` mirror the MCP tools for
browser clients; rendered files are served under the configured public
path so each ``videoUrl`` is playable as returned.
"""

from __future__ import annotations

import json
import logging
import re

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import FileResponse, JSONResponse, Response

from .config import get_config
from .prereqs import check_prereqs
from .request import handle_generate_request, list_available_models

logger = logging.getLogger(__name__)

_RENDER_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+\.mp4$")


async def generate_endpoint(request: Request) -> Response:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    status, payload = await handle_generate_request(body)
    return JSONResponse(payload, status_code=status)


async def models_endpoint(request: Request) -> Response:
    return JSONResponse({"ok": True, "models": await list_available_models()})


async def render_file_endpoint(request: Request) -> Response:
    name = request.path_params["name"]
    output_dir = get_config().resolved_output_dir
    path = (output_dir / name).resolve()
    if not _RENDER_NAME_RE.match(name) or path.parent != output_dir or not path.is_file():
        return JSONResponse({"ok": False, "error": "Render not found"}, status_code=404)
    return FileResponse(path, media_type="video/mp4")


async def health_endpoint(request: Request) -> Response:
    report = check_prereqs()
    return JSONResponse(report.model_dump(), status_code=200 if report.all_ok else 503)


def route_table() -> list[tuple[str, list[str], object]]:
    """``(path, methods, endpoint)`` for every HTTP route."""
    public = get_config().render_public_path.rstrip("/")
    return [
        ("/api/generate", ["POST"], generate_endpoint),
        ("/api/models", ["GET"], models_endpoint),
        (f"{public}/{{name}}", ["GET"], render_file_endpoint),
        ("/health", ["GET"], health_endpoint),
    ]


def register_routes(app: FastMCP) -> None:
    for path, methods, endpoint in route_table():
        app.custom_route(path, methods=methods)(endpoint)
    logger.debug("Registered %d HTTP route(s)", len(route_table()))
