"""Main FastMCP server: generate tools plus the HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .config import get_config
from .routes import register_routes
from .tools.generate import generate_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook: tracing setup and trace flush."""
    tracing.setup()
    cfg = get_config()
    logger.info(
        "Rendering in %s, serving %s from %s",
        cfg.resolved_project_dir,
        cfg.render_public_path,
        cfg.resolved_output_dir,
    )
    yield {}
    tracing.shutdown()


app = FastMCP(
    "prompt-video",
    instructions=(
        "Prompt-to-video generation. Gemini writes style-distinct Remotion "
        "compositions and the server renders each one to MP4."
    ),
    lifespan=_lifespan,
)

app.mount(generate_server)
register_routes(app)


def main() -> None:
    """Entry-point for the ``prompt-video-mcp`` console script (streamable HTTP)."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    cfg = get_config()
    app.run(transport="http", host=cfg.http_host, port=cfg.http_port)


if __name__ == "__main__":
    main()
