"""MCP server exposing the measure-media transform as a tool."""

from __future__ import annotations

import logging
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from .config import MeasureConfig
from .measure import MeasureMedia

logger = logging.getLogger("measure_media.mcp")
logger.setLevel(logging.ERROR)

mcp = FastMCP(name="measure-media")


@mcp.tool()
async def measure_html(
    html: str,
    path: str,
    override: bool = True,
    filter: str = "exclude",
) -> str:
    """Add width/height attributes to local media referenced by an HTML document.

    ``path`` is the document's location (or its directory) and anchors
    relative media references.
    """

    source = Path(path).expanduser()
    config = MeasureConfig(override=override, filter=filter)
    plugin = MeasureMedia(config)
    return await plugin.transform(html, source)


@mcp.tool()
async def measure_file(path: str) -> str:
    """Return the contents of an HTML file with media dimensions injected."""

    source = Path(path).expanduser()
    if not source.is_file():
        raise FileNotFoundError(f"HTML file does not exist: {source}")
    html = source.read_text(encoding="utf-8")
    return await MeasureMedia().transform(html, source.resolve())


def main() -> None:
    """Entry point for running the MCP server."""
    logging.basicConfig(level=logging.ERROR)
    mcp.run()


if __name__ == "__main__":
    main()
