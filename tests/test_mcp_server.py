import asyncio

import pytest

from measure_media.mcp_server import measure_file, measure_html


def test_measure_html_leaves_remote_media_alone(tmp_path) -> None:
    html = '<img src="https://cdn.example.com/a.jpg" data-measure-media-exclude>'
    out = asyncio.run(measure_html(html, str(tmp_path)))
    assert out == '<img src="https://cdn.example.com/a.jpg">'


def test_measure_file_requires_existing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        asyncio.run(measure_file(str(tmp_path / "missing.html")))
