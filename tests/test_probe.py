import asyncio
import json
import shlex
import sys

import pytest
from PIL import Image

from measure_media.config import MeasureConfig
from measure_media.models import Dimensions
from measure_media.probe import (
    FFProbe,
    PillowProbe,
    ProbeError,
    build_prober,
    parse_probe_output,
)


def _fake_ffprobe(tmp_path, body: str) -> str:
    """Write a Python script standing in for ffprobe and return its command line."""
    script = tmp_path / "fake_ffprobe.py"
    script.write_text("import json, sys, time\n" + body, encoding="utf-8")
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


def test_parse_probe_output_reads_first_stream() -> None:
    output = json.dumps({"streams": [{"width": 1920, "height": 1080}, {"width": 1, "height": 1}]})
    assert parse_probe_output(output, "v.mp4") == Dimensions(1920, 1080)


@pytest.mark.parametrize(
    "output",
    ["", "not json", '{"streams": []}', '{"streams": [{"width": 10}]}', "{}"],
)
def test_parse_probe_output_rejects_missing_stream_data(output) -> None:
    with pytest.raises(ProbeError) as excinfo:
        parse_probe_output(output, "v.mp4")
    assert excinfo.value.path == "v.mp4"


def test_build_command_follows_ffprobe_conventions() -> None:
    command = FFProbe("ffprobe").build_command("/media/v.mp4")
    assert command == [
        "ffprobe",
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_streams",
        "-select_streams",
        "v:0",
        "/media/v.mp4",
    ]


def test_ffprobe_reports_stream_size(tmp_path) -> None:
    bin = _fake_ffprobe(
        tmp_path,
        'print(json.dumps({"streams": [{"width": 320, "height": 240, "path": sys.argv[-1]}]}))\n',
    )
    dimensions = asyncio.run(FFProbe(bin).probe(str(tmp_path / "clip.mp4")))
    assert dimensions == Dimensions(320, 240)


def test_ffprobe_non_zero_exit_is_a_probe_error(tmp_path) -> None:
    bin = _fake_ffprobe(tmp_path, 'sys.stderr.write("clip.mp4: Invalid data\\n")\nsys.exit(1)\n')
    with pytest.raises(ProbeError) as excinfo:
        asyncio.run(FFProbe(bin).probe("clip.mp4"))
    assert "status 1" in excinfo.value.reason
    assert "Invalid data" in excinfo.value.reason


def test_ffprobe_missing_binary_is_a_probe_error(tmp_path) -> None:
    with pytest.raises(ProbeError):
        asyncio.run(FFProbe(str(tmp_path / "no-such-ffprobe")).probe("clip.mp4"))


def test_ffprobe_timeout_kills_the_process(tmp_path) -> None:
    bin = _fake_ffprobe(tmp_path, "time.sleep(10)\n")
    with pytest.raises(ProbeError) as excinfo:
        asyncio.run(FFProbe(bin, timeout=0.5).probe("clip.mp4"))
    assert "timed out" in excinfo.value.reason


def test_empty_probe_command_is_rejected() -> None:
    with pytest.raises(ValueError):
        FFProbe("  ")


def test_pillow_probe_reads_image_size(tmp_path) -> None:
    path = tmp_path / "a.png"
    Image.new("RGB", (12, 34)).save(path)
    assert asyncio.run(PillowProbe().probe(str(path))) == Dimensions(12, 34)


def test_pillow_probe_rejects_non_images(tmp_path) -> None:
    path = tmp_path / "a.png"
    path.write_text("not an image", encoding="utf-8")
    with pytest.raises(ProbeError):
        asyncio.run(PillowProbe().probe(str(path)))
    with pytest.raises(ProbeError):
        asyncio.run(PillowProbe().probe(str(tmp_path / "missing.png")))


def test_build_prober_picks_backend() -> None:
    assert isinstance(build_prober(MeasureConfig()), FFProbe)
    assert isinstance(build_prober(MeasureConfig(bin="pillow")), PillowProbe)
    prober = build_prober(MeasureConfig(bin="docker run --rm ffprobe", timeout=5))
    assert isinstance(prober, FFProbe)
    assert prober.command == ["docker", "run", "--rm", "ffprobe"]
    assert prober.timeout == 5
