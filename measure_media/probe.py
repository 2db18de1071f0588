"""Dimension probing backends."""

from __future__ import annotations

import asyncio
import json
import logging
import shlex
from typing import List, Optional, Protocol, Union

from PIL import Image

from .config import DEFAULT_BIN, MeasureConfig
from .models import Dimensions

logger = logging.getLogger("measure_media")

PILLOW_BIN = "pillow"


class ProbeError(RuntimeError):
    """Raised when a media file's dimensions cannot be determined."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class Prober(Protocol):
    async def probe(self, path: str) -> Dimensions:
        ...


def parse_probe_output(output: Union[bytes, str], path: str) -> Dimensions:
    """Read the first video stream's size from ``ffprobe`` JSON output."""
    try:
        data = json.loads(output)
        stream = data["streams"][0]
        return Dimensions(int(stream["width"]), int(stream["height"]))
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        raise ProbeError(path, f"no stream dimensions in probe output ({exc!r})") from exc


class FFProbe:
    """Measure media by running ``ffprobe`` (or a compatible command)."""

    def __init__(self, bin: str = DEFAULT_BIN, timeout: Optional[float] = None) -> None:
        self.command = shlex.split(bin)
        if not self.command:
            raise ValueError("Probe command must not be empty")
        self.timeout = timeout

    def build_command(self, path: str) -> List[str]:
        return [
            *self.command,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_streams",
            "-select_streams",
            "v:0",
            path,
        ]

    async def probe(self, path: str) -> Dimensions:
        command = self.build_command(path)
        logger.debug("Probing %s", path)
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ProbeError(path, f"failed to start {self.command[0]}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), self.timeout)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            raise ProbeError(path, f"{self.command[0]} timed out after {self.timeout}s") from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise ProbeError(
                path,
                f"{self.command[0]} exited with status {process.returncode}"
                + (f": {detail}" if detail else ""),
            )
        return parse_probe_output(stdout, path)


class PillowProbe:
    """Measure raster images in-process with Pillow; no video support."""

    async def probe(self, path: str) -> Dimensions:
        logger.debug("Reading image size of %s", path)
        return await asyncio.to_thread(self._read_size, path)

    @staticmethod
    def _read_size(path: str) -> Dimensions:
        try:
            with Image.open(path) as image:
                width, height = image.size
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise ProbeError(path, str(exc)) from exc
        return Dimensions(width, height)


def build_prober(config: MeasureConfig) -> Prober:
    """Pick the probing backend named by ``config.bin``."""
    if config.bin.strip().lower() == PILLOW_BIN:
        return PillowProbe()
    return FFProbe(config.bin, config.timeout)
