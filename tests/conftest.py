import asyncio
import os
from typing import Dict, List, Optional

import pytest

from measure_media.models import Dimensions
from measure_media.probe import ProbeError


class FakeProber:
    """Answers probes from a table keyed by file name; unknown files fail."""

    def __init__(
        self,
        sizes: Dict[str, Dimensions],
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.sizes = sizes
        self.delays = delays or {}
        self.calls: List[str] = []

    async def probe(self, path: str) -> Dimensions:
        name = os.path.basename(path)
        self.calls.append(path)
        await asyncio.sleep(self.delays.get(name, 0))
        if name not in self.sizes:
            raise ProbeError(path, "invalid data found when processing input")
        return self.sizes[name]

    @property
    def names(self) -> List[str]:
        return [os.path.basename(path) for path in self.calls]


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber(
        {
            "a.jpg": Dimensions(640, 480),
            "b.jpg": Dimensions(800, 600),
            "img.jpg": Dimensions(100, 50),
            "t.jpg": Dimensions(10, 20),
            "v.mp4": Dimensions(1920, 1080),
            "fallback.mp4": Dimensions(1280, 720),
        }
    )


@pytest.fixture
def document(tmp_path):
    return tmp_path / "index.html"
