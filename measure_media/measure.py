"""High-level orchestration for measuring media and annotating markup."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Union

from .config import MeasureConfig
from .filters import is_eligible
from .models import Dimensions, Element, Node
from .paths import base_directory, resolve_reference
from .probe import ProbeError, Prober, build_prober
from .tree import flatten, parse_fragment, serialize

logger = logging.getLogger("measure_media")

MEDIA_TAGS = ("picture", "source", "img", "video")


@dataclass
class TransformResult:
    """Transformed markup plus counts for a single document."""

    html: str
    measured: int
    failed: int
    seconds: float


def _elements(nodes: Iterable[Node], tag: str) -> Iterator[Element]:
    for node in nodes:
        if isinstance(node, Element) and node.tag == tag:
            yield node


def merge_dimensions(element: Element, dimensions: Dimensions, override: bool) -> None:
    """Add measured ``width``/``height`` to an element.

    With ``override`` existing values are replaced; otherwise only missing
    dimensions are added.
    """
    measured = dimensions.as_attributes()
    if override:
        element.remove_attribute("width")
        element.remove_attribute("height")
    else:
        measured = [attr for attr in measured if not element.has_attribute(attr.name)]
    element.attrs = [*element.attrs, *measured]


class MeasureSession:
    """Pending probes and settings for one document."""

    def __init__(self, config: MeasureConfig, prober: Prober, base_dir: str) -> None:
        self.config = config
        self.prober = prober
        self.base_dir = base_dir
        self.pending: List[asyncio.Task] = []
        self.measured = 0
        self.failed = 0

    def resolve(self, value: Optional[str]) -> Optional[str]:
        path = resolve_reference(value, self.base_dir, self.config.exclude_url)
        if path is None:
            logger.debug("Skipping reference %r", value)
        return path

    def schedule(self, element: Element, path: Optional[str]) -> None:
        """Mark ``element`` done and start probing ``path`` in the background."""
        if path is None:
            return
        element.set_attribute(self.config.done, "")
        self.pending.append(asyncio.create_task(self._measure(element, path)))

    async def _measure(self, element: Element, path: str) -> Optional[Dimensions]:
        try:
            dimensions = await self.prober.probe(path)
        except ProbeError as exc:
            self.failed += 1
            logger.error("Failed to measure %s: %s", path, exc.reason)
            return None
        merge_dimensions(element, dimensions, self.config.override)
        self.measured += 1
        logger.debug("Measured %s as %dx%d", path, dimensions.width, dimensions.height)
        return dimensions

    def measure_pictures(self, nodes: List[Node]) -> None:
        config = self.config
        for picture in _elements(nodes, "picture"):
            sources = picture.child_elements("source")
            img = next(
                (item for item in picture.child_elements("img") if item.has_attribute("src")),
                None,
            )

            if is_eligible(picture, config):
                for source in sources:
                    if is_eligible(source, config, nested=True) and source.has_attribute("srcset"):
                        self.schedule(source, self.resolve(source.get_attribute("srcset")))

                if img is not None and (
                    not sources or (config.nested_img and is_eligible(img, config, nested=True))
                ):
                    self.schedule(img, self.resolve(img.get_attribute("src")))

            # The fallback image belongs to the picture; keep the img pass away from it.
            if img is not None:
                img.set_attribute(config.done, "")

    def measure_images(self, nodes: List[Node]) -> None:
        config = self.config
        for img in _elements(nodes, "img"):
            if (
                is_eligible(img, config)
                and not img.has_attribute(config.done)
                and img.has_attribute("src")
            ):
                self.schedule(img, self.resolve(img.get_attribute("src")))

    def measure_videos(self, nodes: List[Node]) -> None:
        config = self.config
        for video in _elements(nodes, "video"):
            if not is_eligible(video, config):
                continue
            if video.has_attribute("src"):
                self.schedule(video, self.resolve(video.get_attribute("src")))
                continue
            source = next(
                (item for item in video.child_elements("source") if item.has_attribute("src")),
                None,
            )
            if source is not None:
                self.schedule(video, self.resolve(source.get_attribute("src")))

    async def settle(self) -> None:
        """Wait for every pending probe, whatever its outcome."""
        pending, self.pending = self.pending, []
        results = await asyncio.gather(*pending, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                self.failed += 1
                logger.error("Unexpected error while measuring media", exc_info=result)

    def cleanup(self, nodes: List[Node]) -> None:
        config = self.config
        for node in nodes:
            if isinstance(node, Element) and node.tag in MEDIA_TAGS:
                node.remove_attribute(config.done)
                if config.clear:
                    node.remove_attribute(config.exclude)
                    node.remove_attribute(config.include)


class MeasureMedia:
    """Inject measured ``width``/``height`` attributes into HTML documents."""

    name = "measure-media"

    def __init__(
        self,
        config: Optional[MeasureConfig] = None,
        prober: Optional[Prober] = None,
    ) -> None:
        self.config = config or MeasureConfig()
        self.prober = prober or build_prober(self.config)

    async def transform_document(
        self,
        html: str,
        filename: Union[str, os.PathLike],
    ) -> TransformResult:
        """Measure media in ``html`` whose references are relative to ``filename``."""
        start = time.perf_counter()
        fragment = parse_fragment(html)
        nodes = flatten(fragment.children)
        session = MeasureSession(self.config, self.prober, base_directory(os.fspath(filename)))

        if self.config.image:
            session.measure_pictures(nodes)
            session.measure_images(nodes)
        if self.config.video:
            session.measure_videos(nodes)

        await session.settle()
        session.cleanup(nodes)
        return TransformResult(
            html=serialize(fragment),
            measured=session.measured,
            failed=session.failed,
            seconds=time.perf_counter() - start,
        )

    async def transform(self, html: str, filename: Union[str, os.PathLike]) -> str:
        result = await self.transform_document(html, filename)
        return result.html

    def transform_sync(self, html: str, filename: Union[str, os.PathLike]) -> str:
        return asyncio.run(self.transform(html, filename))
