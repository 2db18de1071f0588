"""Include/exclude marker policy deciding which elements get measured."""

from __future__ import annotations

from .config import MeasureConfig
from .models import Element


def is_eligible(element: Element, config: MeasureConfig, nested: bool = False) -> bool:
    """Return whether ``element`` passes the configured marker filter.

    Nested elements (``<source>`` inside ``<picture>``, and optionally the
    picture's ``<img>``) inherit the parent's include decision, so in
    ``include`` mode they only need to avoid the exclude marker.
    """
    if config.filter == "exclude":
        return not element.has_attribute(config.exclude)
    if nested:
        return True
    return element.has_attribute(config.include)
