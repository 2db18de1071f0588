"""Configuration objects and constants for the measurement pipeline."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional, Tuple

DEFAULT_BIN = "ffprobe"
DEFAULT_INCLUDE_ATTR = "data-measure-media-include"
DEFAULT_EXCLUDE_ATTR = "data-measure-media-exclude"
DEFAULT_DONE_ATTR = "data-measure-media-done"
FILTER_MODES = ("include", "exclude")

# camelCase option names kept for compatibility with existing plugin configs.
_OPTION_ALIASES = {
    "excludeUrl": "exclude_url",
    "nestedImg": "nested_img",
}


@dataclass(frozen=True)
class MeasureConfig:
    """Settings shared read-only by every stage of a transform."""

    bin: str = DEFAULT_BIN
    filter: str = "exclude"
    include: str = DEFAULT_INCLUDE_ATTR
    exclude: str = DEFAULT_EXCLUDE_ATTR
    done: str = DEFAULT_DONE_ATTR
    exclude_url: Tuple[str, ...] = ()
    override: bool = True
    clear: bool = True
    image: bool = True
    video: bool = True
    nested_img: bool = False
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.filter not in FILTER_MODES:
            raise ValueError(
                f"filter must be one of {', '.join(FILTER_MODES)}, got {self.filter!r}"
            )
        if isinstance(self.exclude_url, str):
            object.__setattr__(self, "exclude_url", (self.exclude_url,))
        else:
            object.__setattr__(self, "exclude_url", tuple(self.exclude_url))
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be a positive number of seconds")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "MeasureConfig":
        """Merge user options over the defaults.

        Both the camelCase option names (``excludeUrl``, ``nestedImg``) and the
        field names are accepted.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown option: {key}")
            values[name] = value
        return replace(cls(), **values)
