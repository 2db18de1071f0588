"""Turn markup references into probe-able local file paths."""

from __future__ import annotations

import os
import re
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit

CANDIDATE_SEPARATOR = re.compile(r",\s+")
DESCRIPTOR_PATTERN = re.compile(r"\s+\d+(?:\.\d+)?[xw]$")
QUERY_PATTERN = re.compile(r"\?[^/#?\s]*")
FRAGMENT_PATTERN = re.compile(r"#[^/#?\s]*")
VECTOR_EXTS = {".svg"}


def base_directory(path: str) -> str:
    """Directory used to resolve relative references for a document path."""
    if os.path.isdir(path):
        return path
    return os.path.dirname(path)


def first_candidate(value: str) -> str:
    """Return the first entry of a ``srcset``-style list without its descriptor."""
    candidates = CANDIDATE_SEPARATOR.split(value.strip())
    return DESCRIPTOR_PATTERN.sub("", candidates[0])


def sanitize_path(value: str) -> str:
    """Drop the query string and fragment from a reference."""
    return FRAGMENT_PATTERN.sub("", QUERY_PATTERN.sub("", value, count=1), count=1)


def is_local_path(value: str) -> bool:
    # Strings that fail to parse as URLs count as local; malformed references
    # are therefore probed and fail there instead of being skipped here.
    try:
        return not urlsplit(value).scheme
    except ValueError:
        return True


def is_excluded(value: str, exclude_url: Iterable[str]) -> bool:
    lowered = value.lower()
    return any(pattern.lower() in lowered for pattern in exclude_url)


def resolve_reference(
    value: Any,
    base_dir: str,
    exclude_url: Iterable[str] = (),
) -> Optional[str]:
    """Resolve a ``src`` or ``srcset`` value to an absolute local path.

    Returns ``None`` for anything that should not be measured: non-string
    values, excluded URLs, SVG files and remote URLs.
    """
    if not isinstance(value, str):
        return None
    if is_excluded(value, exclude_url):
        return None

    candidate = first_candidate(value)
    sanitized = sanitize_path(candidate)
    if not sanitized:
        return None
    if os.path.splitext(sanitized)[1].lower() in VECTOR_EXTS:
        return None
    if not is_local_path(candidate):
        return None
    return os.path.abspath(os.path.join(base_dir, sanitized))
