"""Command-line entry point for measuring media in built HTML files."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .config import (
    DEFAULT_BIN,
    DEFAULT_DONE_ATTR,
    DEFAULT_EXCLUDE_ATTR,
    DEFAULT_INCLUDE_ATTR,
    FILTER_MODES,
    MeasureConfig,
)
from .measure import MeasureMedia

logger = logging.getLogger("measure_media.cli")

HTML_SUFFIXES = {".html", ".htm"}


@dataclass
class FileOutcome:
    path: Path
    changed: bool
    measured: int
    failed: int


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Add width/height attributes to media elements in built HTML files.",
    )
    parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="HTML files, or directories searched recursively for *.html",
    )
    parser.add_argument(
        "--bin",
        default=DEFAULT_BIN,
        help=f"Probe command (default: {DEFAULT_BIN}); use 'pillow' to read images in-process",
    )
    parser.add_argument(
        "--filter",
        choices=FILTER_MODES,
        default="exclude",
        help="Measure everything except excluded elements, or only included ones",
    )
    parser.add_argument("--include", default=DEFAULT_INCLUDE_ATTR, help="Include marker attribute")
    parser.add_argument("--exclude", default=DEFAULT_EXCLUDE_ATTR, help="Exclude marker attribute")
    parser.add_argument("--done", default=DEFAULT_DONE_ATTR, help="Internal done marker attribute")
    parser.add_argument(
        "--exclude-url",
        action="append",
        default=[],
        metavar="SUBSTRING",
        help="Skip references containing this substring (case-insensitive); repeatable",
    )
    parser.add_argument(
        "--no-override",
        dest="override",
        action="store_false",
        help="Keep existing width/height values instead of replacing them",
    )
    parser.add_argument(
        "--no-clear",
        dest="clear",
        action="store_false",
        help="Leave include/exclude marker attributes in the output",
    )
    parser.add_argument("--no-image", dest="image", action="store_false", help="Skip images")
    parser.add_argument("--no-video", dest="video", action="store_false", help="Skip videos")
    parser.add_argument(
        "--nested-img",
        action="store_true",
        help="Also measure a picture's <img> when it has <source> children",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for each probe before giving up",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report which files would change without writing them",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the transformed document instead of rewriting it (single file only)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MeasureConfig:
    return MeasureConfig(
        bin=args.bin,
        filter=args.filter,
        include=args.include,
        exclude=args.exclude,
        done=args.done,
        exclude_url=tuple(args.exclude_url),
        override=args.override,
        clear=args.clear,
        image=args.image,
        video=args.video,
        nested_img=args.nested_img,
        timeout=args.timeout,
    )


def collect_html_files(paths: Sequence[Path]) -> List[Path]:
    """Expand directories into the HTML files they contain."""
    files: List[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(
                sorted(p for p in path.rglob("*") if p.is_file() and p.suffix.lower() in HTML_SUFFIXES)
            )
        elif path.is_file():
            files.append(path)
        else:
            logger.warning("Skipping %s: no such file or directory", path)
    return files


async def process_file(
    path: Path,
    plugin: MeasureMedia,
    dry_run: bool = False,
    to_stdout: bool = False,
) -> FileOutcome | None:
    try:
        with path.open("r", encoding="utf-8", newline="") as fh:
            html = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Skipping %s: %s", path, exc)
        return None

    result = await plugin.transform_document(html, path.resolve())
    changed = result.html != html
    logger.debug("Processed %s in %.2fs", path, result.seconds)

    if to_stdout:
        sys.stdout.write(result.html)
        sys.stdout.flush()
    elif changed and not dry_run:
        try:
            with path.open("w", encoding="utf-8", newline="") as fh:
                fh.write(result.html)
        except OSError as exc:
            logger.error("Failed to write %s: %s", path, exc)
            return None
        logger.info("Updated %s (%d measured, %d failed)", path, result.measured, result.failed)
    elif changed:
        logger.info("Would update %s (%d measured, %d failed)", path, result.measured, result.failed)
    else:
        logger.debug("No changes for %s", path)

    return FileOutcome(path=path, changed=changed, measured=result.measured, failed=result.failed)


async def run(files: Sequence[Path], plugin: MeasureMedia, dry_run: bool, to_stdout: bool) -> List[FileOutcome]:
    """Process files one after another; probes inside each file run concurrently."""
    outcomes: List[FileOutcome] = []
    for path in files:
        outcome = await process_file(path, plugin, dry_run=dry_run, to_stdout=to_stdout)
        if outcome:
            outcomes.append(outcome)
    return outcomes


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    try:
        plugin = MeasureMedia(build_config(args))
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    files = collect_html_files(args.paths)
    if not files:
        logger.error("No HTML files found")
        return 1
    if args.stdout and len(files) != 1:
        logger.error("--stdout needs exactly one HTML file, got %d", len(files))
        return 2

    overall_start = time.perf_counter()
    outcomes = asyncio.run(run(files, plugin, args.dry_run, args.stdout))
    total_elapsed = time.perf_counter() - overall_start

    logger.info(
        "Finished in %.2fs (%d file(s), %d changed, %d element(s) measured, %d failed)",
        total_elapsed,
        len(outcomes),
        sum(1 for outcome in outcomes if outcome.changed),
        sum(outcome.measured for outcome in outcomes),
        sum(outcome.failed for outcome in outcomes),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
