"""
CLI helper to print the order the comic reader will show pages in.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sunbeam.comic import DirectoryAssetSource, resolve_pages
from sunbeam.config import get_settings

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="List resolved comic pages")
    parser.add_argument(
        "-d",
        "--dir",
        type=str,
        default=settings.comic_dir,
        help="Directory holding the comic page images",
    )
    parser.add_argument(
        "-p",
        "--url-prefix",
        type=str,
        default=settings.comic_url_prefix,
        help="URL prefix the pages are served under",
    )
    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level.upper())

    source = DirectoryAssetSource(directory=Path(args.dir), url_prefix=args.url_prefix)
    resolution = resolve_pages(source, args.url_prefix)
    if resolution.source == "fallback":
        logger.warning("Showing the built-in fallback list for %s", args.dir)
    if resolution.is_empty:
        print("No comic pages yet.")
        return 1
    for page in resolution.pages:
        print(f"{page.index:3d}  {page.filename:<30} {page.url}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
