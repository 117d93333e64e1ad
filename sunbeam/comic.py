"""
Comic page discovery, ordering and reader navigation.

Pages are image files named after their place in the comic
(``coverpage.png``, ``chapter1.png``, ``chapter2.png`` ...). Numbers in the
names are not zero-padded, so ordering compares them numerically. When the
asset listing cannot be read, a fixed page list is served instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal, Optional, Protocol

logger = logging.getLogger(__name__)

IMG_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

# Served verbatim, in this order, when discovery fails.
FALLBACK_FILENAMES = (
    "coverpage.png",
    "chapter1.png",
    "chapter2.png",
    "finalchapter.png",
)

DIGITS_RE = re.compile(r"(\d+)")
CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class AssetDiscoveryError(RuntimeError):
    """The asset listing is unreachable or malformed."""


@dataclass(frozen=True)
class ComicPage:
    filename: str
    url: str
    index: int

    def as_dict(self) -> dict:
        return {"filename": self.filename, "url": self.url, "index": self.index}

    @property
    def number(self) -> int:
        return self.index + 1

    @property
    def title(self) -> str:
        return page_title(self.filename)


def natural_key(name: str) -> tuple:
    """Sort key comparing digit runs as integers and text case-insensitively.

    ``re.split`` with a capturing group alternates text and digit runs, so
    every key has text at even positions and integers at odd ones and keys
    stay comparable. The name itself is the last element, which makes the
    order total for names that differ only in case or zero-padding.
    """
    parts = DIGITS_RE.split(name)
    return (
        tuple(int(part) if i % 2 else part.casefold() for i, part in enumerate(parts)),
        name,
    )


def page_sort_key(name: str) -> tuple:
    stem = Path(name).stem.casefold()
    if stem.startswith("cover"):
        rank = 0
    elif stem.startswith("final"):
        rank = 2
    else:
        rank = 1
    return (rank, natural_key(name))


def page_title(filename: str) -> str:
    """Human label for a page: ``goldenGirl.png`` -> ``golden Girl``."""
    return CAMEL_RE.sub(" ", Path(filename).stem).strip()


def page_url(url_prefix: str, filename: str) -> str:
    return f"{url_prefix.rstrip('/')}/{filename}"


class AssetSource(Protocol):
    """Read-only listing of comic images: filename -> resolved URL."""

    def list_assets(self) -> dict[str, str]:
        ...


@dataclass
class DirectoryAssetSource:
    """Lists image files in a local directory served under ``url_prefix``."""

    directory: Path
    url_prefix: str = "/comicpages"

    def list_assets(self) -> dict[str, str]:
        directory = Path(self.directory)
        if not directory.is_dir():
            raise AssetDiscoveryError(f"Comic directory not found: {directory}")
        try:
            entries = list(directory.iterdir())
        except OSError as exc:
            raise AssetDiscoveryError(f"Cannot list {directory}") from exc
        return {
            p.name: page_url(self.url_prefix, p.name)
            for p in entries
            if p.is_file()
            and not p.name.startswith(".")
            and p.suffix.lower() in IMG_EXTS
        }


@dataclass
class StaticAssetSource:
    filenames: Iterable[str]
    url_prefix: str = "/comicpages"

    def list_assets(self) -> dict[str, str]:
        return {name: page_url(self.url_prefix, name) for name in self.filenames}


@dataclass(frozen=True)
class PageResolution:
    pages: tuple[ComicPage, ...]
    source: Literal["discovered", "fallback"]

    @property
    def is_empty(self) -> bool:
        return not self.pages

    def as_dict(self) -> dict:
        return {
            "source": self.source,
            "pages": [page.as_dict() for page in self.pages],
        }


def index_pages(assets: dict[str, str]) -> tuple[ComicPage, ...]:
    """Order discovered assets and number them from 0."""
    ordered = sorted(assets, key=page_sort_key)
    return tuple(
        ComicPage(filename=name, url=assets[name], index=i)
        for i, name in enumerate(ordered)
    )


def fallback_pages(url_prefix: str = "/comicpages") -> tuple[ComicPage, ...]:
    return tuple(
        ComicPage(filename=name, url=page_url(url_prefix, name), index=i)
        for i, name in enumerate(FALLBACK_FILENAMES)
    )


def resolve_pages(
    source: AssetSource, url_prefix: str = "/comicpages"
) -> PageResolution:
    """
    Discover and index comic pages.

    An empty listing is returned as-is so the caller can show "no pages yet";
    only a failed listing switches to the fallback list.
    """
    try:
        assets = source.list_assets()
    except (AssetDiscoveryError, OSError) as exc:
        logger.warning("Comic page discovery failed, using fallback list: %s", exc)
        return PageResolution(pages=fallback_pages(url_prefix), source="fallback")
    return PageResolution(pages=index_pages(assets), source="discovered")


@dataclass
class ReaderState:
    """Grid/reader navigation over ``page_count`` pages."""

    page_count: int
    mode: Literal["grid", "reader"] = "grid"
    current: int = 0

    @classmethod
    def from_query(cls, page_count: int, page: Optional[int]) -> "ReaderState":
        state = cls(page_count=page_count)
        if page is not None:
            state.open(page)
        return state

    @property
    def last_index(self) -> int:
        return max(self.page_count - 1, 0)

    @property
    def at_start(self) -> bool:
        return self.current == 0

    @property
    def at_end(self) -> bool:
        return self.current >= self.last_index

    def _clamp(self, index: int) -> int:
        return min(max(index, 0), self.last_index)

    def open(self, index: int) -> None:
        if self.page_count == 0:
            return
        self.mode = "reader"
        self.current = self._clamp(index)

    def next(self) -> None:
        if self.mode == "reader":
            self.current = self._clamp(self.current + 1)

    def previous(self) -> None:
        if self.mode == "reader":
            self.current = self._clamp(self.current - 1)

    def close(self) -> None:
        self.mode = "grid"

    def peek_next(self) -> int:
        return self._clamp(self.current + 1)

    def peek_previous(self) -> int:
        return self._clamp(self.current - 1)
