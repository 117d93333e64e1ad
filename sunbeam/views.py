"""
Render states for data-backed pages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Generic, TypeVar, Union

from sunbeam.db import DataStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Empty:
    kind: ClassVar[str] = "empty"


@dataclass(frozen=True)
class Failed:
    message: str
    kind: ClassVar[str] = "failed"


@dataclass(frozen=True)
class Ready(Generic[T]):
    data: T
    kind: ClassVar[str] = "ready"


ViewState = Union[Empty, Failed, Ready[Any]]


def load_state(fetch: Callable[[], T], *, failure_message: str) -> ViewState:
    """Run ``fetch`` and wrap the outcome for the template."""
    try:
        data = fetch()
    except DataStoreError:
        logger.exception("Data store read failed")
        return Failed(failure_message)
    if data is None or (hasattr(data, "__len__") and len(data) == 0):
        return Empty()
    return Ready(data)
