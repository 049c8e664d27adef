"""Notifications emitted by TileLoader to its host."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from PIL import Image
    from yarl import URL

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchInitiated:
    """A request for a tile was sent."""

    url: URL
    x: int
    y: int
    z: int


@dataclass(frozen=True)
class ImageReceived:
    """A tile image arrived, was decoded and written to the cache."""

    url: URL
    x: int
    y: int
    z: int
    image: Image.Image = field(repr=False, compare=False)


@dataclass(frozen=True)
class TileWarning:
    message: str


@dataclass(frozen=True)
class TileError:
    message: str


@dataclass(frozen=True)
class BatchComplete:
    """Every tile of the batch has an image."""

    generation: int
    tile_count: int


TileEvent = Union[FetchInitiated, ImageReceived, TileWarning, TileError, BatchComplete]


@runtime_checkable
class TileListener(Protocol):
    def on_event(self, event: TileEvent) -> None: ...


Subscriber = Union[TileListener, Callable[[TileEvent], None]]


class EventDispatcher:
    """Fan-out of loader events to subscribers.

    A failing subscriber is logged and skipped; the loader keeps going.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def __len__(self) -> int:
        return len(self._subscribers)

    def emit(self, event: TileEvent) -> None:
        for sub in list(self._subscribers):
            try:
                if isinstance(sub, TileListener):
                    sub.on_event(event)
                else:
                    sub(event)
            except Exception:
                logger.exception('Tile event subscriber %r failed on %r', sub, event)
