"""Per-tile state of a loading batch."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from PIL import Image
    from yarl import URL


class TileState(str, Enum):
    MISSING = 'missing'  # no file, no request (offline cache miss)
    CACHE_HIT = 'cache_hit'
    FETCHING = 'fetching'
    REDIRECTED = 'redirected'
    FETCHED = 'fetched'
    FAILED = 'failed'


@dataclass
class TileRecord:
    """A tile of the current batch.

    Holds at most one of: a pending fetch task or a decoded image. Setting the
    image drops the task reference, and a task is never attached again once an
    image is present.
    """

    x: int
    y: int
    z: int
    state: TileState = TileState.MISSING
    url: URL | None = None
    # last redirect target followed for this tile
    redirected_to: URL | None = None
    # every URL requested for this tile, original request included
    visited: set[URL] = field(default_factory=set, repr=False)
    _task: asyncio.Task | None = field(default=None, repr=False)
    _image: Image.Image | None = field(default=None, repr=False)

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.z, self.x, self.y)

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    @property
    def image(self) -> Image.Image | None:
        return self._image

    def has_image(self) -> bool:
        return self._image is not None

    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def attach(self, task: asyncio.Task, url: URL) -> None:
        """Associate a new in-flight request with this tile."""
        if self._image is not None:
            msg = f'Tile z/x/y={self.z}/{self.x}/{self.y} already has an image'
            raise RuntimeError(msg)
        self._task = task
        self.url = url
        self.visited.add(url)
        self.state = TileState.FETCHING

    def set_image(self, image: Image.Image, state: TileState = TileState.FETCHED) -> None:
        self._image = image
        self._task = None
        self.state = state

    def fail(self) -> None:
        self._task = None
        self.state = TileState.FAILED

    def abort_loading(self) -> None:
        """Cancel the pending request, if any."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
