"""
Batch loading of map tiles around a point.

TileLoader computes the block of tiles around the centre tile, serves what it
can from the disk cache and requests the rest concurrently. Every request
completion is handled synchronously on the event loop, so record updates and
the completion check never interleave.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from dataclasses import dataclass
from io import BytesIO
from typing import TYPE_CHECKING

import aiohttp
from aiohttp import hdrs
from PIL import Image
from yarl import URL

from geo.tile_math import resolution, tile_range, to_tile_coords
from infrastructure.http.client import default_headers, make_http_session
from infrastructure.http.proxy import parse_proxy
from shared.constants import HTTP_ERROR_MIN, HTTP_REDIRECT_CODES
from tiles.cache import TileDiskCache
from tiles.events import (
    BatchComplete,
    EventDispatcher,
    FetchInitiated,
    ImageReceived,
    Subscriber,
    TileError,
    TileEvent,
    TileWarning,
)
from tiles.record import TileRecord, TileState
from tiles.urls import resolve_url

if TYPE_CHECKING:
    from domain.models import TileSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a single HTTP request."""

    url: URL
    status: int | None = None
    payload: bytes = b''
    redirect: URL | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        if self.error is not None:
            return True
        return self.status is not None and self.status >= HTTP_ERROR_MIN

    @property
    def code(self) -> str:
        return self.error if self.error is not None else str(self.status)


def decode_image(payload: bytes) -> Image.Image:
    """Decode image bytes (png/jpg/webp...) into an RGB image.

    Raises:
        OSError: If the payload is not a readable image.
    """
    with Image.open(BytesIO(payload)) as img:
        img.load()
        return img.convert('RGB')


class TileLoader:
    """Loads the tiles around a point for one tile source.

    Usage:
        async with TileLoader(source, listener=on_event) as loader:
            loader.start()
            complete = await loader.wait_idle()
    """

    def __init__(
        self,
        source: TileSource,
        *,
        session: aiohttp.ClientSession | None = None,
        listener: Subscriber | None = None,
    ) -> None:
        self.source = source

        # centre tile and the fractional position of the point inside it
        x, y = to_tile_coords(source.latitude, source.longitude, source.zoom)
        self.center_tile = (math.floor(x), math.floor(y))
        self.origin_offset = (x - self.center_tile[0], y - self.center_tile[1])
        logger.debug('Center tile coords: %s, %s', x, y)

        self.cache = TileDiskCache.for_source(source.service, source.cache_root)
        self.proxy = parse_proxy(source.proxy)

        self.events = EventDispatcher()
        if listener is not None:
            self.events.subscribe(listener)

        self._session = session
        self._owns_session = session is None
        self._tiles: list[TileRecord] = []
        self._pending: set[asyncio.Task] = set()
        self._generation = 0
        self._completed_generation: int | None = None
        self._stats = self._empty_stats()

    async def __aenter__(self) -> TileLoader:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -------- public API --------

    @property
    def zoom(self) -> int:
        return self.source.zoom

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def tiles(self) -> list[TileRecord]:
        return list(self._tiles)

    @property
    def is_complete(self) -> bool:
        return all(t.has_image() for t in self._tiles)

    @property
    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    def resolution(self) -> float:
        """Metres per pixel at the source latitude and zoom."""
        return resolution(self.source.latitude, self.zoom)

    def inside_center_tile(self, lat: float, lon: float) -> bool:
        x, y = to_tile_coords(lat, lon, self.zoom)
        return (math.floor(x), math.floor(y)) == self.center_tile

    def start(self) -> None:
        """Begin loading a fresh batch; must be called from a running loop.

        Any previous batch is discarded and its requests cancelled.
        """
        self.abort()
        gen = self._generation
        cx, cy = self.center_tile
        z = self.zoom
        logger.debug(
            'loading %d blocks around tile=(%d,%d)', self.source.blocks, cx, cy
        )

        for y in tile_range(cy, self.source.blocks, z):
            for x in tile_range(cx, self.source.blocks, z):
                record = TileRecord(x=x, y=y, z=z)
                self._tiles.append(record)
                if self.cache.exists(x, y, z):
                    self._load_cached(record)
                elif not self.source.offline:
                    self._request(record, gen)
                else:
                    self._stats['offline_misses'] += 1

        logger.info(
            'Batch %d: %d tiles, %d cached, %d requested',
            gen,
            len(self._tiles),
            self._stats['cache_hits'],
            self._stats['requests'],
        )
        self._check_if_loading_complete()

    def abort(self) -> None:
        """Cancel outstanding requests and drop the current batch."""
        for record in self._tiles:
            record.abort_loading()
        self._tiles.clear()
        self._generation += 1
        self._stats = self._empty_stats()

    async def wait_idle(self) -> bool:
        """Wait until no request is in flight; return whether the batch completed."""
        while self._pending:
            await asyncio.wait(set(self._pending))
        return self.is_complete

    async def close(self) -> None:
        self.abort()
        if self._pending:
            await asyncio.wait(set(self._pending))
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    # -------- internals --------

    @staticmethod
    def _empty_stats() -> dict[str, int]:
        return {
            'cache_hits': 0,
            'requests': 0,
            'redirects': 0,
            'fetched': 0,
            'failures': 0,
            'offline_misses': 0,
        }

    def _emit(self, event: TileEvent) -> None:
        self.events.emit(event)

    def _error(self, record: TileRecord, message: str) -> None:
        logger.warning(message)
        record.fail()
        self._stats['failures'] += 1
        self._emit(TileError(message))

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = make_http_session(
                self.proxy, timeout_s=self.source.request_timeout_s
            )
        return self._session

    def _load_cached(self, record: TileRecord) -> None:
        try:
            image = self.cache.load(record.x, record.y, record.z)
        except (OSError, ValueError):
            path = self.cache.path_for(record.x, record.y, record.z)
            self._error(record, f'Unable to decode cached image at {path}')
            return
        record.set_image(image, TileState.CACHE_HIT)
        self._stats['cache_hits'] += 1

    def _request(self, record: TileRecord, gen: int) -> None:
        try:
            url = resolve_url(self.source.service, record.x, record.y, record.z)
        except (ValueError, TypeError) as e:
            self._error(
                record,
                f'Invalid URL for tile z/x/y={record.z}/{record.x}/{record.y}: {e}',
            )
            return
        self._send(record, url, gen)
        self._stats['requests'] += 1
        self._emit(FetchInitiated(url=url, x=record.x, y=record.y, z=record.z))

    def _send(self, record: TileRecord, url: URL, gen: int) -> None:
        session = self._get_session()
        task = asyncio.get_running_loop().create_task(self._fetch(session, url))
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, record, gen))
        record.attach(task, url)

    async def _fetch(self, session: aiohttp.ClientSession, url: URL) -> FetchResult:
        proxy_url = self.proxy.url if self.proxy is not None else None
        try:
            async with session.get(
                url,
                headers=default_headers(),
                allow_redirects=False,
                proxy=proxy_url,
            ) as resp:
                payload = await resp.read()
                redirect = None
                if resp.status in HTTP_REDIRECT_CODES:
                    redirect = self._redirect_target(url, resp.headers.get(hdrs.LOCATION))
                return FetchResult(
                    url=url, status=resp.status, payload=payload, redirect=redirect
                )
        except asyncio.TimeoutError:
            return FetchResult(url=url, error='timeout')
        except aiohttp.ClientError as e:
            return FetchResult(url=url, error=type(e).__name__)

    @staticmethod
    def _redirect_target(url: URL, location: str | None) -> URL | None:
        if not location:
            return None
        try:
            return url.join(URL(location))
        except ValueError:
            logger.warning('Ignoring malformed redirect %r from %s', location, url)
            return None

    def _on_task_done(self, record: TileRecord, gen: int, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        if gen != self._generation or record.task is not task:
            # reply for a discarded batch or a superseded request
            logger.debug('Dropping stale reply for z/x/y=%d/%d/%d', record.z, record.x, record.y)
            return
        exc = task.exception()
        if exc is not None:
            logger.error('Tile request crashed', exc_info=exc)
            self._error(record, f'Failed loading {record.url} with code {type(exc).__name__}')
            self._check_if_loading_complete()
            return
        self._on_fetch_complete(record, gen, task.result())

    def _on_fetch_complete(self, record: TileRecord, gen: int, result: FetchResult) -> None:
        if result.redirect is not None and result.redirect not in record.visited:
            record.redirected_to = result.redirect
            record.state = TileState.REDIRECTED
            self._stats['redirects'] += 1
            self._emit(TileWarning(f'Redirected to {result.redirect}'))
            self._send(record, result.redirect, gen)
            return

        if result.failed:
            self._error(record, f'Failed loading {result.url} with code {result.code}')
        else:
            try:
                image = decode_image(result.payload)
            except (OSError, ValueError):
                # probably not an image
                self._error(record, f'Unable to decode image at {result.url}')
            else:
                record.set_image(image)
                self._stats['fetched'] += 1
                try:
                    self.cache.store(record.x, record.y, record.z, image)
                except OSError as e:
                    msg = f'Failed to cache tile z/x/y={record.z}/{record.x}/{record.y}: {e}'
                    logger.warning(msg)
                    self._emit(TileWarning(msg))
                self._emit(
                    ImageReceived(
                        url=result.url, x=record.x, y=record.y, z=record.z, image=image
                    )
                )
        self._check_if_loading_complete()

    def _check_if_loading_complete(self) -> bool:
        loaded = self.is_complete
        if loaded and self._completed_generation != self._generation:
            self._completed_generation = self._generation
            logger.info('Batch %d complete: %d tiles', self._generation, len(self._tiles))
            self._emit(BatchComplete(generation=self._generation, tile_count=len(self._tiles)))
        return loaded
