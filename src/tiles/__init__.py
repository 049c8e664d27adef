"""Tile loading and caching.

This module provides:
- TileDiskCache: per-source JPEG tile cache on disk
- resolve_url: {x}/{y}/{z} URL template substitution
- TileRecord: per-tile state of a batch
- TileLoader: concurrent batch loader with completion notification
"""

from tiles.cache import CacheDirectoryError, TileDiskCache, cache_dir, cache_path
from tiles.events import (
    BatchComplete,
    EventDispatcher,
    FetchInitiated,
    ImageReceived,
    TileError,
    TileListener,
    TileWarning,
)
from tiles.loader import FetchResult, TileLoader
from tiles.record import TileRecord, TileState
from tiles.urls import resolve_url

__all__ = [
    'BatchComplete',
    'CacheDirectoryError',
    'EventDispatcher',
    'FetchInitiated',
    'FetchResult',
    'ImageReceived',
    'TileDiskCache',
    'TileError',
    'TileListener',
    'TileLoader',
    'TileRecord',
    'TileState',
    'TileWarning',
    'cache_dir',
    'cache_path',
    'resolve_url',
]
