"""On-disk tile cache keyed by tile source.

Every tile source (URL template) gets its own sub-directory named after a
stable hash of the template; tiles inside it are stored as one JPEG file
per (x, y, z):

    cache_root/
      └─ <hash-of-template>/
          ├─ x0_y0_z1.jpg
          └─ x1_y0_z1.jpg
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from PIL import Image

from shared.constants import CACHE_TILE_FORMAT, CACHE_TILE_NAME, SOURCE_HASH_BYTES

logger = logging.getLogger(__name__)


class CacheDirectoryError(RuntimeError):
    """Raised when the cache directory for a tile source cannot be created."""


def source_hash(template: str) -> int:
    """Stable 64-bit hash of a tile source template.

    Python's built-in hash() is salted per process, so a BLAKE2b digest is
    used to get the same directory name across runs and platforms.
    """
    digest = hashlib.blake2b(
        template.encode('utf-8'), digest_size=SOURCE_HASH_BYTES
    ).digest()
    return int.from_bytes(digest, 'big')


def cache_dir(template: str, cache_root: str | Path) -> Path:
    """Return (and create) the cache directory for a tile source.

    Args:
        template: Tile source URL template.
        cache_root: Root directory shared by all sources.

    Returns:
        Normalized path to the source directory.

    Raises:
        CacheDirectoryError: If the directory cannot be created.
    """
    path = Path(os.path.normpath(Path(cache_root) / str(source_hash(template))))
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f'Failed to create cache folder: {path}'
        raise CacheDirectoryError(msg) from e
    return path


def cache_name(x: int, y: int, z: int) -> str:
    return CACHE_TILE_NAME.format(x=x, y=y, z=z)


def cache_path(directory: str | Path, x: int, y: int, z: int) -> Path:
    """Path of the cached file for tile (x, y, z) inside `directory`."""
    return Path(directory) / cache_name(x, y, z)


class TileDiskCache:
    """JPEG tile store for a single tile source.

    Usage:
        cache = TileDiskCache.for_source(template, '/tmp/tiles')
        if cache.exists(x, y, z):
            img = cache.load(x, y, z)
        else:
            cache.store(x, y, z, img)
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @classmethod
    def for_source(cls, template: str, cache_root: str | Path) -> TileDiskCache:
        directory = cache_dir(template, cache_root)
        logger.info('Tile cache for %s at %s', template, directory)
        return cls(directory)

    def path_for(self, x: int, y: int, z: int) -> Path:
        return cache_path(self.directory, x, y, z)

    def exists(self, x: int, y: int, z: int) -> bool:
        return self.path_for(x, y, z).exists()

    def load(self, x: int, y: int, z: int) -> Image.Image:
        """Read a cached tile fully into memory.

        Raises:
            OSError: If the file is missing or is not a readable image.
        """
        path = self.path_for(x, y, z)
        with Image.open(path) as img:
            img.load()
            return img.copy()

    def store(self, x: int, y: int, z: int, image: Image.Image) -> Path:
        """Persist a tile as JPEG, overwriting any previous file."""
        path = self.path_for(x, y, z)
        rgb = image if image.mode == 'RGB' else image.convert('RGB')
        rgb.save(path, CACHE_TILE_FORMAT)
        logger.debug('Cached tile z/x/y=%d/%d/%d at %s', z, x, y, path)
        return path
