"""Tests for the on-disk tile cache."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from tiles.cache import (
    CacheDirectoryError,
    TileDiskCache,
    cache_dir,
    cache_name,
    cache_path,
    source_hash,
)

TEMPLATE = 'https://tiles.example.com/{z}/{x}/{y}.png'


class TestSourceHash:
    """Tests for source_hash function."""

    def test_stable_value(self):
        """The hash must not depend on the process (no salted hash())."""
        assert source_hash(TEMPLATE) == source_hash(str(TEMPLATE))
        assert 0 <= source_hash(TEMPLATE) < 2**64

    def test_different_templates_differ(self):
        other = 'https://other.example.com/{z}/{x}/{y}.png'
        assert source_hash(TEMPLATE) != source_hash(other)


class TestCacheDir:
    """Tests for cache_dir function."""

    def test_creates_directory(self, tmp_path):
        path = cache_dir(TEMPLATE, tmp_path / 'root')
        assert path.is_dir()
        assert path.parent == tmp_path / 'root'
        assert path.name == str(source_hash(TEMPLATE))

    def test_same_template_same_directory(self, tmp_path):
        assert cache_dir(TEMPLATE, tmp_path) == cache_dir(TEMPLATE, tmp_path)

    def test_different_templates_different_directories(self, tmp_path):
        a = cache_dir(TEMPLATE, tmp_path)
        b = cache_dir(TEMPLATE.replace('{x}/{y}', '{y}/{x}'), tmp_path)
        assert a != b

    def test_normalized(self, tmp_path):
        path = cache_dir(TEMPLATE, f'{tmp_path}//sub/./')
        assert path == tmp_path / 'sub' / str(source_hash(TEMPLATE))

    def test_uncreatable_raises(self, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text('not a directory')
        with pytest.raises(CacheDirectoryError, match='Failed to create cache folder'):
            cache_dir(TEMPLATE, blocker)


class TestCachePath:
    """Tests for cache_name / cache_path."""

    def test_name_layout(self):
        assert cache_name(3, 5, 7) == 'x3_y5_z7.jpg'

    def test_pure(self, tmp_path):
        assert cache_path(tmp_path, 1, 2, 3) == cache_path(tmp_path, 1, 2, 3)
        assert cache_path(tmp_path, 1, 2, 3) == tmp_path / 'x1_y2_z3.jpg'


class TestTileDiskCache:
    """Tests for TileDiskCache class."""

    @pytest.fixture
    def cache(self, tmp_path):
        return TileDiskCache.for_source(TEMPLATE, tmp_path)

    def test_exists_false_initially(self, cache):
        assert not cache.exists(0, 0, 1)

    def test_store_writes_jpeg(self, cache):
        path = cache.store(1, 0, 1, Image.new('RGB', (16, 16), (200, 10, 10)))
        assert path == cache.path_for(1, 0, 1)
        assert cache.exists(1, 0, 1)
        with Image.open(path) as img:
            assert img.format == 'JPEG'
            assert img.size == (16, 16)

    def test_store_converts_rgba(self, cache):
        cache.store(0, 0, 0, Image.new('RGBA', (8, 8), (0, 0, 255, 128)))
        img = cache.load(0, 0, 0)
        assert img.mode == 'RGB'

    def test_store_overwrites(self, cache):
        cache.store(0, 0, 0, Image.new('RGB', (8, 8)))
        cache.store(0, 0, 0, Image.new('RGB', (4, 4)))
        assert cache.load(0, 0, 0).size == (4, 4)

    def test_load_corrupt_raises(self, cache):
        Path(cache.path_for(2, 2, 2)).write_bytes(b'not an image')
        with pytest.raises(OSError):
            cache.load(2, 2, 2)
