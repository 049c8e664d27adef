"""
Математика тайлов slippy map (сферический Mercator).

Формулы: http://wiki.openstreetmap.org/wiki/Slippy_map_tilenames
Все функции чистые и детерминированные для одинаковых входов.
"""

from __future__ import annotations

import math

from shared.constants import (
    EQUATOR_RESOLUTION_M,
    MAX_LATITUDE_DEG,
    MAX_LONGITUDE_DEG,
    MAX_ZOOM,
    WORLD_LNG_SPAN_DEG,
)


def validate_zoom(zoom: int) -> None:
    if zoom > MAX_ZOOM:
        msg = f'Zoom level {zoom} too high'
        raise ValueError(msg)
    if zoom < 0:
        msg = f'Zoom level {zoom} is negative'
        raise ValueError(msg)


def validate_latitude(lat: float) -> None:
    if lat < -MAX_LATITUDE_DEG or lat > MAX_LATITUDE_DEG:
        msg = f'Latitude {lat} invalid'
        raise ValueError(msg)


def validate_longitude(lon: float) -> None:
    if lon < -MAX_LONGITUDE_DEG or lon > MAX_LONGITUDE_DEG:
        msg = f'Longitude {lon} invalid'
        raise ValueError(msg)


def validate_lat_lon_zoom(lat: float, lon: float, zoom: int) -> None:
    """Бросает ValueError, если какой-либо параметр вне области проекции."""
    validate_zoom(zoom)
    validate_latitude(lat)
    validate_longitude(lon)


def to_tile_coords(lat: float, lon: float, zoom: int) -> tuple[float, float]:
    """
    Преобразует WGS84 (lat, lon) в дробные координаты тайла на заданном zoom.

    Целая часть задаёт тайл, содержащий точку, дробная часть это смещение
    внутри тайла.
    """
    validate_lat_lon_zoom(lat, lon, zoom)
    lat_rad = math.radians(lat)
    n = 1 << zoom
    x = n * ((lon + MAX_LONGITUDE_DEG) / WORLD_LNG_SPAN_DEG)
    y = n * (1 - (math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi)) / 2
    return x, y


def resolution(lat: float, zoom: int) -> float:
    """Возвращает метров на пиксель на заданной широте и зуме."""
    validate_zoom(zoom)
    validate_latitude(lat)
    lat_rad = math.radians(lat)
    return EQUATOR_RESOLUTION_M * math.cos(lat_rad) / (1 << zoom)


def max_tile_index(zoom: int) -> int:
    """Максимальный индекс тайла по одной оси."""
    validate_zoom(zoom)
    return (1 << zoom) - 1


def tile_range(center: int, blocks: int, zoom: int) -> range:
    """Индексы в пределах `blocks` от `center` по одной оси, обрезанные по сетке."""
    lo = max(0, center - blocks)
    hi = min(max_tile_index(zoom), center + blocks)
    return range(lo, hi + 1)


def tile_to_lat_lon(x: float, y: float, zoom: int) -> tuple[float, float]:
    """Северо-западный угол тайла (x, y); обратное к to_tile_coords."""
    validate_zoom(zoom)
    n = 1 << zoom
    lon = x / n * WORLD_LNG_SPAN_DEG - MAX_LONGITUDE_DEG
    lat = math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * y / n))))
    return lat, lon
