"""Geo module - slippy map tile coordinates."""

from .tile_math import (
    max_tile_index,
    resolution,
    tile_range,
    tile_to_lat_lon,
    to_tile_coords,
)

__all__ = [
    'max_tile_index',
    'resolution',
    'tile_range',
    'tile_to_lat_lon',
    'to_tile_coords',
]
