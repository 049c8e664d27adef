from pathlib import Path

from pydantic import BaseModel, field_validator

from geo.tile_math import (
    validate_latitude,
    validate_longitude,
    validate_zoom,
)
from shared.constants import TILE_CACHE_DIR


class TileSource(BaseModel):
    """
    Параметры источника тайлов и области загрузки вокруг точки.

    Неизменяем после создания; новая область означает новый TileSource.
    """

    model_config = {
        'frozen': True,
        'extra': 'ignore',  # игнорировать лишние поля из профилей
    }

    # Шаблон URL с подстановками {x}, {y}, {z} (регистр не важен)
    service: str
    # Центр области (WGS84, градусы)
    latitude: float
    longitude: float
    # Уровень zoom, 0..31
    zoom: int
    # Число тайлов с каждой стороны от центрального
    blocks: int = 0
    # HTTP-прокси "host:port"; пусто = системные настройки
    proxy: str = ''
    # Корень дискового кэша тайлов
    cache_root: Path = Path(TILE_CACHE_DIR)
    # Только кэш, без обращения к сети
    offline: bool = False
    # Общий таймаут запроса (сек); None = ждать бесконечно
    request_timeout_s: float | None = None

    @field_validator('service')
    @classmethod
    def check_service(cls, v: str) -> str:
        if not v.strip():
            msg = 'Tile service URL template must not be empty'
            raise ValueError(msg)
        return v

    @field_validator('latitude')
    @classmethod
    def check_latitude(cls, v: float) -> float:
        validate_latitude(v)
        return v

    @field_validator('longitude')
    @classmethod
    def check_longitude(cls, v: float) -> float:
        validate_longitude(v)
        return v

    @field_validator('zoom')
    @classmethod
    def check_zoom(cls, v: int) -> int:
        validate_zoom(v)
        return v

    @field_validator('blocks')
    @classmethod
    def check_blocks(cls, v: int) -> int:
        if v < 0:
            msg = f'Block radius {v} must be non-negative'
            raise ValueError(msg)
        return v

    @field_validator('request_timeout_s')
    @classmethod
    def check_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            msg = 'Request timeout must be positive'
            raise ValueError(msg)
        return v
