"""Domain layer - tile source settings and profiles."""
from domain.models import TileSource
from domain.profiles import (
    delete_profile,
    ensure_profiles_dir,
    env_overrides,
    list_profiles,
    load_profile,
    save_profile,
)

__all__ = [
    'TileSource',
    'delete_profile',
    'ensure_profiles_dir',
    'env_overrides',
    'list_profiles',
    'load_profile',
    'save_profile',
]
