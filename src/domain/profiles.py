import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit

from domain.models import TileSource
from shared.constants import APP_NAME, ENV_PREFIX

logger = logging.getLogger(__name__)


def _user_profiles_dir() -> Path:
    """
    Determine profiles directory.

    1) If <project_root>/configs/profiles exists, use it (run-from-repo setups).
    2) Otherwise fall back to the user config directory:
       $XDG_CONFIG_HOME/satellite-tiles/profiles or ~/.config/satellite-tiles/profiles.
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    local_profiles = project_root / 'configs' / 'profiles'
    if local_profiles.exists():
        return local_profiles

    return (
        Path(os.getenv('XDG_CONFIG_HOME') or (Path.home() / '.config'))
        / APP_NAME
        / 'profiles'
    )


def ensure_profiles_dir() -> Path:
    profiles_dir = _user_profiles_dir()
    profiles_dir.mkdir(parents=True, exist_ok=True)
    return profiles_dir


def list_profiles() -> list[str]:
    """Список имён профилей без расширения."""
    folder = ensure_profiles_dir()
    return sorted(p.stem for p in folder.glob('*.toml') if p.is_file())


def profile_path(name: str) -> Path:
    return ensure_profiles_dir() / f'{name}.toml'


def _resolve(name_or_path: str) -> Path:
    p = Path(name_or_path)
    if p.suffix.lower() == '.toml' and p.exists():
        return p
    return profile_path(name_or_path)


def read_profile_data(name_or_path: str) -> dict[str, Any]:
    """Поля профиля как есть, без валидации."""
    path = _resolve(name_or_path)
    if not path.exists():
        msg = f'Profile not found: {path}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(path.read_text(encoding='utf-8'))
    logger.info('Loaded profile %s', path)
    return data.unwrap()


def load_profile(name_or_path: str) -> TileSource:
    """
    Load and validate a TOML profile.

    Accepts either a profile name (looked up in the profiles directory) or a
    path to a .toml file.
    """
    return TileSource.model_validate(read_profile_data(name_or_path))


def save_profile(name: str, source: TileSource) -> Path:
    """Сохраняет профиль в TOML (без атомарной замены и бэкапов)."""
    path = profile_path(name)
    data = source.model_dump(mode='json', exclude_none=True)
    path.write_text(tomlkit.dumps(data), encoding='utf-8')
    return path


def delete_profile(name: str) -> None:
    path = profile_path(name)
    if path.exists():
        path.unlink()


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """
    Profile fields taken from SATTILES_* environment variables.

    SATTILES_CACHE_ROOT=/tmp/tiles -> {'cache_root': '/tmp/tiles'}. Values stay
    strings; TileSource validation converts them.
    """
    env = os.environ if environ is None else environ
    fields = set(TileSource.model_fields)
    out: dict[str, str] = {}
    for key, value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        name = key[len(ENV_PREFIX):].lower()
        if name in fields:
            out[name] = value
    return out
