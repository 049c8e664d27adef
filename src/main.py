"""Command line entry point: load the tiles around a point into the cache."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from domain.models import TileSource
from domain.profiles import env_overrides, read_profile_data
from shared.constants import DOTENV_FILE, LOG_DIR, LOG_FILE, ExitCode
from shared.diagnostics import log_comprehensive_diagnostics, log_memory_usage
from shared.progress import ConsoleProgress, SingleLineRenderer
from tiles.cache import CacheDirectoryError
from tiles.events import (
    BatchComplete,
    FetchInitiated,
    ImageReceived,
    TileError,
    TileEvent,
    TileWarning,
)
from tiles.loader import TileLoader

logger = logging.getLogger(__name__)


def setup_logging(log_dir: Path | None = None, level: int = logging.INFO) -> Path:
    """Configure application logging to stdout and a log file.

    Returns:
        Path of the log file.
    """
    log_dir = log_dir or Path(LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(str(log_file), encoding='utf-8'),
        ],
    )
    return log_file


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Download and cache the map tiles around a point'
    )
    parser.add_argument('--profile', help='TOML profile name or path')
    parser.add_argument('--service', help='Tile URL template with {x}, {y}, {z}')
    parser.add_argument('--lat', dest='latitude', type=float, help='Latitude (deg)')
    parser.add_argument('--lon', dest='longitude', type=float, help='Longitude (deg)')
    parser.add_argument('--zoom', type=int, help='Zoom level (0-31)')
    parser.add_argument('--blocks', type=int, help='Tiles on each side of the centre')
    parser.add_argument('--proxy', help='HTTP proxy as host:port')
    parser.add_argument('--cache-dir', dest='cache_root', help='Tile cache root')
    parser.add_argument(
        '--offline',
        action='store_true',
        default=None,
        help='Use cached tiles only',
    )
    parser.add_argument(
        '--timeout',
        dest='request_timeout_s',
        type=float,
        help='Request timeout in seconds (default: none)',
    )
    parser.add_argument('--log-dir', type=Path, help='Directory for the log file')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def collect_settings(args: argparse.Namespace, environ: dict[str, str] | None = None) -> TileSource:
    """Merge profile, SATTILES_* environment and command line (highest wins)."""
    data: dict[str, Any] = {}
    if args.profile:
        data.update(read_profile_data(args.profile))
    data.update(env_overrides(environ))
    for name in TileSource.model_fields:
        value = getattr(args, name, None)
        if value is not None:
            data[name] = value
    return TileSource.model_validate(data)


class ConsoleCollaborator:
    """Prints loader notifications and keeps a progress bar of requests."""

    def __init__(self, writer: SingleLineRenderer | None = None) -> None:
        self.writer = writer or SingleLineRenderer()
        self.progress: ConsoleProgress | None = None
        self.requested = 0
        self.received = 0
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.completed = False

    def begin(self, requested: int) -> None:
        self.requested = requested
        if requested:
            self.progress = ConsoleProgress(requested, label='Tiles', writer=self.writer)

    def on_event(self, event: TileEvent) -> None:
        if isinstance(event, FetchInitiated):
            logger.debug('Requesting %s', event.url)
        elif isinstance(event, ImageReceived):
            self.received += 1
            if self.progress is not None:
                self.progress.step()
        elif isinstance(event, TileWarning):
            self.warnings.append(event.message)
            self.writer.print_above(f'warning: {event.message}')
        elif isinstance(event, TileError):
            self.errors.append(event.message)
            self.writer.print_above(f'error: {event.message}')
            if self.progress is not None:
                self.progress.step()
        elif isinstance(event, BatchComplete):
            self.completed = True

    def finish(self) -> None:
        if self.progress is not None:
            self.progress.close()


async def run_batch(source: TileSource, collaborator: ConsoleCollaborator) -> bool:
    """Load one batch; return True when every tile ended up with an image."""
    async with TileLoader(source, listener=collaborator) as loader:
        logger.info(
            'Centre tile %s at zoom %d, %.3f m/px',
            loader.center_tile,
            source.zoom,
            loader.resolution(),
        )
        loader.start()
        collaborator.begin(loader.stats['requests'])
        complete = await loader.wait_idle()
        collaborator.finish()
        stats = loader.stats
        logger.info(
            'Batch finished: %d tiles, %d from cache, %d fetched, %d failed, %d offline misses',
            len(loader.tiles),
            stats['cache_hits'],
            stats['fetched'],
            stats['failures'],
            stats['offline_misses'],
        )
        log_comprehensive_diagnostics('BATCH_DONE', cache_dir=loader.cache.directory)
        return complete


def main(argv: list[str] | None = None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO)
    load_dotenv(DOTENV_FILE)

    try:
        source = collect_settings(args)
    except (ValidationError, FileNotFoundError) as e:
        logger.error('Invalid configuration: %s', e)
        return ExitCode.INVALID_CONFIG

    log_memory_usage('before batch')
    collaborator = ConsoleCollaborator()
    try:
        complete = asyncio.run(run_batch(source, collaborator))
    except (ValueError, CacheDirectoryError) as e:
        logger.error('Failed to start tile loader: %s', e)
        return ExitCode.INVALID_CONFIG

    if complete:
        logger.info('All tiles available')
        return ExitCode.COMPLETE
    logger.warning(
        'Batch incomplete: %d errors, offline=%s', len(collaborator.errors), source.offline
    )
    return ExitCode.STALLED


if __name__ == '__main__':
    sys.exit(main())
