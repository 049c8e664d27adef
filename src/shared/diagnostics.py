"""
Diagnostic utilities.

Logs process resources and the state of the tile cache directory, used by the
CLI around a batch run.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any

import psutil

logger = logging.getLogger(__name__)


def get_memory_info() -> dict[str, Any]:
    """Get process and system memory usage."""
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        system_memory = psutil.virtual_memory()

        return {
            'process_rss_mb': round(memory_info.rss / 1024 / 1024, 2),
            'process_vms_mb': round(memory_info.vms / 1024 / 1024, 2),
            'system_available_mb': round(system_memory.available / 1024 / 1024, 2),
            'system_used_percent': system_memory.percent,
        }
    except psutil.Error as e:
        return {'error': f'Failed to get memory info: {e}'}


def get_thread_info() -> dict[str, Any]:
    """Get information about active threads and asyncio tasks."""
    info: dict[str, Any] = {
        'active_count': threading.active_count(),
        'thread_names': [t.name for t in threading.enumerate()],
    }
    try:
        info['system_threads'] = psutil.Process().num_threads()
    except psutil.Error as e:
        logger.debug('Failed to get system thread count: %s', e)
    try:
        info['asyncio_tasks'] = len(asyncio.all_tasks())
    except RuntimeError:
        # no running loop
        info['asyncio_tasks'] = 0
    return info


def get_cache_dir_info(cache_dir: Path) -> dict[str, Any]:
    """Number and total size of cached tile files in a source directory."""
    if not cache_dir.exists():
        return {'tiles': 0, 'size_mb': 0.0}
    files = [p for p in cache_dir.glob('*.jpg') if p.is_file()]
    total = sum(p.stat().st_size for p in files)
    return {'tiles': len(files), 'size_mb': round(total / 1024 / 1024, 2)}


def log_comprehensive_diagnostics(context: str = '', cache_dir: Path | None = None) -> None:
    """Log memory, thread and cache information in one block."""
    context_label = f' ({context})' if context else ''
    logger.info('=== DIAGNOSTICS%s ===', context_label)
    memory_info = get_memory_info()
    if 'error' in memory_info:
        logger.warning('Memory: %s', memory_info['error'])
    else:
        logger.info(
            'Memory: Process RSS=%sMB VMS=%sMB, System available=%sMB (%s%% used)',
            memory_info['process_rss_mb'],
            memory_info['process_vms_mb'],
            memory_info['system_available_mb'],
            memory_info['system_used_percent'],
        )
    thread_info = get_thread_info()
    logger.info(
        'Threads: Active=%s, System=%s, asyncio tasks=%s',
        thread_info['active_count'],
        thread_info.get('system_threads', 'N/A'),
        thread_info['asyncio_tasks'],
    )
    if cache_dir is not None:
        cache_info = get_cache_dir_info(cache_dir)
        logger.info(
            'Tile cache %s: %d tiles, %sMB',
            cache_dir,
            cache_info['tiles'],
            cache_info['size_mb'],
        )


def log_memory_usage(context: str = '') -> None:
    """Quick memory usage logging."""
    memory_info = get_memory_info()
    context_label = f' ({context})' if context else ''
    logger.info(
        'Memory usage%s: RSS=%sMB, Available=%sMB',
        context_label,
        memory_info.get('process_rss_mb', 'N/A'),
        memory_info.get('system_available_mb', 'N/A'),
    )
