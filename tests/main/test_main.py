
import logging
import os
from unittest.mock import patch

import pytest
from PIL import Image

import main
from main import ConsoleCollaborator, build_parser, collect_settings, setup_logging
from shared.constants import LOG_FILE, ExitCode
from tiles.cache import TileDiskCache
from tiles.events import BatchComplete, ImageReceived, TileError, TileWarning

SERVICE = 'http://tiles.invalid/{z}/{x}/{y}.png'


@pytest.fixture(autouse=True)
def _isolate(monkeypatch, tmp_path):
    # no .env file and no SATTILES_* variables from the developer's shell
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith('SATTILES_'):
            monkeypatch.delenv(key)
    monkeypatch.setattr(main, 'setup_logging', lambda *a, **k: tmp_path / LOG_FILE)


class TestMain:
    def test_setup_logging(self, tmp_path):
        with patch('main.logging.basicConfig') as basic_config:
            log_file = setup_logging(tmp_path / 'log', logging.DEBUG)
        assert log_file == tmp_path / 'log' / LOG_FILE
        assert log_file.exists()
        kwargs = basic_config.call_args.kwargs
        assert kwargs['level'] == logging.DEBUG
        assert len(kwargs['handlers']) == 2
        for handler in kwargs['handlers']:
            handler.close()


class TestCollectSettings:
    def test_cli_only(self, tmp_path):
        args = build_parser().parse_args(
            ['--service', SERVICE, '--lat', '10', '--lon', '20', '--zoom', '3']
        )
        source = collect_settings(args, environ={})
        assert source.zoom == 3
        assert source.offline is False

    def test_precedence(self, tmp_path, monkeypatch):
        profile = tmp_path / 'area.toml'
        profile.write_text(
            f'service = "{SERVICE}"\nlatitude = 1.0\nlongitude = 2.0\nzoom = 4\nblocks = 1\n',
            encoding='utf-8',
        )
        args = build_parser().parse_args(['--profile', str(profile), '--zoom', '6'])
        source = collect_settings(args, environ={'SATTILES_ZOOM': '5', 'SATTILES_BLOCKS': '3'})
        assert source.zoom == 6
        assert source.blocks == 3
        assert source.latitude == 1.0

    def test_offline_flag(self):
        args = build_parser().parse_args(
            ['--service', SERVICE, '--lat', '0', '--lon', '0', '--zoom', '0', '--offline']
        )
        assert collect_settings(args, environ={}).offline is True


class TestConsoleCollaborator:
    def test_tracks_events(self, capsys):
        collaborator = ConsoleCollaborator()
        collaborator.begin(0)
        collaborator.on_event(TileWarning('Redirected to http://b'))
        collaborator.on_event(TileError('Failed loading http://a with code 404'))
        collaborator.on_event(BatchComplete(generation=1, tile_count=0))
        collaborator.finish()
        assert collaborator.warnings == ['Redirected to http://b']
        assert collaborator.errors == ['Failed loading http://a with code 404']
        assert collaborator.completed
        assert 'error: Failed loading' in capsys.readouterr().out

    def test_counts_received(self):
        collaborator = ConsoleCollaborator()
        collaborator.on_event(
            ImageReceived(url='http://a', x=0, y=0, z=0, image=Image.new('RGB', (1, 1)))
        )
        assert collaborator.received == 1


class TestMainEntry:
    def _argv(self, tmp_path, *extra):
        return [
            '--service', SERVICE,
            '--lat', '40', '--lon', '-67.5', '--zoom', '2',
            '--cache-dir', str(tmp_path / 'cache'),
            *extra,
        ]

    def test_invalid_config(self, tmp_path):
        assert main.main(['--service', SERVICE, '--lat', '95', '--lon', '0', '--zoom', '1']) == (
            ExitCode.INVALID_CONFIG
        )

    def test_missing_profile(self, tmp_path):
        assert main.main(['--profile', str(tmp_path / 'none.toml')]) == ExitCode.INVALID_CONFIG

    def test_offline_cached_batch_complete(self, tmp_path):
        cache = TileDiskCache.for_source(SERVICE, tmp_path / 'cache')
        cache.store(1, 1, 2, Image.new('RGB', (4, 4)))
        assert main.main(self._argv(tmp_path, '--offline')) == ExitCode.COMPLETE

    def test_offline_miss_stalls(self, tmp_path):
        assert main.main(self._argv(tmp_path, '--offline', '--blocks', '1')) == ExitCode.STALLED

    def test_cache_dir_unusable(self, tmp_path):
        (tmp_path / 'cache').write_text('not a directory')
        assert main.main(self._argv(tmp_path, '--offline')) == ExitCode.INVALID_CONFIG
