"""Tests for progress module."""

import io

from shared.progress import ConsoleProgress, SingleLineRenderer


class TestSingleLineRenderer:
    """Tests for SingleLineRenderer class."""

    def test_single_line_mode_init(self):
        renderer = SingleLineRenderer(single_line=True)
        assert renderer.single_line is True
        assert renderer._last_len == 0

    def test_write_line_updates_last_len(self):
        stream = io.StringIO()
        renderer = SingleLineRenderer(stream=stream)
        renderer.write_line('test message')
        assert renderer._last_len == len('test message')
        assert stream.getvalue() == '\rtest message'

    def test_shorter_line_padded(self):
        stream = io.StringIO()
        renderer = SingleLineRenderer(stream=stream)
        renderer.write_line('abcdef')
        renderer.write_line('ab')
        assert stream.getvalue().endswith('\rab    ')

    def test_clear_line_resets_last_len(self):
        stream = io.StringIO()
        renderer = SingleLineRenderer(stream=stream)
        renderer._last_len = 5
        renderer.clear_line()
        assert renderer._last_len == 0
        assert stream.getvalue() == '\r     \r'

    def test_print_above(self):
        stream = io.StringIO()
        renderer = SingleLineRenderer(stream=stream)
        renderer.write_line('bar')
        renderer.print_above('warning: x')
        assert stream.getvalue().endswith('\r   \rwarning: x\n')
        assert renderer._last_len == 0


class TestConsoleProgress:
    """Tests for ConsoleProgress class."""

    def _progress(self, total):
        stream = io.StringIO()
        return ConsoleProgress(total, label='Tiles', writer=SingleLineRenderer(stream=stream)), stream

    def test_initial_render(self):
        _, stream = self._progress(4)
        assert 'Tiles: [' in stream.getvalue()
        assert '0/4' in stream.getvalue()

    def test_step_clamped_to_total(self):
        progress, stream = self._progress(2)
        progress.step()
        progress.step(5)
        assert progress.done == 2
        assert '2/2' in stream.getvalue()

    def test_zero_total(self):
        progress, _ = self._progress(0)
        assert progress.total == 1

    def test_close_keeps_bar(self):
        progress, stream = self._progress(1)
        progress.step()
        progress.close()
        assert stream.getvalue().endswith('\n')
        assert '1/1' in stream.getvalue().splitlines()[-1]

    def test_format_eta(self):
        progress, _ = self._progress(1)
        assert progress._format_eta(float('inf')) == '--:--'
        assert progress._format_eta(75) == '01:15'
        assert progress._format_eta(3725) == '01:02:05'
