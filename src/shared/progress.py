import sys
import threading
import time
from typing import TextIO


class SingleLineRenderer:
    """Потокобезопасный вывод, перерисовывающий одну строку консоли."""

    def __init__(self, *, single_line: bool = True, stream: TextIO | None = None) -> None:
        self.single_line = single_line
        self._stream = stream
        self._last_len = 0
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def clear_line(self) -> None:
        """Стирает текущую строку прогресса."""
        with self._lock:
            if self.single_line and self._last_len > 0:
                self.stream.write('\r' + ' ' * self._last_len + '\r')
                self.stream.flush()
                self._last_len = 0

    def write_line(self, msg: str) -> None:
        """Перерисовывает текущую строку прогресса."""
        with self._lock:
            if self.single_line:
                pad = max(0, self._last_len - len(msg))
                self.stream.write('\r' + msg + (' ' * pad))
            else:
                self.stream.write('\r' + msg)
            self.stream.flush()
            self._last_len = len(msg)

    def newline(self) -> None:
        with self._lock:
            self.stream.write('\n')
            self.stream.flush()
            self._last_len = 0

    def print_above(self, msg: str) -> None:
        """Печатает сообщение целой строкой, строка прогресса остаётся ниже."""
        with self._lock:
            if self._last_len > 0:
                self.stream.write('\r' + ' ' * self._last_len + '\r')
            self.stream.write(msg + '\n')
            self.stream.flush()
            self._last_len = 0


# Экземпляр по умолчанию (можно передать свой в ConsoleProgress)
DEFAULT_WRITER = SingleLineRenderer()


class ConsoleProgress:
    """Прогресс-бар для пошаговых операций."""

    def __init__(
        self,
        total: int,
        label: str = 'Progress',
        writer: SingleLineRenderer | None = None,
    ) -> None:
        self.total = max(1, int(total))
        self.done = 0
        self.start = time.monotonic()
        self.label = label
        self._writer = writer or DEFAULT_WRITER
        self._writer.clear_line()
        self._render()  # показать 0%

    @property
    def writer(self) -> SingleLineRenderer:
        return self._writer

    def _format_eta(self, remaining: float) -> str:
        if remaining == float('inf'):
            return '--:--'
        m, s = divmod(int(remaining), 60)
        h, m = divmod(m, 60)
        if h > 0:
            return f'{h:02d}:{m:02d}:{s:02d}'
        return f'{m:02d}:{s:02d}'

    def _render(self) -> None:
        elapsed = max(1e-6, time.monotonic() - self.start)
        rps = self.done / elapsed
        remaining = (self.total - self.done) / rps if rps > 0 else float('inf')
        bar_len = 30
        filled = int(bar_len * self.done / self.total)
        bar = '█' * filled + '░' * (bar_len - filled)
        msg = (
            f'{self.label}: [{bar}] {self.done}/{self.total} | {rps:4.1f}/s | ETA'
            f' {self._format_eta(remaining)}'
        )
        self._writer.write_line(msg)

    def step(self, n: int = 1) -> None:
        self.done = min(self.total, self.done + n)
        self._render()

    def close(self) -> None:
        """Оставляет итоговую полосу на экране и переводит строку."""
        self._render()
        self._writer.newline()
