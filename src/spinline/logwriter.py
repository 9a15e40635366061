# logwriter.py
from __future__ import annotations

import logging
import threading
from typing import Any, BinaryIO, Optional, Union


class LogWriter:
    """
    Byte sink that turns a child's output into log records.

    Everything written is buffered until a newline shows up; each complete
    line becomes one record at `level`, tagged with the stream label. Any
    spinner identity must already be bound into `logger`. The last partial
    line is emitted by close().
    """

    def __init__(self, logger: Any, level: int = logging.DEBUG, stream: str = "stdout"):
        self.logger = logger.bind(stream=stream)
        self.level = level
        self.stream = stream
        self._buf = bytearray()
        self._lock = threading.Lock()
        self._closed = False

    def write(self, data: Union[bytes, str]) -> int:
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._lock:
            if self._closed:
                raise ValueError("write to closed LogWriter")
            self._buf.extend(data)
            while True:
                idx = self._buf.find(b"\n")
                if idx < 0:
                    break
                line = bytes(self._buf[:idx])
                del self._buf[: idx + 1]
                self._emit(line)
        return len(data)

    def flush(self) -> None:
        # partial lines wait for more data or close()
        pass

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            if self._buf:
                line = bytes(self._buf)
                self._buf.clear()
                self._emit(line)

    @property
    def closed(self) -> bool:
        return self._closed

    def _emit(self, line: bytes) -> None:
        text = line.decode("utf-8", errors="replace")
        if text.endswith("\r"):
            text = text[:-1]
        self.logger.log(self.level, text)

    def __enter__(self) -> "LogWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def drain(pipe: Optional[BinaryIO], writer: LogWriter, chunk_size: int = 4096) -> None:
    """Copy a pipe into a writer until EOF, then close both."""
    if pipe is None:
        writer.close()
        return
    try:
        while True:
            chunk = pipe.read1(chunk_size) if hasattr(pipe, "read1") else pipe.read(chunk_size)
            if not chunk:
                break
            writer.write(chunk)
    finally:
        pipe.close()
        writer.close()
