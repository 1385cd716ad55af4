"""A log file writer that rotates by day and size and archives old files as zip."""

from __future__ import annotations

import logging
import os
import sys
import threading
import zipfile
from contextlib import suppress
from datetime import datetime, timedelta
from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)

SIZE_MIB = 1024 * 1024
DEFAULT_MAX_AGE = 31
DEFAULT_MAX_SIZE = 64 * SIZE_MIB
DEFAULT_SUFFIX = ".log"
ZIP_SUFFIX = ".zip"
FLUSH_INTERVAL = 5.0
_STAMP_FORMAT = ".%Y-%m-%d-%H%M%S.%f"


class RotatingWriter:
    """Appends to ``path``, rotating when the day changes or the size limit is reached.

    A rotated file is renamed with its creation time, zipped next to the
    live file and the uncompressed copy removed. On a day change, archives
    older than ``max_age`` days are deleted. Buffered data is flushed every
    few seconds in the background.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        max_age: int = DEFAULT_MAX_AGE,
        max_size: int = DEFAULT_MAX_SIZE,
        console: bool = False,
    ) -> None:
        self.path = os.fspath(path)
        self._dir = os.path.dirname(self.path) or "."
        base = os.path.basename(self.path)
        dot = base.rfind(".")
        suffix = base[dot:] if dot >= 0 else ""
        self._name = base[: len(base) - len(suffix)]
        self._suffix = suffix or DEFAULT_SUFFIX

        self.max_age = max_age
        self._max_size = DEFAULT_MAX_SIZE
        self.max_size = max_size
        self.console = console

        self._size = 0
        self._created = datetime.now()
        self._file: BinaryIO | None = None
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._daemon: threading.Thread | None = None
        self._cleanups: list[threading.Thread] = []

        with suppress(OSError):
            os.makedirs(self._dir, exist_ok=True)
        self._ensure_daemon()

    @property
    def max_size(self) -> int:
        """Largest size in bytes of one file; values below 1 are ignored."""
        return self._max_size

    @max_size.setter
    def max_size(self, value: int) -> None:
        if value >= 1:
            self._max_size = value

    def write(self, data: bytes | bytearray | memoryview | str) -> int:
        """Append ``data`` (text is encoded as UTF-8) and return the bytes written."""
        payload = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        with self._lock:
            if self.console:
                _echo(payload)
            if self._file is None:
                try:
                    self._rotate()
                except OSError:
                    _echo(payload)
                    raise

            if self._created.date() != datetime.now().date():
                self._start_cleanup()
                self._rotate()
            if self._size + len(payload) >= self._max_size:
                self._rotate()

            assert self._file is not None
            self._file.write(payload)
            self._size += len(payload)
            return len(payload)

    def flush(self) -> None:
        """Push buffered data to the file."""
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        """Flush and close the file; a later write opens it again."""
        self.flush()
        with self._lock:
            self._close_file()
            stop, daemon = self._stop, self._daemon
            self._daemon = None
            cleanups, self._cleanups = self._cleanups, []
        stop.set()
        if daemon is not None and daemon is not threading.current_thread():
            daemon.join()
        for thread in cleanups:
            thread.join()

    def __enter__(self) -> RotatingWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _close_file(self) -> None:
        if self._file is None:
            return
        file, self._file = self._file, None
        try:
            file.flush()
            with suppress(OSError):
                os.fsync(file.fileno())
        finally:
            file.close()

    def _rotate(self) -> None:
        now = datetime.now()
        if self._file is not None:
            self._close_file()
            stem = self._name + self._created.strftime(_STAMP_FORMAT)
            backup = os.path.join(self._dir, stem + self._suffix)
            try:
                os.replace(self.path, backup)
            except OSError:
                pass
            else:
                try:
                    zip_to_file(os.path.join(self._dir, stem + ZIP_SUFFIX), backup)
                except (OSError, ValueError, zipfile.BadZipFile) as exc:
                    logger.error("archiving %s failed: %s", backup, exc)
                else:
                    with suppress(OSError):
                        os.remove(backup)
            self._size = 0

        try:
            info = os.stat(self.path)
        except OSError:
            self._created = now
        else:
            self._size = info.st_size
            self._created = datetime.fromtimestamp(info.st_mtime)
        self._file = open(self.path, "ab")
        self._ensure_daemon()

    def _ensure_daemon(self) -> None:
        if self._daemon is not None and self._daemon.is_alive():
            return
        self._stop = threading.Event()
        stop = self._stop

        def loop() -> None:
            while not stop.wait(FLUSH_INTERVAL):
                self.flush()

        self._daemon = threading.Thread(target=loop, name="rotating-writer-flush", daemon=True)
        self._daemon.start()

    def _start_cleanup(self) -> None:
        self._cleanups = [t for t in self._cleanups if t.is_alive()]
        thread = threading.Thread(target=self._remove_expired, daemon=True)
        self._cleanups.append(thread)
        thread.start()

    def _remove_expired(self) -> None:
        max_age = self.max_age
        if max_age <= 0:
            return
        cutoff = datetime.now() - timedelta(days=max_age)
        try:
            entries = list(os.scandir(self._dir))
        except OSError:
            return
        for entry in entries:
            if entry.is_dir():
                continue
            stamp = self._name_to_time(entry.name)
            if stamp is not None and stamp < cutoff:
                with suppress(OSError):
                    os.remove(entry.path)

    def _name_to_time(self, name: str) -> datetime | None:
        if name.startswith(self._name):
            name = name[len(self._name):]
        if name.endswith(ZIP_SUFFIX):
            name = name[: -len(ZIP_SUFFIX)]
        try:
            return datetime.strptime(name, _STAMP_FORMAT)
        except ValueError:
            return None


def _echo(payload: bytes) -> None:
    stream = sys.stderr
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        stream.flush()
        buffer.write(payload)
        buffer.flush()
    else:
        stream.write(payload.decode("utf-8", errors="replace"))


def zip_to_file(dst: str | os.PathLike[str], src: str | os.PathLike[str]) -> None:
    """Compress the file or directory ``src`` into a new zip file at ``dst``."""
    with open(os.path.normpath(os.fspath(dst)), "wb") as out:
        zip_path(out, src)


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def zip_path(dst: BinaryIO, src: str | os.PathLike[str]) -> None:
    """Write a zip archive of the file or directory ``src`` to the stream ``dst``.

    Entry names start at the last element of ``src``; directories end in "/".
    """
    src = os.path.normpath(os.fspath(src))
    base = os.path.basename(src)
    os.stat(src)

    with zipfile.ZipFile(dst, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in _walk(src):
            relative = path
            index = relative.find(base)
            if index > -1:
                relative = relative[index:]
            name = relative.strip(os.sep).replace("\\", "/")
            if os.path.isdir(path):
                name += "/"
            archive.write(path, name)