"""Script buffer loading.

Reads a whole script from a file or standard input into one growable
buffer. Capacity starts at the file size when it is known and doubles
whenever the next chunk would not fit.
"""

from __future__ import annotations

import logging
import os
import stat
import sys
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096
DEFAULT_CAPACITY = 4096
STDIN_NAME = "-"

Reader = Callable[[int, int], bytes]


class ScriptLoadError(Exception):
    """Raised when a script cannot be opened or read."""
    pass


class ScriptBuffer:
    """Owned, contiguous script bytes with a capacity that only grows."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """Initialize buffer.

        Args:
            capacity: Initial number of bytes allocated
        """
        if capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {capacity}")
        self._data = bytearray(capacity)
        self.length = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    def append(self, chunk: bytes) -> None:
        """Append chunk, doubling capacity first until it fits.

        Args:
            chunk: Bytes to append
        """
        needed = self.length + len(chunk)
        if needed > self.capacity:
            capacity = self.capacity
            while needed > capacity:
                capacity *= 2
            self._data.extend(bytes(capacity - self.capacity))
            logger.debug(f"Script buffer grown to {capacity} bytes")

        self._data[self.length:needed] = chunk
        self.length = needed

    def view(self) -> memoryview:
        """Read-only view of the used bytes."""
        return memoryview(self._data)[:self.length].toreadonly()

    def __bytes__(self) -> bytes:
        return bytes(self._data[:self.length])

    def __len__(self) -> int:
        return self.length


def read_script(
    fd: int,
    size_hint: Optional[int] = None,
    chunk_size: int = CHUNK_SIZE,
    default_capacity: int = DEFAULT_CAPACITY,
    reader: Reader = os.read,
    name: str = STDIN_NAME
) -> ScriptBuffer:
    """Read everything from fd until end of stream.

    Args:
        fd: File descriptor to read
        size_hint: Expected size, used as initial capacity when positive
        chunk_size: Bytes requested per read
        default_capacity: Initial capacity without a usable hint
        reader: Function with the signature of os.read
        name: Script name used in error messages

    Returns:
        Buffer holding every byte read

    Raises:
        ScriptLoadError: If a read fails
    """
    capacity = size_hint if size_hint and size_hint > 0 else default_capacity
    buffer = ScriptBuffer(capacity)

    while True:
        try:
            chunk = reader(fd, chunk_size)
        except OSError as e:
            raise ScriptLoadError(
                f"failed to read file: '{name}' ({e.strerror or e})"
            ) from e

        if not chunk:
            break

        buffer.append(chunk)

    logger.debug(f"Read {buffer.length} bytes from '{name}'")
    return buffer


def _size_hint(fd: int) -> Optional[int]:
    try:
        sb = os.fstat(fd)
    except OSError:
        return None
    if stat.S_ISREG(sb.st_mode) and sb.st_size > 0:
        return sb.st_size
    return None


def load_script(
    path: Union[str, os.PathLike],
    chunk_size: int = CHUNK_SIZE,
    default_capacity: int = DEFAULT_CAPACITY
) -> ScriptBuffer:
    """Load a script file, or standard input when path is "-".

    Args:
        path: Script path or "-"
        chunk_size: Bytes requested per read
        default_capacity: Initial capacity when the size is unknown

    Returns:
        Buffer holding the whole script

    Raises:
        ScriptLoadError: If the file cannot be opened or read
    """
    name = os.fspath(path)

    if name == STDIN_NAME:
        fd = sys.stdin.fileno()
        return read_script(
            fd, _size_hint(fd), chunk_size, default_capacity, name=name
        )

    try:
        fd = os.open(name, os.O_RDONLY)
    except OSError as e:
        raise ScriptLoadError(
            f"failed to open file: '{name}' ({e.strerror or e})"
        ) from e

    try:
        return read_script(
            fd, _size_hint(fd), chunk_size, default_capacity, name=name
        )
    finally:
        os.close(fd)
