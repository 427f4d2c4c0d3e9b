"""Tests for script buffer loading."""

import errno
import os

import pytest

from scriptshell.lib.loader import (
    ScriptBuffer,
    ScriptLoadError,
    load_script,
    read_script,
)


class ChunkReader:
    """Fake os.read returning a fixed sequence of chunks."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.requests = []

    def __call__(self, fd, size):
        self.requests.append(size)
        if not self.chunks:
            return b""
        return self.chunks.pop(0)


def make_chunks(sizes):
    data = bytes(i % 251 for i in range(sum(sizes)))
    chunks = []
    offset = 0
    for size in sizes:
        chunks.append(data[offset:offset + size])
        offset += size
    return data, chunks


class TestScriptBuffer:
    """Test the growable buffer."""

    def test_initial_state(self):
        """Test a fresh buffer."""
        buffer = ScriptBuffer(16)
        assert buffer.length == 0
        assert buffer.capacity == 16
        assert bytes(buffer) == b""

    def test_append_within_capacity(self):
        """Test that appends fitting the capacity do not grow it."""
        buffer = ScriptBuffer(8)
        buffer.append(b"abcd")
        buffer.append(b"efgh")
        assert bytes(buffer) == b"abcdefgh"
        assert buffer.capacity == 8

    def test_doubles_on_overflow(self):
        """Test that capacity doubles when a chunk would overflow."""
        buffer = ScriptBuffer(8)
        buffer.append(b"abcdef")
        buffer.append(b"ghij")
        assert buffer.capacity == 16
        assert bytes(buffer) == b"abcdefghij"

    def test_doubles_until_chunk_fits(self):
        """Test that a chunk much larger than the capacity is kept whole."""
        buffer = ScriptBuffer(2)
        buffer.append(b"x" * 9)
        assert buffer.capacity == 16
        assert len(buffer) == 9

    def test_view_is_read_only(self):
        """Test that the view exposes only used bytes."""
        buffer = ScriptBuffer(8)
        buffer.append(b"abc")
        view = buffer.view()
        assert view.tobytes() == b"abc"
        assert view.readonly

    def test_rejects_non_positive_capacity(self):
        """Test invalid capacity."""
        with pytest.raises(ValueError):
            ScriptBuffer(0)


class TestReadScript:
    """Test reading a stream into a buffer."""

    @pytest.mark.parametrize("sizes", [
        [],
        [1],
        [4096, 4096, 10],
        [3, 5000, 1, 700],
        [4096] * 9,
    ])
    @pytest.mark.parametrize("hint", [None, 0, 7, 100000])
    def test_no_bytes_lost_or_duplicated(self, sizes, hint):
        """Test that the buffer holds exactly the bytes read, in order."""
        data, chunks = make_chunks(sizes)
        buffer = read_script(0, size_hint=hint, reader=ChunkReader(chunks))
        assert buffer.length == len(data)
        assert bytes(buffer) == data
        assert buffer.capacity >= buffer.length

    def test_hint_sets_capacity(self):
        """Test that a positive size hint is the initial capacity."""
        buffer = read_script(0, size_hint=10, reader=ChunkReader([b"0123456789"]))
        assert buffer.capacity == 10

    def test_default_capacity_without_hint(self):
        """Test capacity without a usable hint."""
        buffer = read_script(0, size_hint=-5, default_capacity=32,
                             reader=ChunkReader([b"abc"]))
        assert buffer.capacity == 32

    def test_reads_in_chunks(self):
        """Test the requested chunk size."""
        reader = ChunkReader([b"abc"])
        read_script(0, chunk_size=128, reader=reader)
        assert reader.requests == [128, 128]

    def test_read_error_is_fatal(self):
        """Test that a failing read raises with no partial result."""
        calls = []

        def reader(fd, size):
            calls.append(size)
            if len(calls) > 1:
                raise OSError(errno.EIO, "Input/output error")
            return b"partial"

        with pytest.raises(ScriptLoadError, match="failed to read file: 'in.js'"):
            read_script(0, reader=reader, name="in.js")


class TestLoadScript:
    """Test loading scripts from files."""

    def test_load_file(self, tmp_path):
        """Test loading a regular file."""
        script = tmp_path / "script.py"
        content = b"x = 1\n" * 2000
        script.write_bytes(content)

        buffer = load_script(script)
        assert bytes(buffer) == content
        assert buffer.capacity == len(content)

    def test_load_empty_file(self, tmp_path):
        """Test loading an empty file."""
        script = tmp_path / "empty.py"
        script.write_bytes(b"")

        buffer = load_script(script, default_capacity=64)
        assert buffer.length == 0
        assert buffer.capacity == 64

    def test_missing_file(self, tmp_path):
        """Test that a missing file reports an open failure."""
        with pytest.raises(ScriptLoadError, match="failed to open file"):
            load_script(tmp_path / "missing.py")

    def test_load_stdin(self, monkeypatch):
        """Test loading standard input with "-"."""
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"1 + 1\n")
        os.close(write_fd)

        class FakeStdin:
            def fileno(self):
                return read_fd

        monkeypatch.setattr("sys.stdin", FakeStdin())
        try:
            buffer = load_script("-")
        finally:
            os.close(read_fd)

        assert bytes(buffer) == b"1 + 1\n"
