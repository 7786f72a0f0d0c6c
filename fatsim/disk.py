"""A file-backed disk made of fixed-size blocks."""

from __future__ import annotations

import os

BLOCK_SIZE = 4096


class DiskError(Exception):
    """Raised when a block access is invalid or the disk image fails."""


class Disk:
    """A disk image stored in a host file, read and written a block at a time."""

    def __init__(self, path, blocks):
        if blocks < 0:
            raise ValueError(f"block count must not be negative: {blocks}")
        try:
            self._file = open(path, "r+b")
        except FileNotFoundError:
            self._file = open(path, "w+b")
        self._file.truncate(blocks * BLOCK_SIZE)
        self.path = os.fspath(path)
        self.blocks = blocks
        self.reads = 0
        self.writes = 0

    def _check(self, number):
        if self._file is None:
            raise DiskError("disk is closed")
        if number < 0:
            raise DiskError(f"block number ({number}) is negative")
        if number >= self.blocks:
            raise DiskError(f"block number ({number}) is too big")

    def read(self, number):
        """Return the contents of block *number* as bytes."""
        self._check(number)
        self._file.seek(number * BLOCK_SIZE)
        data = self._file.read(BLOCK_SIZE)
        if len(data) != BLOCK_SIZE:
            raise DiskError(f"short read on block {number}")
        self.reads += 1
        return data

    def write(self, number, data):
        """Store exactly one block of *data* at block *number*."""
        self._check(number)
        if len(data) != BLOCK_SIZE:
            raise DiskError(
                f"block data must be {BLOCK_SIZE} bytes, got {len(data)}"
            )
        self._file.seek(number * BLOCK_SIZE)
        self._file.write(bytes(data))
        self.writes += 1

    def close(self):
        """Close the image file; further access raises DiskError."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()