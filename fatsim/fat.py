"""A small FAT file system living on a simulated block disk.

Layout: block 0 holds the superblock, block 1 the directory, and the
file allocation table starts at block 2.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, replace

from .disk import BLOCK_SIZE

SUPER_BLOCK = 0
DIR_BLOCK = 1
TABLE_BLOCK = 2

MAGIC = 0xAC0010DE
MAX_NAME = 6

FREE = 0
EOF_MARK = 1
BUSY = 2

_SUPER = struct.Struct("<Iii")
_ENTRY = struct.Struct("<B7sII")
_FAT_ENTRY_SIZE = 4
DIR_ENTRIES = BLOCK_SIZE // _ENTRY.size

logger = logging.getLogger(__name__)


class FatError(Exception):
    """Raised when a file system operation fails."""


class NotMountedError(FatError):
    """Raised when an operation needs a mounted file system."""


@dataclass
class DirEntry:
    """One slot of the directory."""

    used: bool = False
    name: str = ""
    length: int = 0
    first: int = FREE

    def _pack(self):
        return _ENTRY.pack(
            int(self.used), self.name.encode("utf-8"), self.length, self.first
        )

    @classmethod
    def _unpack(cls, raw):
        used, name, length, first = _ENTRY.unpack(raw)
        text = name.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return cls(bool(used), text, length, first)


def _fat_blocks_for(number_blocks):
    return -(-number_blocks * _FAT_ENTRY_SIZE // BLOCK_SIZE)


class FileSystem:
    """A FAT file system on top of a Disk."""

    def __init__(self, disk):
        self.disk = disk
        self.magic = 0
        self.number_blocks = 0
        self.fat_blocks = 0
        self._dir = [DirEntry() for _ in range(DIR_ENTRIES)]
        self._fat = None
        self._mounted = False

    @property
    def mounted(self):
        return self._mounted

    # -- on-disk structures -------------------------------------------------

    def _write_super(self):
        raw = _SUPER.pack(self.magic, self.number_blocks, self.fat_blocks)
        self.disk.write(SUPER_BLOCK, raw.ljust(BLOCK_SIZE, b"\0"))

    def _write_dir(self):
        raw = b"".join(entry._pack() for entry in self._dir)
        self.disk.write(DIR_BLOCK, raw.ljust(BLOCK_SIZE, b"\0"))

    def _read_dir(self):
        raw = self.disk.read(DIR_BLOCK)
        self._dir = [
            DirEntry._unpack(raw[start:start + _ENTRY.size])
            for start in range(0, DIR_ENTRIES * _ENTRY.size, _ENTRY.size)
        ]

    def _write_fat(self, fat):
        raw = struct.pack(f"<{len(fat)}I", *fat)
        raw = raw.ljust(self.fat_blocks * BLOCK_SIZE, b"\0")
        for i in range(self.fat_blocks):
            self.disk.write(
                TABLE_BLOCK + i, raw[i * BLOCK_SIZE:(i + 1) * BLOCK_SIZE]
            )

    def _read_fat(self):
        raw = b"".join(
            self.disk.read(TABLE_BLOCK + i) for i in range(self.fat_blocks)
        )
        return list(struct.unpack_from(f"<{self.number_blocks}I", raw))

    # -- helpers -------------------------------------------------------------

    def _require_mounted(self):
        if not self._mounted:
            raise NotMountedError("file system is not mounted")

    def _lookup(self, name):
        return next(
            (entry for entry in self._dir if entry.used and entry.name == name),
            None,
        )

    def _find(self, name):
        entry = self._lookup(name)
        if entry is None:
            raise FatError(f"file {name!r} not found")
        return entry

    def _next(self, block):
        if not 0 <= block < len(self._fat):
            raise FatError(f"invalid block number ({block}) in the FAT")
        return self._fat[block]

    def _free_block(self):
        return next(
            (i for i, value in enumerate(self._fat) if value == FREE), None
        )

    # -- operations ----------------------------------------------------------

    def format(self):
        """Write an empty file system over the whole disk."""
        if self._mounted:
            raise FatError("cannot format a mounted file system")
        number_blocks = self.disk.blocks
        fat_blocks = _fat_blocks_for(number_blocks)
        if number_blocks < TABLE_BLOCK + fat_blocks:
            raise FatError(f"disk of {number_blocks} blocks is too small")

        self.magic = MAGIC
        self.number_blocks = number_blocks
        self.fat_blocks = fat_blocks
        self._write_super()

        self._dir = [DirEntry() for _ in range(DIR_ENTRIES)]
        self._write_dir()

        fat = [FREE] * number_blocks
        fat[SUPER_BLOCK] = BUSY
        fat[DIR_BLOCK] = BUSY
        for block in range(TABLE_BLOCK, TABLE_BLOCK + fat_blocks):
            fat[block] = BUSY
        self._write_fat(fat)
        self._fat = None

    def mount(self):
        """Load the superblock, directory and FAT; remounts if already mounted."""
        if self._mounted:
            self._fat = None
            self._mounted = False

        raw = self.disk.read(SUPER_BLOCK)
        self.magic, self.number_blocks, self.fat_blocks = _SUPER.unpack_from(raw)
        if self.magic != MAGIC:
            raise FatError("not a valid file system: bad magic number")
        if self.fat_blocks != _fat_blocks_for(self.number_blocks):
            raise FatError("not a valid file system: bad FAT size")
        if self.number_blocks < TABLE_BLOCK + self.fat_blocks:
            raise FatError("not a valid file system: bad block count")

        self._read_dir()
        self._fat = self._read_fat()
        self._mounted = True

    def debug(self):
        """Return a text report of the superblock and the files."""
        lines = ["superblock:"]
        if self.magic == MAGIC:
            lines.append("\tmagic is ok")
        else:
            lines.append("\tmagic is not ok")
        lines.append(f"\t{self.number_blocks} blocks")
        lines.append(f"\t{self.fat_blocks} block fat")
        fat = self._fat or []
        for entry in self._dir:
            if not entry.used:
                continue
            lines.append(f'File "{entry.name}":')
            lines.append(f"\tsize: {entry.length} bytes")
            blocks = []
            block = entry.first
            seen = set()
            while block not in (FREE, EOF_MARK) and block < len(fat):
                if block in seen:
                    break
                seen.add(block)
                blocks.append(f"{block} ")
                block = fat[block]
            lines.append("\tBlocks: " + "".join(blocks))
        return "\n".join(lines) + "\n"

    def create(self, name):
        """Create an empty file called *name*."""
        self._require_mounted()
        if len(name.encode("utf-8")) > MAX_NAME:
            raise FatError(
                f"file name {name!r} is too long; at most {MAX_NAME} characters"
            )
        if self._lookup(name) is not None:
            raise FatError(f"file {name!r} already exists")
        entry = next((e for e in self._dir if not e.used), None)
        if entry is None:
            raise FatError("no free directory entry")
        entry.used = True
        entry.name = name
        entry.length = 0
        entry.first = FREE
        self._write_dir()

    def delete(self, name):
        """Remove *name* and free its blocks."""
        self._require_mounted()
        entry = self._find(name)
        block = entry.first
        while block not in (FREE, EOF_MARK):
            following = self._next(block)
            self._fat[block] = FREE
            block = following
        entry.used = False
        entry.name = ""
        entry.length = 0
        entry.first = FREE
        self._write_fat(self._fat)
        self._write_dir()

    def size(self, name):
        """Return the length of *name* in bytes."""
        self._require_mounted()
        return self._find(name).length

    def files(self):
        """Return copies of the directory entries in use."""
        self._require_mounted()
        return [replace(entry) for entry in self._dir if entry.used]

    def read(self, name, length, offset=0):
        """Return up to *length* bytes of *name* starting at *offset*."""
        self._require_mounted()
        if length < 0 or offset < 0:
            raise ValueError("length and offset must not be negative")
        entry = self._find(name)
        if offset >= entry.length:
            return b""
        length = min(length, entry.length - offset)
        if length <= 0:
            return b""

        block = entry.first
        for _ in range(offset // BLOCK_SIZE):
            block = self._next(block)
        start = offset % BLOCK_SIZE

        chunks = []
        total = 0
        while total < length and block not in (FREE, EOF_MARK):
            if block >= self.number_blocks:
                raise FatError(
                    f"invalid block number ({block}) while reading {name!r}"
                )
            data = self.disk.read(block)
            count = min(BLOCK_SIZE - start, length - total)
            chunks.append(data[start:start + count])
            total += count
            start = 0
            if total < length:
                block = self._next(block)
        return b"".join(chunks)

    def write(self, name, data, offset=0):
        """Write *data* into *name* at *offset*; return the bytes written.

        An offset past the end of the file appends. When the disk fills up,
        fewer bytes than given are written.
        """
        self._require_mounted()
        if offset < 0:
            raise ValueError("offset must not be negative")
        data = bytes(data)
        length = len(data)
        entry = self._find(name)
        old_length = entry.length
        first = entry.first

        if offset > old_length:
            logger.warning(
                "offset beyond end of %r; appending at the end instead", name
            )
            offset = old_length

        last = FREE
        if first == FREE:
            current = FREE
        else:
            current = first
            for _ in range(offset // BLOCK_SIZE):
                last = current
                current = self._next(current)
                if current in (FREE, EOF_MARK):
                    break
        start = offset % BLOCK_SIZE

        written = 0
        while written < length:
            remaining = length - written
            if current in (FREE, EOF_MARK):
                new_block = self._free_block()
                if new_block is None:
                    logger.warning("disk full")
                    break
                self._fat[new_block] = EOF_MARK
                if first == FREE:
                    entry.first = new_block
                    first = new_block
                else:
                    self._fat[last] = new_block
                current = new_block

            if start != 0 or remaining < BLOCK_SIZE:
                block = bytearray(self.disk.read(current))
            else:
                block = bytearray(BLOCK_SIZE)

            count = min(BLOCK_SIZE - start, remaining)
            block[start:start + count] = data[written:written + count]
            self.disk.write(current, block)

            written += count
            start = 0
            last = current
            if written < length:
                current = self._next(current)

        new_length = offset + written
        if new_length > old_length:
            entry.length = new_length

        self._write_fat(self._fat)
        self._write_dir()
        return written