import pytest

from fatsim.disk import BLOCK_SIZE, Disk
from fatsim.fat import (
    MAGIC,
    DirEntry,
    FatError,
    FileSystem,
    NotMountedError,
)


@pytest.fixture
def disk(tmp_path):
    with Disk(tmp_path / "image", 20) as d:
        yield d


@pytest.fixture
def fs(disk):
    filesystem = FileSystem(disk)
    filesystem.format()
    filesystem.mount()
    return filesystem


def _pattern(size):
    return bytes(i % 251 for i in range(size))


def test_format_writes_magic_in_superblock(disk):
    FileSystem(disk).format()
    assert disk.read(0)[:4] == MAGIC.to_bytes(4, "little")
    assert MAGIC == 0xAC0010DE


def test_mount_unformatted_disk_fails(disk):
    with pytest.raises(FatError):
        FileSystem(disk).mount()


def test_format_while_mounted_fails(fs):
    with pytest.raises(FatError):
        fs.format()


def test_format_tiny_disk_fails(tmp_path):
    with Disk(tmp_path / "tiny", 2) as disk:
        with pytest.raises(FatError):
            FileSystem(disk).format()


def test_operations_need_mount(disk):
    filesystem = FileSystem(disk)
    filesystem.format()
    with pytest.raises(NotMountedError):
        filesystem.create("a")
    with pytest.raises(NotMountedError):
        filesystem.size("a")
    with pytest.raises(NotMountedError):
        filesystem.read("a", 10)
    with pytest.raises(NotMountedError):
        filesystem.write("a", b"x")
    with pytest.raises(NotMountedError):
        filesystem.delete("a")


def test_create_new_file_is_empty(fs):
    fs.create("notes")
    assert fs.size("notes") == 0
    assert fs.read("notes", 100) == b""
    assert fs.files() == [DirEntry(True, "notes", 0, 0)]


def test_create_duplicate_fails(fs):
    fs.create("a")
    with pytest.raises(FatError):
        fs.create("a")


def test_create_name_length_limit(fs):
    fs.create("sixchr")
    assert fs.size("sixchr") == 0
    with pytest.raises(FatError):
        fs.create("seven77")


def test_directory_fills_up(fs):
    for i in range(256):
        fs.create(f"f{i}")
    assert len(fs.files()) == 256
    with pytest.raises(FatError):
        fs.create("extra")


def test_missing_file_errors(fs):
    with pytest.raises(FatError):
        fs.size("nope")
    with pytest.raises(FatError):
        fs.read("nope", 1)
    with pytest.raises(FatError):
        fs.write("nope", b"x")
    with pytest.raises(FatError):
        fs.delete("nope")


def test_small_write_read_round_trip(fs):
    fs.create("a")
    assert fs.write("a", b"hello world") == len(b"hello world")
    assert fs.size("a") == len(b"hello world")
    assert fs.read("a", 1000) == b"hello world"


def test_multi_block_round_trip(fs):
    data = _pattern(3 * BLOCK_SIZE + 123)
    fs.create("big")
    assert fs.write("big", data) == len(data)
    assert fs.size("big") == len(data)
    assert fs.read("big", len(data)) == data


def test_read_with_offset_and_clipping(fs):
    data = _pattern(2 * BLOCK_SIZE + 50)
    fs.create("a")
    fs.write("a", data)
    offset = BLOCK_SIZE - 10
    assert fs.read("a", 30, offset) == data[offset:offset + 30]
    assert fs.read("a", 10 * BLOCK_SIZE, offset) == data[offset:]
    assert fs.read("a", 5, len(data)) == b""


def test_chunked_reads_rebuild_file(fs):
    data = _pattern(3 * BLOCK_SIZE + 7)
    fs.create("a")
    fs.write("a", data)
    pieces = []
    offset = 0
    while chunk := fs.read("a", 1000, offset):
        pieces.append(chunk)
        offset += len(chunk)
    assert b"".join(pieces) == data


def test_offset_past_end_appends(fs):
    fs.create("a")
    fs.write("a", b"abc")
    assert fs.write("a", b"def", 100) == 3
    assert fs.size("a") == len(b"abcdef")
    assert fs.read("a", 100) == b"abcdef"


def test_sequential_appends_across_block_boundary(fs):
    data = _pattern(BLOCK_SIZE + 500)
    fs.create("a")
    fs.write("a", data[:BLOCK_SIZE])
    fs.write("a", data[BLOCK_SIZE:], BLOCK_SIZE)
    assert fs.read("a", len(data)) == data


def test_overwrite_in_middle_keeps_size(fs):
    data = _pattern(BLOCK_SIZE + 1000)
    fs.create("a")
    fs.write("a", data)
    offset = BLOCK_SIZE - 1
    fs.write("a", b"XYZ", offset)
    expected = bytearray(data)
    expected[offset:offset + 3] = b"XYZ"
    assert fs.size("a") == len(data)
    assert fs.read("a", len(data)) == bytes(expected)


def test_disk_full_writes_partially(fs):
    data = _pattern(20 * BLOCK_SIZE)
    fs.create("a")
    written = fs.write("a", data)
    assert 0 < written < len(data)
    assert written % BLOCK_SIZE == 0
    assert fs.size("a") == written
    assert fs.read("a", len(data)) == data[:written]
    fs.create("b")
    assert fs.write("b", b"more") == 0
    assert fs.size("b") == 0


def test_delete_frees_blocks_and_entry(fs):
    data = _pattern(20 * BLOCK_SIZE)
    fs.create("a")
    first = fs.write("a", data)
    fs.delete("a")
    assert fs.files() == []
    with pytest.raises(FatError):
        fs.size("a")
    fs.create("b")
    assert fs.write("b", data) == first


def test_data_persists_across_mounts(disk, fs):
    data = _pattern(BLOCK_SIZE + 77)
    fs.create("keep")
    fs.write("keep", data)
    other = FileSystem(disk)
    other.mount()
    assert other.size("keep") == len(data)
    assert other.read("keep", len(data)) == data


def test_data_persists_across_reopen(tmp_path):
    path = tmp_path / "image"
    data = _pattern(2000)
    with Disk(path, 20) as disk:
        filesystem = FileSystem(disk)
        filesystem.format()
        filesystem.mount()
        filesystem.create("f")
        filesystem.write("f", data)
    with Disk(path, 20) as disk:
        filesystem = FileSystem(disk)
        filesystem.mount()
        assert filesystem.read("f", len(data)) == data


def test_remount_keeps_state(fs):
    fs.create("a")
    fs.write("a", b"data")
    fs.mount()
    assert fs.mounted
    assert fs.read("a", 10) == b"data"


def test_negative_arguments_rejected(fs):
    fs.create("a")
    with pytest.raises(ValueError):
        fs.read("a", 10, -1)
    with pytest.raises(ValueError):
        fs.read("a", -1)
    with pytest.raises(ValueError):
        fs.write("a", b"x", -5)


def test_debug_report(fs):
    fs.create("hello")
    fs.write("hello", b"x" * 10)
    report = fs.debug()
    assert report.startswith("superblock:\n\tmagic is ok\n")
    assert "\t20 blocks\n" in report
    assert 'File "hello":\n' in report
    assert "\tsize: 10 bytes\n" in report
    assert "\tBlocks: 3 \n" in report


def test_debug_on_unformatted_state(disk):
    report = FileSystem(disk).debug()
    assert "magic is not ok" in report
    assert "\t0 blocks\n" in report