# fatsim

`fatsim` keeps a tiny FAT-style file system inside an ordinary file that
stands in for a disk. The disk is split into 4096-byte blocks. Block 0 holds
the superblock and block 1 the directory. The blocks after those hold the
file allocation table. File data lives in chains of blocks that are linked
through the table.

The package is meant for learning how a file allocation table works. Every
block read and write goes through a small simulated disk that counts them, so
you can see what each operation costs.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The shell

```
fatsim <image file> <number of blocks>
```

This opens the image file, or creates it if it does not exist, and resizes it
to the given number of blocks. It then reads commands at the prompt ` sys> `.
The shell's messages are in Portuguese. The commands are:

| command | what it does |
| --- | --- |
| `formatar` | write an empty file system to the disk (refused while mounted) |
| `montar` | mount the file system on the disk (mounting again reloads it) |
| `depurar` | print the superblock and each file with its size and block chain |
| `criar <arquivo>` | create an empty file |
| `deletar <arquivo>` | delete a file and free its blocks |
| `ver <arquivo>` | print a file's contents |
| `medir <arquivo>` | print a file's size in bytes |
| `importar <host path> <arquivo>` | copy a file from the host into an existing file in the image |
| `exportar <arquivo> <host path>` | copy a file from the image to the host |
| `help` | list the commands |
| `sair` | leave the shell |

The shell also ends at the end of its input. When it ends, the disk is closed
and the shell reports how many blocks were read and written.

A typical session:

```
$ fatsim disco.img 20
 sys> formatar
 sys> montar
 sys> criar notas
 sys> importar README.md notas
 sys> medir notas
 sys> exportar notas copia.md
 sys> sair
```

`importar` writes into a file that already exists, so create the file with
`criar` first.

## Using it from Python

```python
from fatsim.disk import Disk
from fatsim.fat import FileSystem, FatError

with Disk("disco.img", 20) as disk:
    fs = FileSystem(disk)
    fs.format()
    fs.mount()

    fs.create("notas")
    fs.write("notas", b"hello, disk", 0)
    print(fs.size("notas"))        # 11
    print(fs.read("notas", 5, 0))  # b'hello'

    for entry in fs.files():
        print(entry.name, entry.length, entry.first)

    print(fs.debug())

    try:
        fs.create("notas")
    except FatError as exc:
        print("could not create:", exc)

    print(disk.reads, disk.writes)
```

- `Disk(path, blocks)` has `read(number)`, which returns one block as bytes,
  and `write(number, data)`, which takes exactly one block of data. It counts
  the calls in `reads` and `writes`. It raises `DiskError` for a block number
  outside the disk, for data of the wrong size and for any access after
  `close()`. It can be used as a context manager.
- `FileSystem(disk)` has `format()`, `mount()`, `create(name)`,
  `delete(name)`, `size(name)`, `read(name, length, offset)`,
  `write(name, data, offset)` and `files()`. `files()` returns copies of the
  directory entries in use as `DirEntry` objects. `debug()` returns the report
  that the shell's `depurar` prints, as a string. The `mounted` property tells
  whether the file system is mounted.
- Failures raise `FatError`. File operations before `mount()` raise
  `NotMountedError`, which is a subclass of `FatError`. A negative length or
  offset raises `ValueError`.

Writing at an offset past the end of a file appends at the end of the file
and logs a warning. When a write runs out of free blocks it stops early. The
number of bytes it returns shows how much was written.

The shell is available as `fatsim.cli.Shell(fs, out)`. `execute(line)` runs
one command and returns `False` for `sair`. `run(lines)` prompts for lines and
runs them in turn. The helpers `import_file(fs, host_path, name, out)` and
`export_file(fs, name, host_path, out)` do the copying behind `importar` and
`exportar`, and return the number of bytes copied.

## Limits

- File names are at most 6 bytes long.
- The directory is a single block, so there can be at most 273 files at once.
- There are no subdirectories, permissions or timestamps, and files cannot be
  renamed or truncated.
- Formatting needs a disk large enough to hold the superblock, the directory
  and the allocation table.