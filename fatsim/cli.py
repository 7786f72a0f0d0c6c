"""Interactive shell for the simulated FAT file system."""

from __future__ import annotations

import codecs
import contextlib
import sys
from dataclasses import dataclass
from functools import partial
from typing import Callable

from .disk import Disk, DiskError
from .fat import FatError, FileSystem

PROMPT = " sys> "
_CHUNK = 16384
_STDOUT_PATH = "/dev/stdout"
_FAILURES = (FatError, DiskError)

HELP_TEXT = (
    "Comandos:\n"
    "    formatar\n"
    "    montar\n"
    "    depurar\n"
    "    criar\t<arquivo>\n"
    "    deletar <arquivo>\n"
    "    ver     <arquivo>\n"
    "    medir   <arquivo>\n"
    "    importar <nome no linux> <nome fat-sys>\n"
    "    exportar <nome fat-sys> <nome no linux>\n"
    "    help\n"
    "    sair\n"
)


def _say(out, text):
    out.write(text + "\n")


def _report(exc):
    print(f"ERRO: {exc}", file=sys.stderr)


def _reason(exc):
    return exc.strerror or str(exc)


def import_file(fs, host_path, name, out=None):
    """Copy the host file *host_path* into *name*; return the bytes copied.

    Raises OSError when the host file cannot be opened.
    """
    out = out if out is not None else sys.stdout
    offset = 0
    with open(host_path, "rb") as source:
        for chunk in iter(partial(source.read, _CHUNK), b""):
            try:
                actual = fs.write(name, chunk, offset)
            except _FAILURES as exc:
                _say(out, f"ERRO: a escrita falhou: {exc}")
                break
            offset += actual
            if actual != len(chunk):
                _say(
                    out,
                    f"ATENCAO: a escrita gravou apenas {actual} bytes, "
                    f"em vez de {len(chunk)} bytes",
                )
                break
    _say(out, f"copia de {offset} bytes")
    return offset


def export_file(fs, name, host_path=None, out=None):
    """Copy *name* to the host file *host_path*; return the bytes copied.

    With no host path (or the standard output path) the contents go to *out*
    as text. Raises OSError when the host file cannot be opened.
    """
    out = out if out is not None else sys.stdout
    to_out = host_path is None or host_path == _STDOUT_PATH
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    opener = contextlib.nullcontext(None) if to_out else open(host_path, "wb")
    offset = 0
    with opener as target:
        while True:
            try:
                data = fs.read(name, _CHUNK, offset)
            except _FAILURES as exc:
                _report(exc)
                break
            if not data:
                break
            if target is None:
                out.write(decoder.decode(data))
            else:
                target.write(data)
            offset += len(data)
        if target is None:
            out.write(decoder.decode(b"", final=True))
    _say(out, f"copia de {offset} bytes")
    return offset


@dataclass(frozen=True)
class _Command:
    arity: int
    usage: str
    handler: Callable[..., None]


class Shell:
    """Reads command lines and applies them to a file system."""

    def __init__(self, fs, out=None):
        self.fs = fs
        self.out = out if out is not None else sys.stdout
        self._commands = {
            "formatar": _Command(0, "uso: formatar", self._format),
            "montar": _Command(0, "uso: montar", self._mount),
            "depurar": _Command(0, "uso: depurar", self._debug),
            "medir": _Command(1, "uso: medir <arquivo>", self._size),
            "criar": _Command(1, "uso: criar <arquivo>", self._create),
            "deletar": _Command(1, "uso: deletar <arquivo>", self._delete),
            "ver": _Command(1, "uso: ver <nome>", self._show),
            "importar": _Command(
                2, "uso: importar <nome no linux> <nome fat-sys>", self._import
            ),
            "exportar": _Command(
                2, "uso: exportar <nome fat-sys> <nome linux>", self._export
            ),
        }

    def _say(self, text):
        _say(self.out, text)

    def execute(self, line):
        """Run one command line; return False when the shell should stop."""
        tokens = line.split()[:3]
        if not tokens:
            return True
        name, args = tokens[0], tokens[1:]
        if name == "sair":
            return False
        if name == "help":
            self.out.write(HELP_TEXT)
            return True
        command = self._commands.get(name)
        if command is None:
            self._say(f"comando desconhecido: {name}")
            self._say("digite 'help'.")
        elif len(args) != command.arity:
            self._say(command.usage)
        else:
            command.handler(*args)
        return True

    def run(self, lines):
        """Prompt for and execute lines until they run out or 'sair' is given."""
        source = iter(lines)
        while True:
            self.out.write(PROMPT)
            self.out.flush()
            line = next(source, None)
            if line is None or not self.execute(line):
                break

    # -- command handlers ----------------------------------------------------

    def _format(self):
        try:
            self.fs.format()
        except _FAILURES as exc:
            _report(exc)
            self._say("falhou na formatacao!")
        else:
            self._say("formatou")

    def _mount(self):
        try:
            self.fs.mount()
        except _FAILURES as exc:
            _report(exc)
            self._say("falha de montagem!")
        else:
            self._say("montagem ok")

    def _debug(self):
        self.out.write(self.fs.debug())

    def _size(self, name):
        try:
            size = self.fs.size(name)
        except FatError as exc:
            _report(exc)
            self._say("falha na medida!")
        else:
            self._say(f"o arquivo {name} mede {size}")

    def _create(self, name):
        try:
            self.fs.create(name)
        except _FAILURES as exc:
            _report(exc)
            self._say("falha ao criar arquivo!")
        else:
            self._say(f"novo arquivo {name}")

    def _delete(self, name):
        try:
            self.fs.delete(name)
        except _FAILURES as exc:
            _report(exc)
            self._say("falha na delecao!")
        else:
            self._say(f"arquivo {name} deletado")

    def _show(self, name):
        export_file(self.fs, name, None, self.out)

    def _import(self, host_path, name):
        try:
            import_file(self.fs, host_path, name, self.out)
        except OSError as exc:
            self._say(f"falha ao acessar {host_path}: {_reason(exc)}")
            self._say("falha ao copiar!")
        else:
            self._say(f"arquivo linux {host_path} copiado para {name}")

    def _export(self, name, host_path):
        try:
            export_file(self.fs, name, host_path, self.out)
        except OSError as exc:
            self._say(f"nao deu para abrir {host_path}: {_reason(exc)}")
            self._say("falha ao copiar!")
        else:
            self._say(f"fat-sys {name} copiado para arquivo {host_path}")


def main(argv=None):
    """Open a disk image and run the interactive shell over standard input."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        print("uso: fatsim <arquivo> <quantosblocos>")
        return 1
    path, count = args
    try:
        blocks = int(count)
        if blocks < 0:
            raise ValueError(count)
    except ValueError:
        print("uso: fatsim <arquivo> <quantosblocos>")
        return 1
    try:
        disk = Disk(path, blocks)
    except OSError as exc:
        print(f"falha {path}: {_reason(exc)}")
        return 1

    with disk:
        print(f"simulacao de disco {path} com {disk.blocks} blocos")
        shell = Shell(FileSystem(disk), sys.stdout)
        shell.run(sys.stdin)
        print("fechando o disco simulado")
        print(f"{disk.reads} reads")
        print(f"{disk.writes} writes")
    return 0


if __name__ == "__main__":
    sys.exit(main())