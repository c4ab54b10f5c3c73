"""Conversion of Hamiltonian trajectories between file formats.

Sites can be selected, shifted and isotope labelled on the way, and the
two-exciton Hamiltonian and dipoles can be built from the one-exciton
ones.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .formats import Format, FormatError, SnapshotReader, SnapshotWriter
from .hamiltonian import Modification, construct_doubles
from .keywords import keyword_float, keyword_int, keyword_string

_log = logging.getLogger(__name__)

_SKIP_DOUBLES = "Doubles"


class TranslateError(Exception):
    """Raised when the translation input is missing, invalid or cannot be processed."""


@dataclass
class TranslateSettings:
    """Parameters of one format translation."""

    input_energy: str = ""
    output_energy: str = ""
    input_dipole: str = ""
    output_dipole: str = ""
    input_alpha: str = ""
    output_alpha: str = ""
    input_anharmonicity: str = ""
    output_anharmonicity: str = ""
    input_overtone: str = ""
    output_overtone: str = ""
    input_dipole_x: str = ""
    output_dipole_x: str = ""
    input_dipole_y: str = ""
    output_dipole_y: str = ""
    input_dipole_z: str = ""
    output_dipole_z: str = ""
    singles: int = 0
    doubles: int = -1
    input_format: Optional[Format] = None
    output_format: Optional[Format] = None
    anharmonicity: float = 16.0
    dipole12: float = 1.41421356237
    length: int = 1
    skip_doubles: str = ""
    modification: Optional[Modification] = None

    @property
    def keep_doubles(self) -> bool:
        """Whether the two-exciton part is built and written."""
        return self.skip_doubles != _SKIP_DOUBLES


_KEYWORDS = (
    ("InputEnergy", "s", "input_energy"),
    ("OutputEnergy", "s", "output_energy"),
    ("InputDipole", "s", "input_dipole"),
    ("OutputDipole", "s", "output_dipole"),
    ("InputAlpha", "s", "input_alpha"),
    ("OutputAlpha", "s", "output_alpha"),
    ("InputAnharm", "s", "input_anharmonicity"),
    ("OutputAnharm", "s", "output_anharmonicity"),
    ("InputOverto", "s", "input_overtone"),
    ("OutputOverto", "s", "output_overtone"),
    ("InputDipoleX", "s", "input_dipole_x"),
    ("OutputDipoleX", "s", "output_dipole_x"),
    ("InputDipoleY", "s", "input_dipole_y"),
    ("OutputDipoleY", "s", "output_dipole_y"),
    ("InputDipoleZ", "s", "input_dipole_z"),
    ("OutputDipoleZ", "s", "output_dipole_z"),
    ("Singles", "i", "singles"),
    ("Length", "i", "length"),
    ("Doubles", "i", "doubles"),
    ("Anharmonicity", "f", "anharmonicity"),
    ("InputFormat", "s", "input_format"),
    ("OutputFormat", "s", "output_format"),
    ("Skip", "s", "skip_doubles"),
)

_READERS = {"s": keyword_string, "i": keyword_int, "f": keyword_float}


class _Cursor:
    """Line source that can also hand out whitespace-separated words across lines."""

    def __init__(self, lines: Iterable[str]):
        self._lines = iter(lines)
        self._pending: Optional[str] = None
        self._skip_blank = False

    def readline(self) -> Optional[str]:
        if self._pending is not None:
            text, self._pending = self._pending, None
            self._skip_blank = False
            return text
        text = next(self._lines, None)
        if self._skip_blank:
            while text is not None and not text.strip():
                text = next(self._lines, None)
            self._skip_blank = False
            if text is not None:
                text = text.lstrip()
        return text

    def word(self) -> str:
        while True:
            text = self.readline()
            if text is None:
                raise TranslateError("Unexpected end of input in Modify block!")
            parts = text.split(None, 1)
            if parts:
                break
        rest = parts[1] if len(parts) > 1 else ""
        self._pending = rest if rest.strip() else None
        self._skip_blank = True
        return parts[0]

    def integer(self) -> int:
        text = self.word()
        try:
            return int(text)
        except ValueError as exc:
            raise TranslateError(f"Expected an integer in Modify block, found {text!r}!") from exc

    def number(self) -> float:
        text = self.word()
        try:
            return float(text)
        except ValueError as exc:
            raise TranslateError(f"Expected a number in Modify block, found {text!r}!") from exc


def _triangle(n: int) -> int:
    return n * (n + 1) // 2


def parse_modification(lines, singles, skip_doubles):
    """Read the Select, Label and Shift sections that follow a ``Modify`` line.

    ``lines`` supplies the lines after the ``Modify`` line and is consumed
    as far as the block reaches. When the number of selected sites equals
    ``singles`` no site numbers are read and all sites are kept in order.
    """
    cursor = lines if isinstance(lines, _Cursor) else _Cursor(lines)
    header = cursor.readline()
    if header is None or not header.startswith("Select"):
        raise TranslateError("Select keyword not found after Modify!")
    _log.info("%s", header.rstrip("\n"))
    parts = header.split()
    try:
        count = int(parts[1])
    except (IndexError, ValueError) as exc:
        raise TranslateError("Number of sites missing after Select keyword!") from exc
    if count != singles:
        select = [cursor.integer() for _ in range(count)]
    else:
        select = list(range(count))

    header = cursor.readline()
    if header is None or not header.startswith("Label"):
        raise TranslateError("Label keyword not found in Modify!")
    label = [cursor.integer() for _ in range(count)]

    header = cursor.readline()
    if header is None or not header.startswith("Shift"):
        raise TranslateError("Shift keyword not found in Modify!")
    shift = [cursor.number() for _ in range(count)]

    doubles = _triangle(count) if skip_doubles != _SKIP_DOUBLES else 0
    return Modification(select=select, label=label, shift=shift, doubles=doubles)


def _to_format(name: str, direction: str) -> Format:
    try:
        return Format(name)
    except ValueError as exc:
        raise TranslateError(f"{direction} format {name} unknown.") from exc


def parse_translate_input(lines):
    """Build :class:`TranslateSettings` from the lines of a translation input file."""
    values = {"input_format": "", "output_format": ""}
    settings = TranslateSettings()
    cursor = _Cursor(lines)
    while (line := cursor.readline()) is not None:
        for keyword, kind, target in _KEYWORDS:
            value = _READERS[kind](keyword, line)
            if value is None:
                continue
            if kind != "s" or value:
                if target in values:
                    values[target] = value
                else:
                    setattr(settings, target, value)
            _log.info("%s: %s", keyword, value)
            break
        else:
            if line.startswith("Modify"):
                _log.info("Modify:")
                settings.modification = parse_modification(
                    cursor, settings.singles, settings.skip_doubles
                )

    if settings.doubles == -1:
        settings.doubles = _triangle(settings.singles)
    settings.input_format = _to_format(values["input_format"], "Input")
    settings.output_format = _to_format(values["output_format"], "Output")
    return settings


def read_translate_input(path):
    """Read the translation input file at ``path``."""
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise TranslateError(f"File not found: {path}") from exc
    return parse_translate_input(text.splitlines(keepends=True))


def translate(settings):
    """Convert the trajectory described by ``settings``; return the number of snapshots written."""
    input_format = settings.input_format
    output_format = settings.output_format
    if not isinstance(input_format, Format):
        input_format = _to_format(str(input_format), "Input")
    if not isinstance(output_format, Format):
        output_format = _to_format(str(output_format), "Output")
    keep = settings.keep_doubles
    modification = settings.modification
    written = 0
    try:
        with SnapshotReader(
            input_format,
            settings.input_energy,
            settings.input_dipole,
            alpha=settings.input_alpha or None,
            anharmonicity=settings.input_anharmonicity,
            overtone=settings.input_overtone,
            dipole_x=settings.input_dipole_x,
            dipole_y=settings.input_dipole_y,
            dipole_z=settings.input_dipole_z,
        ) as reader:
            alpha_out = settings.output_alpha if reader.has_alpha and settings.output_alpha else None
            with SnapshotWriter(
                output_format,
                settings.output_energy,
                settings.output_dipole,
                alpha=alpha_out,
                anharmonicity=settings.output_anharmonicity,
                overtone=settings.output_overtone,
                dipole_x=settings.output_dipole_x,
                dipole_y=settings.output_dipole_y,
                dipole_z=settings.output_dipole_z,
            ) as writer:
                for index in range(settings.length):
                    snapshot = reader.read(settings.singles, settings.doubles)
                    singles, doubles = settings.singles, settings.doubles
                    if modification is not None:
                        snapshot = modification.apply(snapshot, singles)
                        singles, doubles = modification.singles, modification.doubles
                    if keep and (modification is not None or doubles == _triangle(singles)):
                        snapshot = construct_doubles(snapshot, singles, settings.anharmonicity)
                        doubles = _triangle(singles)
                    writer.write(snapshot, singles, doubles if keep else 0, index)
                    written += 1
    except (FormatError, ValueError) as exc:
        raise TranslateError(str(exc)) from exc
    return written


def main(argv=None):
    """Translate the trajectory described by the input file named on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
    if not args:
        print("Specify input file name on command line!\nProgram terminated!")
        return 1
    print(f"Using input file '{args[0]}'.")
    try:
        translate(read_translate_input(args[0]))
    except TranslateError as exc:
        print(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())