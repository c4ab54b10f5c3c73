"""Readers and writers for the supported Hamiltonian trajectory formats.

Binary formats hold little-endian 32-bit integers and floats. Text
formats hold whitespace- or tab-separated numbers.
"""

from __future__ import annotations

import logging
import re
import struct
from enum import Enum
from typing import IO, Dict, List, Optional

from .hamiltonian import (
    DIPOLE_COMPONENTS,
    POLARIZABILITY_COMPONENTS,
    Snapshot,
    symmetric_index,
)

_log = logging.getLogger(__name__)

_LEADING_FLOAT = re.compile(
    r"\s*([+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


class FormatError(Exception):
    """Raised when a trajectory file cannot be opened or read."""


class Format(Enum):
    """Supported trajectory formats."""

    GROBIN = "GROBIN"
    GROASC = "GROASC"
    MITASC = "MITASC"
    SPECTRON = "SPECTRON"
    MITTXT = "MITTXT"
    SKIBIN = "SKIBIN"

    @property
    def binary(self) -> bool:
        return self in (Format.GROBIN, Format.SKIBIN)

    @property
    def has_alpha(self) -> bool:
        return self in (Format.GROBIN, Format.GROASC)


def _as_format(fmt) -> Format:
    try:
        return Format(fmt)
    except ValueError as exc:
        raise FormatError(f"Format {fmt} unknown.") from exc


def _triangle(n: int) -> int:
    return max(n, 0) * (max(n, 0) + 1) // 2


def _fit(values: List[float], count: int) -> List[float]:
    count = max(count, 0)
    kept = list(values[:count])
    return kept + [0.0] * (count - len(kept))


def _open(path, mode: str, message: str) -> IO:
    if not path:
        raise FormatError(message)
    try:
        return open(path, mode)
    except OSError as exc:
        raise FormatError(message) from exc


def _atof(text: str) -> float:
    found = _LEADING_FLOAT.match(text)
    return float(found.group(1)) if found else 0.0


def _read_int(handle: IO) -> int:
    data = handle.read(4)
    if len(data) < 4:
        raise FormatError(f"Unexpected end of file {getattr(handle, 'name', '')}")
    return struct.unpack("<i", data)[0]


def _read_floats(handle: IO, count: int) -> List[float]:
    if count <= 0:
        return []
    data = handle.read(4 * count)
    if len(data) < 4 * count:
        raise FormatError(f"Unexpected end of file {getattr(handle, 'name', '')}")
    return list(struct.unpack(f"<{count}f", data))


def _write_int(handle: IO, value: int) -> None:
    handle.write(struct.pack("<i", value))


def _write_floats(handle: IO, values: List[float], count: int) -> None:
    if count > 0:
        handle.write(struct.pack(f"<{count}f", *_fit(values, count)))


def _tab_values(line: str, count: int, row_length: Optional[int] = None) -> List[float]:
    """Read tab-separated values; after every ``row_length`` values one extra character is skipped."""
    values = []
    position = 0
    for number in range(count):
        end = line.find("\t", position)
        if end < 0:
            end = len(line)
        values.append(_atof(line[position:end]))
        position = end + 1
        if row_length and (number + 1) % row_length == 0:
            position += 1
    return values


class _Tokens:
    """Whitespace-separated words of a text file, read lazily."""

    def __init__(self, handle: IO):
        self._name = getattr(handle, "name", "")
        self._words = (word for line in handle for word in line.split())

    def word(self) -> str:
        word = next(self._words, None)
        if word is None:
            raise FormatError(f"Unexpected end of file {self._name}")
        return word

    def number(self) -> float:
        word = self.word()
        try:
            return float(word)
        except ValueError as exc:
            raise FormatError(f"Expected a number in {self._name}, found {word!r}") from exc

    def integer(self) -> int:
        word = self.word()
        try:
            return int(word)
        except ValueError as exc:
            raise FormatError(f"Expected an integer in {self._name}, found {word!r}") from exc


class _Files:
    """Named open files with shared closing."""

    def __init__(self) -> None:
        self.handles: Dict[str, IO] = {}

    def close(self) -> None:
        for handle in self.handles.values():
            handle.close()
        self.handles.clear()


class SnapshotReader:
    """Reads successive snapshots from the input files of one format."""

    def __init__(
        self,
        fmt,
        energy,
        dipole=None,
        *,
        alpha=None,
        anharmonicity=None,
        overtone=None,
        dipole_x=None,
        dipole_y=None,
        dipole_z=None,
    ):
        self.format = _as_format(fmt)
        self._files = _Files()
        mode = "rb" if self.format.binary else "r"
        handles = self._files.handles
        try:
            handles["energy"] = _open(energy, mode, "Problem opening energy input file")
            if self.format is Format.MITASC:
                for name, path in (("x", dipole_x), ("y", dipole_y), ("z", dipole_z)):
                    handles[name] = _open(path, mode, "Problem opening dipole input file")
            else:
                handles["dipole"] = _open(dipole, mode, "Problem opening dipole input file")
            if self.format is Format.SKIBIN:
                handles["anharmonicity"] = _open(
                    anharmonicity, mode, "Problem opening anharmonicity input file"
                )
                handles["overtone"] = _open(
                    overtone, mode, "Problem opening overtone dipole input file"
                )
            if self.format.has_alpha and alpha:
                try:
                    handles["alpha"] = open(alpha, mode)
                except OSError:
                    pass
        except FormatError:
            self._files.close()
            raise
        if "alpha" not in handles:
            _log.info("Transition polarizability file not opened!")
        self._tokens = {
            name: _Tokens(handle) for name, handle in handles.items()
        } if self.format in (Format.GROASC, Format.MITTXT, Format.SPECTRON) else {}

    @property
    def has_alpha(self) -> bool:
        """Whether a transition polarizability file is being read."""
        return "alpha" in self._files.handles

    def __enter__(self) -> "SnapshotReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self):
        """Close all input files."""
        self._files.close()

    def read(self, singles, doubles):
        """Read the next snapshot for ``singles`` sites and ``doubles`` two-exciton states."""
        snapshot = Snapshot.empty(singles, doubles)
        handler = {
            Format.GROBIN: self._read_grobin,
            Format.SKIBIN: self._read_skibin,
            Format.MITASC: self._read_mitasc,
            Format.GROASC: self._read_groasc,
            Format.MITTXT: self._read_mittxt,
            Format.SPECTRON: self._read_spectron,
        }[self.format]
        handler(snapshot, singles, doubles)
        return snapshot

    def _read_grobin(self, snapshot: Snapshot, singles: int, doubles: int) -> None:
        handles = self._files.handles
        energy, dipole = handles["energy"], handles["dipole"]
        snapshot.time = _read_int(energy)
        snapshot.he = _read_floats(energy, _triangle(singles))
        snapshot.hf = _read_floats(energy, _triangle(doubles))
        snapshot.time = _read_int(dipole)
        snapshot.mu_ge = _read_floats(dipole, DIPOLE_COMPONENTS * singles)
        snapshot.mu_ef = _read_floats(dipole, DIPOLE_COMPONENTS * singles * doubles)
        if "alpha" in handles:
            snapshot.time = _read_int(handles["alpha"])
            snapshot.alpha = _read_floats(handles["alpha"], POLARIZABILITY_COMPONENTS * singles)

    def _read_skibin(self, snapshot: Snapshot, singles: int, doubles: int) -> None:
        handles = self._files.handles
        snapshot.time = _read_int(handles["energy"])
        snapshot.he = _read_floats(handles["energy"], _triangle(singles))
        snapshot.time = _read_int(handles["dipole"])
        snapshot.mu_ge = _read_floats(handles["dipole"], DIPOLE_COMPONENTS * singles)
        snapshot.time = _read_int(handles["anharmonicity"])
        snapshot.anharmonicity = _read_floats(handles["anharmonicity"], singles)
        snapshot.time = _read_int(handles["overtone"])
        snapshot.overtone = _read_floats(handles["overtone"], DIPOLE_COMPONENTS * singles)

    def _readline(self, name: str) -> str:
        line = self._files.handles[name].readline()
        if not line:
            raise FormatError(f"Unexpected end of file {getattr(self._files.handles[name], 'name', '')}")
        return line

    def _read_mitasc(self, snapshot: Snapshot, singles: int, doubles: int) -> None:
        values = _tab_values(self._readline("energy"), singles * singles, singles)
        for k in range(singles):
            for l in range(k, singles):
                snapshot.he[symmetric_index(k, l, singles)] = values[k * singles + l]
        snapshot.mu_ge = [
            value
            for name in ("x", "y", "z")
            for value in _tab_values(self._readline(name), singles)
        ]

    def _read_groasc(self, snapshot: Snapshot, singles: int, doubles: int) -> None:
        energy, dipole = self._tokens["energy"], self._tokens["dipole"]
        energy.integer()
        for k in range(singles):
            for l in range(k, singles):
                snapshot.he[symmetric_index(k, l, singles)] = energy.number()
        dipole.integer()
        snapshot.mu_ge = [dipole.number() for _ in range(DIPOLE_COMPONENTS * singles)]
        if "alpha" in self._tokens:
            alpha = self._tokens["alpha"]
            alpha.integer()
            snapshot.alpha = [alpha.number() for _ in range(POLARIZABILITY_COMPONENTS * singles)]

    def _read_site_major_dipoles(self, snapshot: Snapshot, singles: int) -> None:
        dipole = self._tokens["dipole"]
        for k in range(singles):
            for x in range(DIPOLE_COMPONENTS):
                snapshot.mu_ge[x * singles + k] = dipole.number()

    def _read_mittxt(self, snapshot: Snapshot, singles: int, doubles: int) -> None:
        energy = self._tokens["energy"]
        for k in range(singles):
            for l in range(singles):
                value = energy.number()
                if k <= l:
                    snapshot.he[symmetric_index(k, l, singles)] = value
        self._read_site_major_dipoles(snapshot, singles)

    def _read_spectron(self, snapshot: Snapshot, singles: int, doubles: int) -> None:
        energy = self._tokens["energy"]
        energy.word()
        energy.integer()
        for k in range(singles):
            for l in range(k + 1):
                snapshot.he[symmetric_index(l, k, singles)] = energy.number()
        dipole = self._tokens["dipole"]
        dipole.word()
        dipole.integer()
        self._read_site_major_dipoles(snapshot, singles)


class SnapshotWriter:
    """Writes successive snapshots to the output files of one format."""

    def __init__(
        self,
        fmt,
        energy,
        dipole=None,
        *,
        alpha=None,
        anharmonicity=None,
        overtone=None,
        dipole_x=None,
        dipole_y=None,
        dipole_z=None,
    ):
        self.format = _as_format(fmt)
        self._files = _Files()
        mode = "wb" if self.format.binary else "w"
        handles = self._files.handles
        try:
            handles["energy"] = _open(energy, mode, "Problem opening energy output file")
            if self.format is Format.MITASC:
                for name, path in (("x", dipole_x), ("y", dipole_y), ("z", dipole_z)):
                    handles[name] = _open(path, mode, "Problem opening dipole output file")
            else:
                handles["dipole"] = _open(dipole, mode, "Problem opening dipole output file")
            if self.format is Format.SKIBIN:
                handles["anharmonicity"] = _open(
                    anharmonicity, mode, "Problem opening anharmonicity output file"
                )
                handles["overtone"] = _open(
                    overtone, mode, "Problem opening overtone dipole output file"
                )
            if self.format.has_alpha and alpha:
                handles["alpha"] = _open(alpha, mode, "Problem opening polarizability output file")
        except FormatError:
            self._files.close()
            raise

    @property
    def has_alpha(self) -> bool:
        """Whether transition polarizabilities are written."""
        return "alpha" in self._files.handles

    def __enter__(self) -> "SnapshotWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self):
        """Close all output files."""
        self._files.close()

    def write(self, snapshot, singles, doubles, index):
        """Write ``snapshot`` as the snapshot numbered ``index`` (from zero).

        ``doubles`` is the number of two-exciton states written; pass 0 to
        leave out the doubly excited part.
        """
        handler = {
            Format.GROBIN: self._write_grobin,
            Format.SKIBIN: self._write_skibin,
            Format.MITASC: self._write_mitasc,
            Format.GROASC: self._write_groasc,
            Format.MITTXT: self._write_mittxt,
            Format.SPECTRON: self._write_spectron,
        }[self.format]
        handler(snapshot, singles, doubles, index)

    def _write_grobin(self, snapshot: Snapshot, singles: int, doubles: int, index: int) -> None:
        handles = self._files.handles
        energy, dipole = handles["energy"], handles["dipole"]
        _write_int(energy, snapshot.time)
        _write_floats(energy, snapshot.he, _triangle(singles))
        _write_floats(energy, snapshot.hf, _triangle(doubles))
        _write_int(dipole, snapshot.time)
        _write_floats(dipole, snapshot.mu_ge, DIPOLE_COMPONENTS * singles)
        _write_floats(dipole, snapshot.mu_ef, DIPOLE_COMPONENTS * singles * max(doubles, 0))
        if "alpha" in handles:
            _write_int(handles["alpha"], snapshot.time)
            _write_floats(handles["alpha"], snapshot.alpha, POLARIZABILITY_COMPONENTS * singles)

    def _write_skibin(self, snapshot: Snapshot, singles: int, doubles: int, index: int) -> None:
        handles = self._files.handles
        _write_int(handles["energy"], snapshot.time)
        _write_floats(handles["energy"], snapshot.he, _triangle(singles))
        _write_int(handles["dipole"], snapshot.time)
        _write_floats(handles["dipole"], snapshot.mu_ge, DIPOLE_COMPONENTS * singles)
        _write_int(handles["anharmonicity"], snapshot.time)
        _write_floats(handles["anharmonicity"], snapshot.anharmonicity, singles)
        _write_int(handles["overtone"], snapshot.time)
        _write_floats(handles["overtone"], snapshot.overtone, DIPOLE_COMPONENTS * singles)

    def _write_mitasc(self, snapshot: Snapshot, singles: int, doubles: int, index: int) -> None:
        handles = self._files.handles
        he = snapshot.he
        handles["energy"].write(
            "".join(
                f"{he[symmetric_index(k, l, singles)]:f}\t"
                for k in range(singles)
                for l in range(singles)
            )
            + "\n"
        )
        mu = _fit(snapshot.mu_ge, DIPOLE_COMPONENTS * singles)
        for x, name in enumerate(("x", "y", "z")):
            handles[name].write(
                "".join(f"{mu[x * singles + k]:f}\t" for k in range(singles)) + "\n"
            )

    def _write_groasc(self, snapshot: Snapshot, singles: int, doubles: int, index: int) -> None:
        handles = self._files.handles
        he = snapshot.he
        handles["energy"].write(
            "0 "
            + "".join(
                f"{he[symmetric_index(k, l, singles)]:f} "
                for k in range(singles)
                for l in range(k, singles)
            )
            + "\n"
        )
        mu = _fit(snapshot.mu_ge, DIPOLE_COMPONENTS * singles)
        handles["dipole"].write("0 " + "".join(f"{value:f} " for value in mu) + "\n")
        if "alpha" in handles:
            alpha = _fit(snapshot.alpha, POLARIZABILITY_COMPONENTS * singles)
            handles["alpha"].write("0 " + "".join(f"{value:f} " for value in alpha) + "\n")

    def _site_major_dipoles(self, snapshot: Snapshot, singles: int) -> str:
        mu = _fit(snapshot.mu_ge, DIPOLE_COMPONENTS * singles)
        return "".join(
            "".join(f"{mu[x * singles + k]:f} " for x in range(DIPOLE_COMPONENTS)) + "\n"
            for k in range(singles)
        )

    def _write_mittxt(self, snapshot: Snapshot, singles: int, doubles: int, index: int) -> None:
        handles = self._files.handles
        he = snapshot.he
        rows = "".join(
            "".join(f"{he[symmetric_index(k, l, singles)]:f} " for l in range(singles)) + "\n"
            for k in range(singles)
        )
        handles["energy"].write(rows + "\n")
        handles["dipole"].write(self._site_major_dipoles(snapshot, singles) + "\n")

    def _write_spectron(self, snapshot: Snapshot, singles: int, doubles: int, index: int) -> None:
        handles = self._files.handles
        he = snapshot.he
        rows = "".join(
            "".join(f"{he[symmetric_index(k, l, singles)]:f} " for l in range(k + 1)) + "\n"
            for k in range(singles)
        )
        handles["energy"].write(f"SNAPSHOT {index + 1}\n" + rows)
        handles["dipole"].write(
            f"SNAPSHOT {index + 1}\n" + self._site_major_dipoles(snapshot, singles)
        )