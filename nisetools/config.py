"""Reading of the spectroscopy input file into a :class:`Settings` object."""

from __future__ import annotations

import logging
import math
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Union

from .keywords import (
    keyword_float,
    keyword_int,
    keyword_string,
    keyword_three_floats,
    keyword_three_ints,
)

_log = logging.getLogger(__name__)

K_B = 0.6950389  # cm-1 K-1
C_V = 2.99792458e-5  # speed of light in cm/fs
TWO_PI = 2 * 3.14159265359
ICM2IFS = 2.99792458e-5
IFS2ICM = 1.0 / 2.99792458e-5
SQRT2 = 1.41421356237
ITHIRTY = 1.0 / 30

RESET = "\033[0m"
RED = "\033[31m"

_WAITING_TIME_TECHNIQUES = frozenset(
    {
        "2DIR", "GBIR", "SEIR", "EAIR", "noEAIR", "2DUVvis", "EAUVvis",
        "noEAUVvis", "2DSFG", "SEUVvis", "GBUVvis", "2DIRraman",
        "2DIRraman1", "2DIRraman2", "2DIRraman3",
    }
)


class InputError(Exception):
    """Raised when the input file is missing or inconsistent."""


@dataclass
class Settings:
    """Parameters of a calculation as given in the input file."""

    propagation_scheme: str = ""
    energy_file: str = ""
    dipole_file: str = ""
    alpha_file: str = ""
    anharmonic_file: str = ""
    overtone_dipole_file: str = ""
    position_file: str = ""
    pdb_file: str = ""
    coupling_file: str = ""
    pbc_file: str = ""
    length: int = 0
    sample_rate: int = 0
    begin: int = 0
    end: int = 0
    lifetime: float = 0.0
    homogeneous: float = 0.0
    inhomogeneous: float = 0.0
    timestep: float = 0.0
    anharmonicity: float = 0.0
    fft: int = 0
    threshold: float = 0.0
    coupling_cut: float = 0.0
    temperature: float = 300.0
    tmax1: int = 256
    tmax2: int = 0
    tmax3: int = 256
    integration_steps: int = 0
    trotter: int = 5
    interpolation: int = 1
    cluster: int = -1
    singles: int = 0
    doubles: int = 0
    min1: float = 0.0
    min2: float = 0.0
    min3: float = 0.0
    max1: float = 0.0
    max2: float = 0.0
    max3: float = 0.0
    stat_start: float = 0.0
    stat_end: float = 0.0
    stat_step: float = 0.0
    technique: str = ""
    hamiltonian_type: str = "Full"
    basis: str = "Local"
    projected_sites: int = 0
    projection_sites: list = field(default_factory=list)
    print_level: int = 1
    dt1: int = 1
    dt2: int = 1
    dt3: int = 1
    tmax: int = 0
    propagation: int = 0
    stat_steps: int = 0


_PROJECTION = "projection"

_KEYWORDS = (
    ("Propagation", "s", "propagation_scheme"),
    ("Hamiltonianfile", "s", "energy_file"),
    ("Dipolefile", "s", "dipole_file"),
    ("Alphafile", "s", "alpha_file"),
    ("Anharmonicfile", "s", "anharmonic_file"),
    ("Overtonedipolefile", "s", "overtone_dipole_file"),
    ("Positionfile", "s", "position_file"),
    ("PDBfile", "s", "pdb_file"),
    ("Couplingfile", "s", "coupling_file"),
    ("PBCfile", "s", "pbc_file"),
    ("Length", "i", "length"),
    ("Samplerate", "i", "sample_rate"),
    ("BeginPoint", "i", "begin"),
    ("EndPoint", "i", "end"),
    ("Lifetime", "f", "lifetime"),
    ("Homogeneous", "f", "homogeneous"),
    ("Inhomogeneous", "f", "inhomogeneous"),
    ("Timestep", "f", "timestep"),
    ("Anharmonicity", "f", "anharmonicity"),
    ("FFT", "i", "fft"),
    ("Threshold", "f", "threshold"),
    ("Couplingcut", "f", "coupling_cut"),
    ("Temperature", "f", "temperature"),
    ("RunTimes", "3i", ("tmax1", "tmax2", "tmax3")),
    ("Integrationsteps", "i", "integration_steps"),
    ("Trotter", "i", "trotter"),
    ("Interpolation", "i", "interpolation"),
    ("Cluster", "i", "cluster"),
    ("Singles", "i", "singles"),
    ("Doubles", "i", "doubles"),
    ("MinFrequencies", "3f", ("min1", "min2", "min3")),
    ("MaxFrequencies", "3f", ("max1", "max2", "max3")),
    ("Static", "3f", ("stat_start", "stat_end", "stat_step")),
    ("Technique", "s", "technique"),
    ("HamiltonianType", "s", "hamiltonian_type"),
    ("Basis", "s", "basis"),
    ("Projection", _PROJECTION, None),
    ("PrintLevel", "i", "print_level"),
)

_READERS = {
    "s": keyword_string,
    "i": keyword_int,
    "f": keyword_float,
    "3i": keyword_three_ints,
    "3f": keyword_three_floats,
}


class _Cursor:
    """Line source that also reads whitespace-separated integers across lines."""

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

    def read_int(self) -> int:
        while True:
            text = self.readline()
            if text is None:
                raise InputError("Unexpected end of input while reading site numbers!")
            text = text.lstrip()
            if text:
                break
        found = re.match(r"[+-]?[0-9]+", text)
        if found is None:
            raise InputError(f"Expected a site number, found {text.split()[0]!r}!")
        rest = text[found.end():].lstrip()
        self._pending = rest or None
        self._skip_blank = True
        return int(found.group())


def _resolve(name: str, base_dir: Optional[Union[str, Path]]) -> Path:
    path = Path(name)
    if base_dir is not None and not path.is_absolute():
        return Path(base_dir) / path
    return path


def _read_sites(cursor: _Cursor, count: int, singles: int, source: str) -> list:
    if count > singles:
        raise InputError("More sites were specified than available!")
    sites = [0] * singles
    if count < singles:
        for _ in range(count):
            site = cursor.read_int()
            if not 0 <= site < singles:
                raise InputError(f"Site {site} is outside the range of available sites ({source}).")
            if sites[site] == 1:
                raise InputError(
                    f"Site {site} was defined twice for projection! "
                    f"Check your list of sites in {source}."
                )
            sites[site] = 1
    else:
        _log.info("Using segment numbers:")
        sites = [cursor.read_int() for _ in range(count)]
    _log.info("%s", " ".join(str(site) for site in sites))
    return sites


def parse_projection(header, stream, singles, base_dir=None):
    """Read a projection block that starts with ``header``.

    ``stream`` supplies the lines following the header. Returns a pair of
    the per-site projection list and the number of sites given, or
    ``None`` when ``header`` does not start a projection block.
    """
    if not header.startswith("Projec"):
        return None
    _log.info("Projection:")
    cursor = stream if isinstance(stream, _Cursor) else _Cursor(stream)
    selector = cursor.readline()
    if selector is None:
        raise InputError("Neither Sites nor Projectfile keyword found after Project!")
    if selector.startswith("Sites"):
        found = re.match(r"\s*\S+\s+([+-]?[0-9]+)", selector)
        if found is None:
            raise InputError("Number of sites missing after Sites keyword!")
        count = int(found.group(1))
        sites = _read_sites(cursor, count, singles, "the input file")
    elif selector.startswith("Projectfile"):
        found = re.match(r"\s*\S+\s+(\S+)", selector)
        if found is None:
            raise InputError("File name missing after Projectfile keyword!")
        name = found.group(1)
        _log.info("Reading sites to project on from %s", name)
        try:
            text = _resolve(name, base_dir).read_text()
        except OSError as exc:
            raise InputError(f"Projectfile {name} not found!") from exc
        file_cursor = _Cursor(text.splitlines(keepends=True))
        count = file_cursor.read_int()
        _log.info("Projecting on the following %d sites:", count)
        sites = _read_sites(file_cursor, count, singles, f"the file: {name}")
    else:
        raise InputError("Neither Sites nor Projectfile keyword found after Project!")
    return sites, count


def _apply_keyword(settings: Settings, keyword: str, kind: str, target, line: str) -> bool:
    value = _READERS[kind](keyword, line)
    if value is None:
        return False
    if kind in ("3i", "3f"):
        for name, item in zip(target, value):
            setattr(settings, name, item)
        _log.info("%s: %s", keyword, " ".join(str(getattr(settings, name)) for name in target))
    else:
        if kind != "s" or value:
            setattr(settings, target, value)
        _log.info("%s: %s", keyword, getattr(settings, target))
    return True


def _finish(settings: Settings) -> None:
    settings.dt1 = settings.dt2 = settings.dt3 = 1
    settings.tmax = settings.tmax1
    total = settings.tmax1 + settings.tmax2 + settings.tmax3
    if settings.length < total:
        raise InputError(
            f"The trajectory length is too small! It must be longer than {total} snapshots."
        )
    if settings.tmax1 == 0:
        raise InputError("First runtime variable is zero. You need to specify the RunTimes keyword!")

    settings.propagation = 0
    if settings.propagation_scheme == "Coupling":
        settings.propagation = 1
        _log.info("Using propagation scheme 'Coupling'!")
        _log.info("Coupling cutoff %f effective during t1 and t3.", settings.coupling_cut)
    if settings.propagation_scheme == "Diagonal":
        raise InputError(
            "Propagation with full diagonalization is presently not implemented. "
            "Use sparse with no cutoff!"
        )

    if settings.propagation == 0:
        if settings.trotter == 0:
            raise InputError("The number of Trotter steps must not be zero!")
        step = settings.timestep * ICM2IFS * TWO_PI / settings.trotter
        factor = step * step
        _log.info("Rescaling threshold with factor %g. (dt/hbar)**2", factor)
        settings.threshold *= factor
        if settings.threshold > 0.1:
            raise InputError("Unrealistic value for threshold!")
        _log.info("Scaled value for threshold: %g.", settings.threshold)
        _log.info("Will neglect elements of time-evolution operator smaller than this value.")

    if settings.technique in _WAITING_TIME_TECHNIQUES:
        _log.info("The waiting time will be %f fs.", settings.tmax2 * settings.timestep)

    if settings.stat_step == 0:
        settings.stat_steps = 0
    else:
        ratio = abs((settings.stat_end - settings.stat_start) / settings.stat_step)
        settings.stat_steps = int(round(ratio)) if math.isfinite(ratio) else 0


def parse_input(lines, base_dir=None):
    """Build :class:`Settings` from the lines of an input file.

    Relative project file names are looked up in ``base_dir`` when given,
    otherwise in the working directory.
    """
    settings = Settings()
    cursor = _Cursor(lines)
    while (line := cursor.readline()) is not None:
        for keyword, kind, target in _KEYWORDS:
            if kind == _PROJECTION:
                result = parse_projection(line, cursor, settings.singles, base_dir)
                if result is not None:
                    settings.projection_sites, settings.projected_sites = result
                    break
                continue
            if _apply_keyword(settings, keyword, kind, target, line):
                break
    _finish(settings)
    return settings


def read_input(path):
    """Read and check the input file at ``path``."""
    try:
        handle = open(path)
    except OSError as exc:
        raise InputError(f"File not found: {path}") from exc
    with handle:
        return parse_input(handle)


def main(argv=None):
    """Read the input file named on the command line and report its settings."""
    args = sys.argv[1:] if argv is None else list(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stdout)
    if not args:
        print(f"{RED}Specify input file name on command line!\nProgram terminated!{RESET}")
        return 1
    print(f"Using input file '{args[0]}'.")
    try:
        read_input(args[0])
    except InputError as exc:
        print(f"{RED}{exc}{RESET}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())