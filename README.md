# nisetools

Tools for preparing the input of nonlinear exciton spectroscopy
simulations:

- a reader and checker for keyword-style simulation input files
  (`nisetools.config`), and
- a translator that converts Hamiltonian and dipole trajectories between
  file formats, optionally selecting, shifting and isotope-labelling
  sites and building the two-exciton Hamiltonian (`nisetools.translate`).

There are no dependencies outside the standard library.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Translating trajectories

`nise-translate` reads an input file of keyword lines and converts a
trajectory from one format to another:

```
nise-translate translate.inp
```

Supported formats (`nisetools.formats.Format`):

| Format     | Kind   | Files                                                      |
|------------|--------|------------------------------------------------------------|
| `GROBIN`   | binary | energy, dipole, optional transition polarizability         |
| `SKIBIN`   | binary | energy, dipole, anharmonicity, overtone dipole             |
| `GROASC`   | text   | energy, dipole, optional transition polarizability         |
| `MITTXT`   | text   | energy (full matrix), dipole (one site per line)           |
| `SPECTRON` | text   | energy (lower triangle), dipole, each block headed `SNAPSHOT n` |
| `MITASC`   | text   | energy (one tab-separated line per snapshot), separate x, y, z dipole files |

Binary files hold little-endian 32-bit integers and floats.

A typical input file:

```
InputEnergy Energy.bin
InputDipole Dipole.bin
OutputEnergy Energy.txt
OutputDipole Dipole.txt
InputFormat GROBIN
OutputFormat GROASC
Singles 8
Length 1000
Anharmonicity 16
```

Recognised keywords: `InputEnergy`, `OutputEnergy`, `InputDipole`,
`OutputDipole`, `InputAlpha`, `OutputAlpha`, `InputAnharm`,
`OutputAnharm`, `InputOverto`, `OutputOverto`, `InputDipoleX`/`Y`/`Z`,
`OutputDipoleX`/`Y`/`Z`, `Singles`, `Doubles`, `Length` (default 1),
`Anharmonicity` (default 16), `InputFormat`, `OutputFormat`, `Skip` and
`Modify`. When `Doubles` is not given it is taken as
`Singles * (Singles + 1) / 2`. Transition polarizabilities are written
only when an input polarizability file could be opened and `OutputAlpha`
is given.

With `Skip Doubles` the two-exciton part is neither built nor written.
Otherwise, when the number of two-exciton states is
`Singles * (Singles + 1) / 2` or a `Modify` block is present, the
two-exciton Hamiltonian and the one-to-two exciton transition dipoles
are built from the one-exciton Hamiltonian and the anharmonicity; in
other cases the two-exciton data read from the input are passed on.

A `Modify` block keeps a subset of sites, applies isotope labels
(1 lowers the site energy by 41 for 13C, 2 by 60 for 18O) and adds
shifts to the site energies:

```
Modify
Select 3
0 2 5
Label
1 0 0
Shift
0.0 5.0 0.0
```

When the number after `Select` equals `Singles`, no site numbers are
read and all sites are kept in order, so `Singles` should come before
`Modify`.

From Python:

```python
from nisetools.translate import read_translate_input, translate

settings = read_translate_input("translate.inp")
count = translate(settings)  # number of snapshots written
```

The building blocks are available separately:
`nisetools.formats.SnapshotReader` and `SnapshotWriter` (context
managers with `read`, `write` and `close`),
`nisetools.hamiltonian.Snapshot`, `Modification.apply` and
`construct_doubles`.

## Reading simulation input

`nise-readinput` parses a simulation input file, checks it and logs each
setting as it is read:

```
nise-readinput input
```

From Python:

```python
from nisetools.config import read_input

settings = read_input("input")
print(settings.technique, settings.tmax1, settings.threshold)
```

The check requires `Length` to be at least the sum of the three
`RunTimes` values and the first of them to be non-zero. `Propagation
Diagonal` is rejected. Unless `Propagation Coupling` is given, the
`Threshold` is rescaled by `(Timestep * 2π * c / Trotter)²` and must not
exceed 0.1 afterwards. A `Projection` block lists sites either inline
(`Sites n` followed by the site numbers) or in a file
(`Projectfile name`); relative file names are resolved against the
working directory, or against `base_dir` when calling
`parse_input(lines, base_dir)` directly.

## Errors

Problems in a simulation input raise `nisetools.config.InputError`;
problems in a translation input or its trajectory files raise
`nisetools.translate.TranslateError` (`nisetools.formats.FormatError`
from the readers and writers themselves). Both commands print the
message and exit with status 1.

## What this package does not do

It prepares and checks input only. It does not propagate the exciton
Hamiltonian and does not compute response functions or spectra; the
settings read by `nisetools.config` are meant to be handed to such a
calculation.