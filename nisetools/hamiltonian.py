"""Singly and doubly excited Hamiltonians of one trajectory snapshot.

Square symmetric matrices are stored as their upper triangle, row by
row. Vector quantities are stored component-major: all sites for the
first component, then all sites for the next.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List

from .config import SQRT2

DIPOLE_COMPONENTS = 3
POLARIZABILITY_COMPONENTS = 6
C13_LABEL_SHIFT = 41.0
O18_LABEL_SHIFT = 60.0


def _triangle(n: int) -> int:
    return max(n, 0) * (max(n, 0) + 1) // 2


def symmetric_index(a, b, n):
    """Return the position of element (a, b) of an n x n symmetric matrix in upper-triangle storage."""
    low, high = (b, a) if a > b else (a, b)
    return high + n * low - low * (low + 1) // 2


def _zeros(count: int) -> List[float]:
    return [0.0] * max(count, 0)


@dataclass
class Snapshot:
    """Hamiltonian, dipoles and related data of one time step."""

    time: int = 0
    he: List[float] = field(default_factory=list)
    hf: List[float] = field(default_factory=list)
    mu_ge: List[float] = field(default_factory=list)
    mu_ef: List[float] = field(default_factory=list)
    anharmonicity: List[float] = field(default_factory=list)
    overtone: List[float] = field(default_factory=list)
    alpha: List[float] = field(default_factory=list)

    @classmethod
    def empty(cls, singles, doubles):
        """Return a zero-filled snapshot sized for the given numbers of states."""
        return cls(
            he=_zeros(_triangle(singles)),
            hf=_zeros(_triangle(doubles)),
            mu_ge=_zeros(DIPOLE_COMPONENTS * singles),
            mu_ef=_zeros(DIPOLE_COMPONENTS * singles * doubles),
            anharmonicity=_zeros(singles),
            overtone=_zeros(DIPOLE_COMPONENTS * singles),
            alpha=_zeros(POLARIZABILITY_COMPONENTS * singles),
        )


def _double_pairs(singles: int) -> List[tuple]:
    return [(i, j) for i in range(singles) for j in range(i, singles)]


def _double_element(he, ne, first, second, same, anharmonicity):
    ai, bi = first
    aj, bj = second

    def h(a, b):
        return he[symmetric_index(a, b, ne)]

    if same:
        if ai == bi:
            return 2 * h(ai, ai) - anharmonicity
        return h(ai, ai) + h(bi, bi)

    w = 0.0
    # Overtone coupled to a combination state sharing its site
    if ai == bi and (aj == ai or bj == ai):
        w = SQRT2 * h(aj, bj)
    if aj == bj and (ai == aj or bi == aj):
        w = SQRT2 * h(ai, bi)
    # Two combination states sharing one site
    if ai != bi and aj != bj:
        if ai == aj:
            w = h(bi, bj)
        elif bi == bj:
            w = h(ai, aj)
        elif ai == bj:
            w = h(aj, bi)
        elif aj == bi:
            w = h(ai, bj)
    return w


def construct_doubles(snapshot, singles, anharmonicity):
    """Return a copy of ``snapshot`` with the two-exciton Hamiltonian and dipoles built.

    The doubly excited states are all pairs (i, j) with i <= j. Overtones
    are lowered by ``anharmonicity``.
    """
    ne = singles
    pairs = _double_pairs(ne)
    nf = len(pairs)
    hf = _zeros(_triangle(nf))
    for i, first in enumerate(pairs):
        for j in range(i, nf):
            hf[symmetric_index(i, j, nf)] = _double_element(
                snapshot.he, ne, first, pairs[j], i == j, anharmonicity
            )

    mu = snapshot.mu_ge
    mu_ef = _zeros(DIPOLE_COMPONENTS * ne * nf)
    for x in range(DIPOLE_COMPONENTS):
        for i in range(ne):
            for j, (a, b) in enumerate(pairs):
                w = 0.0
                if a == b and i == a:
                    w = SQRT2 * mu[x * ne + i]
                elif a != b:
                    if a == i:
                        w = mu[ne * x + b]
                    if b == i:
                        w = mu[ne * x + a]
                mu_ef[nf * ne * x + nf * i + j] = w
    return replace(snapshot, hf=hf, mu_ef=mu_ef)


@dataclass
class Modification:
    """Selection of sites with frequency shifts and isotope labels.

    Label 1 marks a 13C label, label 2 an 18O label; any other value
    leaves the site frequency unchanged.
    """

    select: List[int]
    label: List[int]
    shift: List[float]
    doubles: int = 0

    def __post_init__(self) -> None:
        if not len(self.select) == len(self.label) == len(self.shift):
            raise ValueError("select, label and shift must have the same length")

    @property
    def singles(self) -> int:
        """Number of sites kept."""
        return len(self.select)

    def apply(self, snapshot, singles):
        """Return the snapshot restricted to the selected sites with shifts and labels applied.

        ``singles`` is the number of sites of the unmodified snapshot.
        """
        for site in self.select:
            if not 0 <= site < singles:
                raise ValueError(f"Selected site {site} is outside 0..{singles - 1}")
        he = []
        for i, (site, label, shift) in enumerate(zip(self.select, self.label, self.shift)):
            for other in self.select[i:]:
                value = snapshot.he[symmetric_index(site, other, singles)]
                if other is site and len(he) == symmetric_index(i, i, self.singles):
                    value += shift
                    if label == 1:
                        value -= C13_LABEL_SHIFT
                    elif label == 2:
                        value -= O18_LABEL_SHIFT
                he.append(value)

        def pick(values, components):
            return [values[singles * x + s] for x in range(components) for s in self.select]

        return replace(
            snapshot,
            he=he,
            hf=_zeros(_triangle(self.doubles)),
            mu_ge=pick(snapshot.mu_ge, DIPOLE_COMPONENTS),
            mu_ef=_zeros(DIPOLE_COMPONENTS * self.singles * self.doubles),
            anharmonicity=[snapshot.anharmonicity[s] for s in self.select],
            overtone=pick(snapshot.overtone, DIPOLE_COMPONENTS),
            alpha=pick(snapshot.alpha, POLARIZABILITY_COMPONENTS),
        )