import pytest

from nisetools.config import SQRT2
from nisetools.hamiltonian import (
    Modification,
    Snapshot,
    construct_doubles,
    symmetric_index,
)


def _sym_snapshot(singles, diag, couplings=None, mu=None):
    snap = Snapshot.empty(singles, 0)
    for i, value in enumerate(diag):
        snap.he[symmetric_index(i, i, singles)] = value
    for (a, b), value in (couplings or {}).items():
        snap.he[symmetric_index(a, b, singles)] = value
    if mu is not None:
        snap.mu_ge = list(mu)
    return snap


@pytest.mark.parametrize("n", [1, 2, 3, 5])
def test_symmetric_index_is_symmetric(n):
    for a in range(n):
        for b in range(n):
            assert symmetric_index(a, b, n) == symmetric_index(b, a, n)


@pytest.mark.parametrize("n", [1, 2, 4, 6])
def test_symmetric_index_covers_upper_triangle_in_row_order(n):
    indices = [symmetric_index(a, b, n) for a in range(n) for b in range(a, n)]
    assert indices == list(range(len(indices)))


def test_empty_sizes_follow_components():
    snap = Snapshot.empty(1, 1)
    assert len(snap.mu_ge) == 3
    assert len(snap.alpha) == 6
    assert len(snap.he) == len(snap.hf) == len(snap.anharmonicity)
    assert all(value == 0.0 for value in snap.he + snap.mu_ef + snap.overtone)


def test_empty_doubles_storage_matches_singles_storage():
    assert len(Snapshot.empty(0, 4).hf) == len(Snapshot.empty(4, 0).he)
    assert len(Snapshot.empty(2, 3).mu_ef) == 3 * 2 * 3


def test_single_site_overtone():
    snap = _sym_snapshot(1, [1600.0], mu=[0.5, -1.0, 2.0])
    result = construct_doubles(snap, 1, 16.0)
    assert result.hf == [pytest.approx(2 * 1600.0 - 16.0)]
    assert result.mu_ef == pytest.approx([SQRT2 * 0.5, SQRT2 * -1.0, SQRT2 * 2.0])


def test_construct_doubles_does_not_touch_input():
    snap = _sym_snapshot(1, [1600.0], mu=[1.0, 0.0, 0.0])
    construct_doubles(snap, 1, 16.0)
    assert snap.hf == []
    assert snap.mu_ef == []


def test_uncoupled_sites_give_diagonal_two_exciton_hamiltonian():
    snap = _sym_snapshot(2, [1600.0, 1650.0])
    result = construct_doubles(snap, 2, 16.0)
    # pairs: (0,0), (0,1), (1,1)
    assert result.hf[symmetric_index(0, 0, 3)] == pytest.approx(2 * 1600.0 - 16.0)
    assert result.hf[symmetric_index(1, 1, 3)] == pytest.approx(1600.0 + 1650.0)
    assert result.hf[symmetric_index(2, 2, 3)] == pytest.approx(2 * 1650.0 - 16.0)
    for a in range(3):
        for b in range(a + 1, 3):
            assert result.hf[symmetric_index(a, b, 3)] == 0.0


def test_coupling_between_overtone_and_combination():
    snap = _sym_snapshot(2, [1600.0, 1650.0], {(0, 1): -7.5})
    result = construct_doubles(snap, 2, 16.0)
    assert result.hf[symmetric_index(0, 1, 3)] == pytest.approx(SQRT2 * -7.5)
    assert result.hf[symmetric_index(1, 2, 3)] == pytest.approx(SQRT2 * -7.5)
    assert result.hf[symmetric_index(0, 2, 3)] == 0.0


def test_combination_states_sharing_a_site():
    snap = _sym_snapshot(3, [1600.0, 1650.0, 1700.0], {(1, 2): 4.0, (0, 1): 2.0})
    result = construct_doubles(snap, 3, 16.0)
    # pairs: (0,0) (0,1) (0,2) (1,1) (1,2) (2,2); (0,1)-(0,2) couple through He(1,2)
    assert result.hf[symmetric_index(1, 2, 6)] == pytest.approx(4.0)
    # (0,2)-(1,2) couple through He(0,1)
    assert result.hf[symmetric_index(2, 4, 6)] == pytest.approx(2.0)


def test_doubly_excited_dipoles_for_combination_state():
    mu = [0.5, 1.5, -1.0, 2.0, 0.25, -0.75]
    snap = _sym_snapshot(2, [1600.0, 1650.0], mu=mu)
    result = construct_doubles(snap, 2, 16.0)
    nf, ne = 3, 2
    for x in range(3):
        # from site 0 to state (0,1) carries the dipole of site 1 and vice versa
        assert result.mu_ef[nf * ne * x + nf * 0 + 1] == mu[ne * x + 1]
        assert result.mu_ef[nf * ne * x + nf * 1 + 1] == mu[ne * x + 0]
        # no transition from site 0 to the overtone of site 1
        assert result.mu_ef[nf * ne * x + nf * 0 + 2] == 0.0


def test_identity_modification_keeps_snapshot():
    snap = _sym_snapshot(2, [1600.0, 1650.0], {(0, 1): 3.0}, mu=[1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    snap.alpha = [float(i) for i in range(12)]
    modification = Modification(select=[0, 1], label=[0, 0], shift=[0.0, 0.0])
    result = modification.apply(snap, 2)
    assert result.he == snap.he
    assert result.mu_ge == snap.mu_ge
    assert result.alpha == snap.alpha


def test_isotope_labels_lower_site_frequency():
    snap = _sym_snapshot(2, [1600.0, 1650.0], {(0, 1): 3.0})
    modification = Modification(select=[0, 1], label=[1, 2], shift=[0.0, 0.0])
    result = modification.apply(snap, 2)
    assert result.he[symmetric_index(0, 0, 2)] == pytest.approx(1600.0 - 41)
    assert result.he[symmetric_index(1, 1, 2)] == pytest.approx(1650.0 - 60)
    assert result.he[symmetric_index(0, 1, 2)] == pytest.approx(3.0)


def test_shift_is_added_to_diagonal_only():
    snap = _sym_snapshot(2, [1600.0, 1650.0], {(0, 1): 3.0})
    modification = Modification(select=[0, 1], label=[0, 0], shift=[5.0, -5.0])
    result = modification.apply(snap, 2)
    assert result.he[0] == pytest.approx(1605.0)
    assert result.he[2] == pytest.approx(1645.0)
    assert result.he[1] == pytest.approx(3.0)


def test_selection_reorders_and_reduces_sites():
    mu = [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0]
    snap = _sym_snapshot(3, [1600.0, 1650.0, 1700.0], {(0, 2): 3.0}, mu=mu)
    snap.anharmonicity = [10.0, 11.0, 12.0]
    modification = Modification(select=[2, 0], label=[0, 0], shift=[0.0, 0.0], doubles=3)
    result = modification.apply(snap, 3)
    assert result.he == [1700.0, 3.0, 1600.0]
    assert result.mu_ge == [3.0, 1.0, 6.0, 4.0, 9.0, 7.0]
    assert result.anharmonicity == [12.0, 10.0]
    assert len(result.hf) == len(Snapshot.empty(3, 0).he)


def test_modification_with_out_of_range_site():
    snap = _sym_snapshot(2, [1600.0, 1650.0])
    modification = Modification(select=[0, 2], label=[0, 0], shift=[0.0, 0.0])
    with pytest.raises(ValueError):
        modification.apply(snap, 2)


def test_modification_requires_matching_lengths():
    with pytest.raises(ValueError):
        Modification(select=[0, 1], label=[0], shift=[0.0, 0.0])