import math

import pytest

from nisetools.keywords import (
    keyword_float,
    keyword_int,
    keyword_string,
    keyword_three_floats,
    keyword_three_ints,
    label_length,
    matches,
)


def test_label_length_stops_at_space():
    assert label_length("Length 100\n") == len("Length")


def test_label_length_without_space_includes_newline():
    line = "Length\n"
    assert label_length(line) == len(line)


def test_label_length_leading_space_is_empty():
    assert label_length(" Length 5") == 0


def test_matches_exact_keyword():
    assert matches("Length", "Length 100\n")


def test_matches_label_prefix_of_keyword():
    assert matches("Hamiltonianfile", "Hamiltonian energy.bin\n")


def test_does_not_match_longer_label():
    assert not matches("Length", "Lengthy 3\n")


def test_does_not_match_other_keyword():
    assert not matches("Samplerate", "Length 10\n")


def test_bare_keyword_with_newline_does_not_match():
    assert not matches("Length", "Length\n")


def test_keyword_string_second_word():
    assert keyword_string("Hamiltonianfile", "Hamiltonianfile Energy.bin\n") == "Energy.bin"


def test_keyword_string_missing_value_is_empty():
    assert keyword_string("Technique", "Technique \n") == ""


def test_keyword_string_no_match_is_none():
    assert keyword_string("Technique", "Basis Local\n") is None


def test_keyword_int_reads_value():
    assert keyword_int("Length", "Length 1000\n") == 1000


def test_keyword_int_skips_spaces_and_stops_at_garbage():
    assert keyword_int("Length", "Length    42abc\n") == 42


def test_keyword_int_negative():
    assert keyword_int("Cluster", "Cluster -1\n") == -1


def test_keyword_int_unreadable_is_zero():
    assert keyword_int("Length", "Length abc\n") == 0


def test_keyword_int_no_match_is_none():
    assert keyword_int("Length", "Singles 3\n") is None


@pytest.mark.parametrize(
    "line, expected",
    [
        ("Timestep 2.5\n", 2.5),
        ("Timestep 1e3\n", 1e3),
        ("Timestep -.5\n", -0.5),
        ("Timestep 7\n", 7.0),
    ],
)
def test_keyword_float_values(line, expected):
    assert keyword_float("Timestep", line) == pytest.approx(expected)


def test_keyword_float_unreadable_is_zero():
    assert keyword_float("Timestep", "Timestep x\n") == 0.0


def test_keyword_float_infinity():
    value = keyword_float("Timestep", "Timestep inf\n")
    assert value == math.inf


def test_keyword_three_ints_full():
    assert keyword_three_ints("RunTimes", "RunTimes 128 0 128\n") == (128, 0, 128)


def test_keyword_three_ints_stops_at_failure():
    assert keyword_three_ints("RunTimes", "RunTimes 10 x 5\n") == (10,)


def test_keyword_three_ints_no_match():
    assert keyword_three_ints("RunTimes", "Length 3\n") is None


def test_keyword_three_floats_full():
    assert keyword_three_floats("MinFrequencies", "MinFrequencies 1500 1550.5 1600\n") == (
        1500.0,
        1550.5,
        1600.0,
    )


def test_keyword_three_floats_partial():
    assert keyword_three_floats("Static", "Static 1.0 2.0\n") == (1.0, 2.0)