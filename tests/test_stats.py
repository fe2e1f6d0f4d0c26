import pytest

from primesearch import InvalidConfiguration
from primesearch.stats import (
    bit_array,
    format_report,
    frequency_test,
    poker_test,
    runs_test,
)

ALTERNATING_NIBBLES = int("1111000011110000", 2)


def test_bit_array_is_msb_first():
    assert bit_array(0b1011).tolist() == [1, 0, 1, 1]
    assert bit_array(0).tolist() == [0]
    with pytest.raises(ValueError):
        bit_array(-1)


def test_frequency():
    r = frequency_test(0b1011)
    assert (r.total_bits, r.zeros, r.ones) == (4, 1, 3)
    assert r.percent_ones == 75.0
    assert r.percent_zeros == 25.0


def test_runs():
    r = runs_test(0b1100101)  # 11|00|1|0|1
    assert r.total_bits == 7
    assert r.runs == 5
    assert r.expected_runs == 3
    assert r.sufficient


def test_runs_single_bit():
    assert runs_test(1).sufficient is False


def test_poker_chi_squared():
    r = poker_test(ALTERNATING_NIBBLES, 4)
    assert r.num_blocks == 4
    # (16 / 4) * (2^2 + 2^2) - 4
    assert r.chi_squared == pytest.approx(28.0)


def test_poker_ignores_trailing_partial_block():
    r = poker_test(int("111100001", 2), 4)
    assert r.num_blocks == 2
    assert r.chi_squared == pytest.approx((16 / 2) * 2 - 2)


def test_poker_too_small():
    assert poker_test(5, 4).chi_squared is None


@pytest.mark.parametrize("block_size", [0, -1, 17])
def test_poker_bad_block_size(block_size):
    with pytest.raises(InvalidConfiguration):
        poker_test(12345, block_size)


def test_format_report():
    text = format_report(ALTERNATING_NIBBLES)
    assert "Frequency (monobit) test" in text
    assert "Runs test" in text
    assert "Poker test (4-bit blocks)" in text
    assert "28.0000" in text


def test_format_report_subset_and_unknown():
    assert "Runs test" not in format_report(12345, ["freq"])
    with pytest.raises(InvalidConfiguration):
        format_report(12345, ["spectral"])
