"""
Tests for largest remainder distribution.
"""
import random
import pytest
from fairshare.services.distribution import distribute


def test_equal_weights_non_divisible():
    """Leftover unit goes to the earliest entry among equal fractions."""
    assert distribute(100, [1, 1, 1]) == [34, 33, 33]


def test_proportional_divisible():
    """Divisible totals split exactly."""
    assert distribute(100, [1, 1, 2]) == [25, 25, 50]


def test_largest_fraction_wins_remainder():
    """The entry with the bigger fractional part gets the extra unit."""
    # 10 * 1/3 = 3.33, 10 * 2/3 = 6.67
    assert distribute(10, [1, 2]) == [3, 7]


def test_two_leftover_units():
    """Several leftover units go to the top fractions in order."""
    assert distribute(101, [1, 1, 1, 1, 1, 1]) == [17, 17, 17, 17, 17, 16]
    assert distribute(5, [1, 1, 1]) == [2, 2, 1]


def test_zero_weight_gets_nothing():
    """A zero weight never receives a leftover unit."""
    assert distribute(101, [0, 1, 1]) == [0, 51, 50]
    assert distribute(7, [0, 0, 3]) == [0, 0, 7]


def test_zero_total():
    """Nothing to distribute gives all zeros."""
    assert distribute(0, [1, 2, 3]) == [0, 0, 0]


def test_single_weight_takes_all():
    """One participant receives the whole total."""
    assert distribute(999, [5]) == [999]


@pytest.mark.parametrize("total,weights", [
    (-1, [1, 1]),
    (100, [1, -1]),
    (100, [0, 0]),
    (100, []),
])
def test_invalid_input_raises(total, weights):
    """Negative totals, negative weights and zero weight sums are rejected."""
    with pytest.raises(ValueError):
        distribute(total, weights)


def test_exact_and_bounded_for_many_inputs():
    """Amounts always sum to the total and stay within one unit of the exact share."""
    rng = random.Random(20240101)
    for _ in range(500):
        n = rng.randint(1, 12)
        weights = [rng.randint(0, 9) for _ in range(n)]
        if sum(weights) == 0:
            weights[rng.randrange(n)] = 1
        total = rng.randint(0, 1_000_000)

        amounts = distribute(total, weights)

        assert sum(amounts) == total
        sum_w = sum(weights)
        for amount, weight in zip(amounts, weights):
            floor = total * weight // sum_w
            assert amount in (floor, floor + 1)
            assert amount >= 0


def test_deterministic():
    """Same input, same output, every time."""
    weights = [3, 1, 4, 1, 5, 9, 2, 6]
    first = distribute(12345, weights)
    for _ in range(20):
        assert distribute(12345, weights) == first


def test_does_not_mutate_weights():
    """Input weights are left untouched."""
    weights = [1, 2, 3]
    distribute(100, weights)
    assert weights == [1, 2, 3]
