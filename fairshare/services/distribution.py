"""
Largest remainder (Hare-Niemeyer) distribution of an integer total.
"""
from typing import List, Sequence


def distribute(total_minor: int, weights: Sequence[int]) -> List[int]:
    """
    Distribute `total_minor` across `weights` with zero rounding loss.

    Every entry first receives the floor of its exact proportional share
    T * W[i] / sum(W). The leftover units (always fewer than len(weights))
    go one each to the entries with the largest fractional part; equal
    fractional parts are resolved by position, earlier entries first.

    The fractional part is compared through its exact numerator
    (T * W[i]) mod sum(W), so no floating point is involved.

    Args:
        total_minor: Amount to distribute, in minor units (>= 0).
        weights: Non-negative integer weights with a positive sum.

    Returns:
        Amounts in the same order as `weights`. Each amount is either the
        floor of the proportional share or one more, and the amounts sum to
        `total_minor` exactly.

    Raises:
        ValueError: On a negative total, a negative weight or a zero weight
            sum. Callers validate selections before getting here.

    Example:
        >>> distribute(100, [1, 1, 1])
        [34, 33, 33]
        >>> distribute(100, [1, 1, 2])
        [25, 25, 50]
    """
    total = int(total_minor)
    if total < 0:
        raise ValueError(f"total must be non-negative, got {total}")
    if any(int(w) < 0 for w in weights):
        raise ValueError("weights must be non-negative")

    weights = [int(w) for w in weights]
    sum_w = sum(weights)
    if sum_w <= 0:
        raise ValueError("sum of weights must be positive")

    floors = []
    fractions = []
    for w in weights:
        share, frac = divmod(total * w, sum_w)
        floors.append(share)
        fractions.append(frac)

    remainder = total - sum(floors)

    # sorted() is stable, so equal fractions keep their original order
    ranked = sorted(range(len(weights)), key=lambda i: -fractions[i])
    amounts = list(floors)
    for i in ranked[:remainder]:
        amounts[i] += 1

    return amounts
