"""
Split service for fair-share allocation of a transaction amount.

Pipeline: validate the selection, derive integer weights for the mode, then
distribute the total in minor units. Invalid selections come back as a
tagged SplitFailure instead of raising, so callers can block submission and
show the reason.
"""
import logging
from functools import reduce
from math import gcd
from typing import List, Optional, Sequence

from fairshare.schemas.money import Currency
from fairshare.schemas.split import (
    AllocationResult,
    Participant,
    PerPersonAllocation,
    SplitFailure,
    SplitFailureReason,
    SplitMode,
    SplitSelection,
    TransactionShare,
)
from fairshare.services.distribution import distribute
from fairshare.services.money import (
    Number,
    check_decimals,
    format_minor,
    format_money,
    from_minor,
    resolve_currency,
    to_minor,
)

logger = logging.getLogger(__name__)

# Allowed |sum(custom) - total| in minor units
CUSTOM_SUM_TOLERANCE_MINOR = 1


def derive_weights(selection: SplitSelection) -> Optional[List[int]]:
    """
    Integer weight per participant, in roster order.

    Returns None for custom mode, where amounts are entered directly and no
    proportional split happens.
    """
    if selection.mode == SplitMode.CUSTOM:
        return None
    if selection.mode == SplitMode.EQUAL:
        return [1 for _ in selection.participants]
    return [int(p.weight) for p in selection.participants]


def custom_amounts_minor(selection: SplitSelection, decimals: int) -> List[int]:
    """User-entered custom amounts converted to minor units."""
    return [to_minor(p.weight, decimals) for p in selection.participants]


def payer_included(selection: SplitSelection, payer_id: Optional[int]) -> bool:
    """True when there is no designated payer or the payer is a participant."""
    if payer_id is None:
        return True
    return any(p.user_id == payer_id for p in selection.participants)


def validate_selection(
    selection: SplitSelection,
    total_minor: int,
    decimals: int
) -> Optional[SplitFailure]:
    """Return a SplitFailure if the selection cannot be allocated, else None."""
    if not selection.participants:
        return SplitFailure(
            reason=SplitFailureReason.NO_PARTICIPANTS,
            message="Select at least one participant"
        )

    if selection.mode == SplitMode.CUSTOM:
        delta_minor = sum(custom_amounts_minor(selection, decimals)) - total_minor
        if abs(delta_minor) > CUSTOM_SUM_TOLERANCE_MINOR:
            direction = "Short" if delta_minor < 0 else "Over"
            return SplitFailure(
                reason=SplitFailureReason.CUSTOM_SUM_MISMATCH,
                delta_minor=delta_minor,
                delta=from_minor(delta_minor, decimals),
                message=f"{direction} by {format_minor(abs(delta_minor), decimals)}"
            )
        return None

    if sum(derive_weights(selection)) <= 0:
        return SplitFailure(
            reason=SplitFailureReason.ZERO_TOTAL_WEIGHT,
            message="At least one participant needs a share"
        )
    return None


def _distribute_by_user_id(
    total_minor: int,
    participants: Sequence[Participant],
    weights: List[int]
) -> List[int]:
    # Remainder ties go to the lowest user_id, independent of roster order
    order = sorted(range(len(participants)), key=lambda i: participants[i].user_id)
    ordered_amounts = distribute(total_minor, [weights[i] for i in order])
    amounts = [0] * len(participants)
    for position, index in enumerate(order):
        amounts[index] = ordered_amounts[position]
    return amounts


def _absorb_custom_delta(
    amounts: List[int],
    participants: Sequence[Participant],
    total_minor: int
) -> List[int]:
    # An accepted custom split may be off by the tolerance; the largest
    # amount (lowest user_id on ties) takes the difference.
    delta = total_minor - sum(amounts)
    if delta == 0:
        return amounts
    index = min(
        range(len(amounts)),
        key=lambda i: (-amounts[i], participants[i].user_id)
    )
    adjusted = list(amounts)
    adjusted[index] += delta
    return adjusted


def allocate(selection: SplitSelection, total_minor: int, decimals: int) -> AllocationResult:
    """
    Allocate `total_minor` among the selection's participants.

    Allocations are returned in roster order and always sum to
    `total_minor` exactly.

    Raises:
        ValueError: If total_minor is negative or decimals is out of range.
    """
    check_decimals(decimals)
    total_minor = int(total_minor)
    if total_minor < 0:
        raise ValueError(f"total must be non-negative, got {total_minor}")

    failure = validate_selection(selection, total_minor, decimals)
    if failure is not None:
        logger.debug(
            f"Split rejected: mode={selection.mode.value} reason={failure.reason.value} "
            f"delta_minor={failure.delta_minor}"
        )
        return AllocationResult(ok=False, failure=failure)

    participants = selection.participants
    if selection.mode == SplitMode.CUSTOM:
        amounts = _absorb_custom_delta(
            custom_amounts_minor(selection, decimals), participants, total_minor
        )
    else:
        amounts = _distribute_by_user_id(total_minor, participants, derive_weights(selection))

    return AllocationResult(
        ok=True,
        allocations=[
            PerPersonAllocation(user_id=p.user_id, amount_minor=amount)
            for p, amount in zip(participants, amounts)
        ]
    )


def split_amount(selection: SplitSelection, total_major: Number, currency) -> AllocationResult:
    """Major-unit entry point: convert the total once, then allocate."""
    currency = resolve_currency(currency)
    return allocate(selection, to_minor(total_major, currency.decimals), currency.decimals)


def build_transaction_shares(
    selection: SplitSelection,
    allocations: List[PerPersonAllocation],
    decimals: int
) -> List[TransactionShare]:
    """
    Shares array for an expense create/update request.

    In shares mode each line also carries the participant's original share
    count so the split can be recomputed or audited later.
    """
    share_counts = {}
    if selection.mode == SplitMode.SHARES:
        share_counts = {p.user_id: int(p.weight) for p in selection.participants}

    return [
        TransactionShare(
            user_id=a.user_id,
            amount=format_minor(a.amount_minor, decimals),
            shares=share_counts.get(a.user_id)
        )
        for a in allocations
    ]


def derive_shares_from_amounts(amounts_minor: Sequence[int]) -> List[int]:
    """
    Smallest integer share counts proportional to stored per-person amounts.

    Used to reopen a shares-mode transaction saved without share counts.
    Negative amounts count as zero; with no positive amount everyone gets
    one share.

    Example:
        derive_shares_from_amounts([2500, 2500, 5000]) == [1, 1, 2]
    """
    ints = [max(0, int(a)) for a in amounts_minor]
    divisor = reduce(gcd, (a for a in ints if a > 0), 0)
    if not divisor:
        return [1 for _ in ints]
    return [a // divisor for a in ints]


def describe_allocation(result: AllocationResult, currency: Currency) -> str:
    """Multi-line text summary of an allocation outcome."""
    if not result.ok:
        return f"Split invalid ({result.failure.reason.value}): {result.failure.message}"
    total = sum(a.amount_minor for a in result.allocations)
    lines = [f"Total: {format_money(total, currency)}"]
    for a in result.allocations:
        lines.append(f"  user {a.user_id}: {format_money(a.amount_minor, currency)}")
    return "\n".join(lines)
