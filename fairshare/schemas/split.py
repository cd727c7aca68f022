"""
Pydantic schemas for split selections and allocations.
"""
import enum
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, List, Optional, Tuple
from decimal import Decimal

from fairshare.schemas.money import Currency
from fairshare.services.money import resolve_currency, to_decimal, to_minor


class SplitMode(str, enum.Enum):
    """How a transaction amount is divided among participants."""
    EQUAL = "equal"
    SHARES = "shares"
    CUSTOM = "custom"


class SplitFailureReason(str, enum.Enum):
    """Machine-checkable reasons a selection cannot be allocated."""
    NO_PARTICIPANTS = "no_participants"
    ZERO_TOTAL_WEIGHT = "zero_total_weight"
    CUSTOM_SUM_MISMATCH = "custom_sum_mismatch"


class Participant(BaseModel):
    """
    One person in a split.

    `weight` is ignored in equal mode, is a share count in shares mode and
    a major-unit amount in custom mode.
    """
    user_id: int
    display_name: str = ""
    avatar_ref: Optional[str] = None  # Opaque, owned by the roster service
    weight: Decimal = Field(default=Decimal(0), ge=0)

    model_config = {"frozen": True}

    @field_validator("weight", mode="before")
    @classmethod
    def parse_weight(cls, v):
        if v is None or v == "":
            return Decimal(0)
        return to_decimal(v)


class SplitSelection(BaseModel):
    """A split mode plus its participants. Immutable once built."""
    mode: SplitMode = SplitMode.EQUAL
    participants: Tuple[Participant, ...] = ()

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_participants(self):
        seen = set()
        for p in self.participants:
            if p.user_id in seen:
                raise ValueError(f"duplicate participant user_id {p.user_id}")
            seen.add(p.user_id)
            if self.mode == SplitMode.SHARES and p.weight != p.weight.to_integral_value():
                raise ValueError(f"share count for user {p.user_id} must be a whole number")
        return self


class PerPersonAllocation(BaseModel):
    """A participant's part of the total, in minor units."""
    user_id: int
    amount_minor: int = Field(ge=0)


class SplitFailure(BaseModel):
    """Tagged validation outcome; delta fields are set for custom mismatches."""
    reason: SplitFailureReason
    delta_minor: Optional[int] = None  # sum(custom) - total, signed
    delta: Optional[Decimal] = None  # Same delta in major units
    message: str = ""


class AllocationResult(BaseModel):
    """Either allocations (ok=True) or a failure (ok=False)."""
    ok: bool
    allocations: List[PerPersonAllocation] = []
    failure: Optional[SplitFailure] = None


class TransactionShare(BaseModel):
    """One line of the `shares` array in an expense create/update body."""
    user_id: int
    amount: str  # Fixed-point, exactly `decimals` fractional digits
    shares: Optional[int] = None  # Original share count, shares mode only


class SplitRequest(BaseModel):
    """Schema for split preview and payload requests."""
    total: Decimal = Field(ge=0)  # Major units
    currency: Currency
    selection: SplitSelection
    payer_id: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_inputs(cls, data: Any):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        currency = resolve_currency(data.get("currency"))
        data["currency"] = currency
        total = data.get("total")
        if isinstance(total, str):
            # Comma decimal separator; anything else must already be a number
            data["total"] = to_decimal(total.replace(",", ".", 1))
        elif isinstance(total, float):
            data["total"] = to_decimal(total)
        return data

    @model_validator(mode="after")
    def check_total_range(self):
        to_minor(self.total, self.currency.decimals)
        return self


class AllocationLine(BaseModel):
    """Allocation line returned to clients."""
    user_id: int
    amount_minor: int
    amount: str


class SplitPreviewResponse(BaseModel):
    """Schema for split preview response."""
    mode: SplitMode
    currency: str
    decimals: int
    total_minor: int
    allocations: List[AllocationLine]


class TransactionSharesResponse(BaseModel):
    """Split part of an outgoing expense create/update request body."""
    split_type: SplitMode
    amount: str
    currency: str
    shares: List[TransactionShare]
