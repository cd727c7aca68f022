"""
Pydantic schemas for settlement data consumed from the settlement service.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Literal
from decimal import Decimal


class SettlementPair(BaseModel):
    """One directed debt: `from_user_id` owes `to_user_id`."""
    from_user_id: int
    to_user_id: int
    amount: Decimal = Field(gt=0)  # Major units
    currency: str

    model_config = {"frozen": True}

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        code = v.strip().upper()
        if not code:
            raise ValueError("currency must not be empty")
        return code

    @model_validator(mode="after")
    def check_distinct_users(self):
        if self.from_user_id == self.to_user_id:
            raise ValueError("a user cannot owe themselves")
        return self


class UnrecognizedShape(BaseModel):
    """Tagged failure for an external record that could not be normalized."""
    reason: str
    raw: Any = None


class CounterpartyDebt(BaseModel):
    """Viewer's position against one other user (>0: they owe the viewer)."""
    user_id: int
    currency: str
    amount: Decimal


class BalanceView(BaseModel):
    """Schema for the balance view of one user in one group."""
    group_id: int
    user_id: int
    source: Literal["balances", "pairs"]  # Which feed produced `net`
    net: Dict[str, Decimal]  # currency -> signed net (>0: owed to the user)
    pairs: List[SettlementPair] = []
    debts: List[CounterpartyDebt] = []
