"""
Pydantic schemas for currency information.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class Currency(BaseModel):
    """Currency with the precision that defines its minor unit."""
    code: str
    symbol: Optional[str] = None
    decimals: int = Field(default=2, ge=0, le=8)  # Fractional digits, 2 for cents

    model_config = {"frozen": True}

    @field_validator("code")
    @classmethod
    def upper_code(cls, v: str) -> str:
        code = v.strip().upper()
        if not code:
            raise ValueError("currency code must not be empty")
        return code
