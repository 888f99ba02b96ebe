"""
Input data models for the assignment layer.

A ClassificationRecord is the transaction as seen by the LLM: only the
fields that help pick a label, sourced from the finance manager.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class ClassificationRecord(BaseModel):
    """
    One transaction to classify.

    Immutable; lives for the duration of one classification pass.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Stable id, unique within a call")
    description: str = Field(..., description="Transaction description / merchant text")
    amount: str = Field(..., description="Amount as a decimal string")
    date: str = Field(..., description="Transaction date (ISO string)")
    source_account: Optional[str] = Field(None, description="Source account name")
    destination_account: Optional[str] = Field(None, description="Destination account name")
    notes: Optional[str] = Field(None, description="Free-form notes")
    transaction_type: Optional[str] = Field(
        None, description="withdrawal, deposit or transfer"
    )

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, value: Any) -> str:
        """Accept Decimal/int/float, store as a decimal string."""
        if isinstance(value, bool):
            raise ValueError("amount must be a decimal value")
        if isinstance(value, (Decimal, int, float)):
            value = str(value)
        if not isinstance(value, str):
            raise ValueError("amount must be a decimal string")
        try:
            amount = Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"amount is not a decimal: {value!r}") from e
        if not amount.is_finite():
            raise ValueError(f"amount must be finite: {value!r}")
        return value.strip()
