"""
Expense schemas.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from models.base import CandidateRecord


class ExpenseCreate(CandidateRecord):
    """Insertable business expense."""

    user_id: int = Field(..., ge=1, description="Owner of the expense")
    date: str = Field(..., description="Expense date (ISO)")
    description: Optional[str] = Field(None, description="What was bought")
    category: Optional[str] = Field(None, description="Expense category")
    amount: Decimal = Field(default=Decimal("0"), description="Amount including VAT")
    supplier: Optional[str] = Field(None, description="Supplier or vendor")
    payment_source: Optional[str] = Field(None, description="How it was paid")
    vat: Decimal = Field(default=Decimal("0"), description="VAT portion")
    total_inc_tax: Decimal = Field(default=Decimal("0"), description="Total including tax")
    tax_deductible: bool = Field(default=False)
    is_recurring: bool = Field(default=False)
