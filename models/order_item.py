"""
Order item schemas.

Order items imported from the predecessor tool always hang off an order;
the order id comes from entity resolution, never from the file.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from models.base import CandidateRecord


class OrderItemCreate(CandidateRecord):
    """Insertable order item."""

    order_id: int = Field(..., ge=1, description="Resolved order id")
    description: Optional[str] = Field(None, description="Item description/details")
    serving: int = Field(default=0, description="Number of servings")
    labour: Decimal = Field(default=Decimal("0"), description="Labour cost")
    hours: Decimal = Field(default=Decimal("0"), description="Hours of work")
    overhead: Decimal = Field(default=Decimal("0"), description="Overhead cost")
    recipes: Optional[str] = Field(None, description="Recipes used")
    cost_price: Decimal = Field(default=Decimal("0"), description="Cost price")
    sell_price: Decimal = Field(default=Decimal("0"), description="Sell price (excl VAT)")
    quantity: int = Field(default=1, description="Quantity")
    notes: Optional[str] = Field(None, description="Free-text notes")
