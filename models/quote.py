"""
Quote schemas.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from models.base import CandidateRecord


class QuoteCreate(CandidateRecord):
    """
    Insertable quote.

    Date fields hold ISO strings, or the raw source text when an optional
    date could not be read (kept for manual correction).
    """

    user_id: int = Field(..., ge=1, description="Owner of the quote")
    quote_number: str = Field(..., min_length=1, max_length=50, description="Quote number from the source file")
    contact_id: Optional[int] = Field(None, ge=1, description="Resolved contact id")
    event_type: str = Field(default="Other", description="Event type")
    event_date: Optional[str] = Field(None, description="Event date (ISO or raw)")
    status: str = Field(default="Draft", description="Quote status")
    theme: Optional[str] = Field(None, description="Description/theme")
    delivery_type: str = Field(default="Pickup", description="Pickup or Delivery")
    total: Decimal = Field(default=Decimal("0"), description="Quoted total")
    expiry_date: Optional[str] = Field(None, description="Expiry date (ISO or raw)")
    notes: Optional[str] = Field(None, description="Free-text notes")
