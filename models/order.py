"""
Order and contact schemas used for cross-reference resolution.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema


class OrderResponse(BaseSchema):
    """Order as seen by the import resolver."""

    id: int = Field(..., description="Order id")
    order_number: str = Field(..., description="Human-facing order number")
    user_id: int = Field(..., description="Owner id")
    status: Optional[str] = Field(None, description="Order status")


class ContactResponse(BaseSchema):
    """Contact as seen by the import resolver."""

    id: int = Field(..., description="Contact id")
    user_id: int = Field(..., description="Owner id")
    first_name: str = Field(default="", description="First name")
    last_name: Optional[str] = Field(None, description="Last name")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()
