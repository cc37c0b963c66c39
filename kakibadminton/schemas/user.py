"""
Pydantic schemas for the identity registry.
"""

from typing import Optional
from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    id: int
    first_name: str
    username: Optional[str]
    display_name: str
    payment_qr_file_id: Optional[str]

    model_config = {"from_attributes": True}


class PayoutQrUpdate(BaseModel):
    file_id: str = Field(..., min_length=1, max_length=255)
