"""
Pydantic schemas for sessions and their roster.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class SessionCreate(BaseModel):
    group_id: int
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    scheduled_for: Optional[str] = Field(None, max_length=255)
    message_id: Optional[int] = None


class SessionUpdate(BaseModel):
    """
    The only session fields a caller may change. Fields left out of the
    request body are not touched; status and cost fields belong to settlement.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = Field(None, max_length=255)
    scheduled_for: Optional[str] = Field(None, max_length=255)
    message_id: Optional[int] = None
    bill_message_id: Optional[int] = None


class SessionResponse(BaseModel):
    id: int
    group_id: int
    host_id: int
    title: str
    location: Optional[str]
    scheduled_for: Optional[str]
    court_fee: Decimal
    tube_price: Decimal
    shuttles_used: int
    status: str
    settled_at: Optional[datetime]
    payment_deadline: Optional[datetime]
    message_id: Optional[int]
    bill_message_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}


class ParticipantResponse(BaseModel):
    user_id: int
    first_name: str
    username: Optional[str]
    display_name: str
    joined_at: datetime

    model_config = {"from_attributes": True}


class RosterResponse(BaseModel):
    session_id: int
    host_id: int
    count: int
    participants: list[ParticipantResponse]


class SessionDetailResponse(BaseModel):
    session: SessionResponse
    roster: RosterResponse
