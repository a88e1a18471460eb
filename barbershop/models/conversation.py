"""Pydantic model tracking one chat's progress through the booking flow."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from barbershop.business_hours import is_well_formed


class ConversationState(str, Enum):
    """Steps of the linear booking flow."""

    AWAITING_NAME = "awaiting_name"
    AWAITING_TIME = "awaiting_time"
    HAS_APPOINTMENT = "has_appointment"


class UserConversation(BaseModel):
    """Mutable state for a single chat identity.

    Fields are populated progressively as the customer answers the
    prompts.  Once a booking is confirmed the record keeps only the
    booking itself; there is no history of past appointments.
    """

    state: ConversationState = ConversationState.AWAITING_NAME
    full_name: Optional[str] = None
    time: Optional[str] = None  # HH:MM
    has_appointment: bool = False

    @field_validator("time")
    @classmethod
    def _check_time_shape(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_well_formed(value):
            raise ValueError(f"time must look like HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def _booking_is_complete(self) -> "UserConversation":
        if self.has_appointment and not (self.full_name and self.time):
            raise ValueError("a confirmed appointment needs both full_name and time")
        return self

    def summary(self) -> str:
        """Client/time block used in admin notifications."""
        return f"Client: {self.full_name}\nTime: {self.time}"
