"""Profile accumulated over one conversation."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from profile_bot.schemas.turn import Attachment


class Transport(str, Enum):
    """Supported modes of transport."""

    CAR = "Car"
    BUS = "Bus"
    BICYCLE = "Bicycle"


class UserProfile(BaseModel):
    """Answers collected by the profile dialog.

    Age is a tri-state: unset, given (``age`` holds the value) or declined
    (``age_declined`` is set and ``age`` stays ``None``).
    """

    transport: Transport | None = None
    name: str | None = None
    age: int | None = None
    age_declined: bool = False
    picture: Attachment | None = None
    saved: bool = False

    @property
    def has_age(self) -> bool:
        return self.age is not None or self.age_declined

    def describe(self) -> str:
        """Build the human-readable summary sentence."""
        transport = self.transport.value if self.transport is not None else None
        message = f"I have your mode of transport as {transport} and your name as {self.name}"
        if self.age is not None:
            message += f" and your age as {self.age}"
        return message + "."
