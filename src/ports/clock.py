"""Time source shared by the catalog gateway and the rate limiter."""

from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    def now(self) -> datetime:
        """Return the current time as an aware UTC datetime."""
        ...
