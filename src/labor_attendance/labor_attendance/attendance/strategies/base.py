from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import DayStatus


@dataclass(frozen=True)
class CheckoutDecision:
    allowed: bool
    day_status: DayStatus = DayStatus.PRESENT
    needs_confirmation: bool = False
    message: Optional[str] = None


class CheckoutStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-out request is judged."""

    @abstractmethod
    def decide_checkout(self, *, hours_worked: float, confirmed: bool) -> CheckoutDecision:
        raise NotImplementedError
