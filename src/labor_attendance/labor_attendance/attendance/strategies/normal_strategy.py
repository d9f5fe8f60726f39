from __future__ import annotations

from ...core.enums import DayStatus
from .base import CheckoutDecision, CheckoutStrategy


class NormalCheckoutStrategy(CheckoutStrategy):
    """Full day worked."""

    def decide_checkout(self, *, hours_worked: float, confirmed: bool) -> CheckoutDecision:
        return CheckoutDecision(allowed=True, day_status=DayStatus.PRESENT)
