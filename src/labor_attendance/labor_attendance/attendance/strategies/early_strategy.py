from __future__ import annotations

from ...core.enums import DayStatus
from .base import CheckoutDecision, CheckoutStrategy


class EarlyCheckoutStrategy(CheckoutStrategy):
    """Short day: allowed only once the worker confirms, counted as half day."""

    def decide_checkout(self, *, hours_worked: float, confirmed: bool) -> CheckoutDecision:
        if not confirmed:
            return CheckoutDecision(
                allowed=False,
                needs_confirmation=True,
                message=f"Only {int(hours_worked)}h worked. Early checkout may affect salary; confirm to check out.",
            )
        return CheckoutDecision(allowed=True, day_status=DayStatus.HALF_DAY)
