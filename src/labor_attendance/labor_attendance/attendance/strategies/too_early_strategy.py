from __future__ import annotations

from .base import CheckoutDecision, CheckoutStrategy


class TooEarlyCheckoutStrategy(CheckoutStrategy):
    """Checked in moments ago: most likely a repeated scan, refuse."""

    def decide_checkout(self, *, hours_worked: float, confirmed: bool) -> CheckoutDecision:
        minutes = int(round(hours_worked * 60))
        return CheckoutDecision(
            allowed=False,
            message=f"Checked in {minutes} minutes ago. Too early for checkout.",
        )
